# dictinput/ranker.py
"""
Ranker - orders retrieved candidates into the suggestion list shown under a field.

  exact   : prefix matches, already ascending and capped by the store
  partial : substring matches not already exact, scored by edit-distance similarity
            score = 1 / (1 + levenshtein(query, value)), descending, capped
  sentinel: the literal query, always last, so the user can commit a new value
"""
from __future__ import annotations
from typing import List, Tuple

import Levenshtein

from . import config as CFG
from .models import CandidateSet, Query, SuggestionList


def similarity(query_norm: str, value_norm: str) -> float:
    return 1.0 / (1.0 + Levenshtein.distance(query_norm, value_norm))


class Ranker:
    def __init__(self,
                 partial_limit: int = CFG.PARTIAL_LIMIT,
                 dedupe_sentinel: bool = CFG.DEDUPE_SENTINEL) -> None:
        self.partial_limit = partial_limit
        self.dedupe_sentinel = dedupe_sentinel

    def rank(self, candidates: CandidateSet, query: Query) -> SuggestionList:
        exact = [e.value for e in candidates.exact]
        seen = set(exact)

        scored: List[Tuple[str, float]] = []
        for e in candidates.partial:
            if e.value in seen:
                continue
            seen.add(e.value)
            scored.append((e.value, similarity(query.normalized, e.normalized or e.value)))

        # stable sort: equal scores keep store order
        scored.sort(key=lambda kv: -kv[1])
        partial = tuple((v, round(s, 6)) for v, s in scored[:self.partial_limit])

        sentinel: str | None = query.raw
        if self.dedupe_sentinel and (query.raw in exact or any(v == query.raw for v, _ in partial)):
            sentinel = None

        return SuggestionList(
            query=query.raw,
            exact=tuple(exact),
            partial=partial,
            sentinel=sentinel,
            fault=candidates.fault,
        )
