from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple

from . import config as CFG

@dataclass(frozen=True)
class Entry:
    value: str                # stored value, as committed
    normalized: str = ""      # search key form of value

@dataclass(frozen=True)
class Query:
    raw: str                  # what the user typed or dictated
    normalized: str           # canonical search key

@dataclass
class CandidateSet:
    exact: List[Entry] = field(default_factory=list)
    partial: List[Entry] = field(default_factory=list)
    fault: bool = False

    @classmethod
    def degraded(cls) -> "CandidateSet":
        """Single recovered placeholder used when the store faults."""
        return cls(exact=[Entry(CFG.DB_ERROR_TEXT, CFG.DB_ERROR_TEXT)], partial=[], fault=True)

@dataclass(frozen=True)
class SuggestionList:
    query: str
    exact: Tuple[str, ...] = ()
    partial: Tuple[Tuple[str, float], ...] = ()
    sentinel: str | None = None   # literal query offered as a new entry
    fault: bool = False

    def values(self) -> List[str]:
        out = list(self.exact) + [v for v, _ in self.partial]
        if self.sentinel is not None:
            out.append(self.sentinel)
        return out

    def __len__(self) -> int:
        return len(self.values())

    def __iter__(self):
        return iter(self.values())

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "exact": list(self.exact),
            "partial": [{"value": v, "score": s} for v, s in self.partial],
            "sentinel": self.sentinel,
            "fault": self.fault,
            "values": self.values(),
        }

EMPTY = SuggestionList(query="")
