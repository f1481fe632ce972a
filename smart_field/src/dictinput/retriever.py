# dictinput/retriever.py
from __future__ import annotations
import asyncio
import inspect
import logging

from .DB.api import DictionaryStore, Predicate
from .models import CandidateSet, Query

log = logging.getLogger(__name__)


async def _resolve(value):
    if inspect.isawaitable(value):
        return await value
    return value


class CandidateRetriever:
    """
    Runs both retrieval strategies (prefix + 2-gram substring) against a store.
    Store faults never leave this layer: they become CandidateSet.degraded().
    """

    def __init__(self, store: DictionaryStore) -> None:
        self.store = store

    # /* ~~~ synchronous path (local stores) ~~~ */
    def retrieve(self, table: str, predicate: Predicate, query: Query) -> CandidateSet:
        key = query.normalized
        if not key:
            return CandidateSet()
        try:
            exact = self.store.query_exact(table, predicate, key)
            partial = self.store.query_partial(table, predicate, key)
        except Exception as e:
            log.warning("dictionary query failed on %s for %r: %s", table, key, e)
            return CandidateSet.degraded()
        return CandidateSet(exact=list(exact), partial=list(partial))

    # /* ~~~ asynchronous path (remote / coroutine stores): await both calls ~~~ */
    async def aretrieve(self, table: str, predicate: Predicate, query: Query) -> CandidateSet:
        key = query.normalized
        if not key:
            return CandidateSet()
        try:
            exact, partial = await asyncio.gather(
                _resolve(self.store.query_exact(table, predicate, key)),
                _resolve(self.store.query_partial(table, predicate, key)),
            )
        except Exception as e:
            log.warning("dictionary query failed on %s for %r: %s", table, key, e)
            return CandidateSet.degraded()
        return CandidateSet(exact=list(exact), partial=list(partial))
