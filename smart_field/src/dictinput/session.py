# dictinput/session.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Optional, TYPE_CHECKING

from . import config as CFG
from .DB.api import DictionaryStore, Predicate
from .debounce import Debouncer
from .models import CandidateSet, Query, SuggestionList
from .normalize import normalize_key
from .ranker import Ranker
from .retriever import CandidateRetriever

if TYPE_CHECKING:  # pragma: no cover
    from .voice import VoiceDictationAdapter

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    QUERYING = "querying"
    PRESENTING = "presenting"
    SELECTING = "selecting"


class SuggestionSession:
    """
    Per-field suggestion state machine:  IDLE -> QUERYING -> PRESENTING -> {SELECTING, IDLE}

    One session per mounted field. It owns its debounce timer and (optionally) a voice
    adapter; close() releases both. Results of async queries are tagged with a generation
    number and dropped if the field text moved on while they were in flight.
    """

    def __init__(self,
                 store: DictionaryStore,
                 table: str,
                 predicate: Predicate = None,
                 *,
                 ranker: Optional[Ranker] = None,
                 normalizer: Callable[[str], str] = normalize_key,
                 clear_on_select: bool = CFG.CLEAR_ON_SELECT,
                 on_commit: Optional[Callable[[str], None]] = None,
                 debounce_seconds: float = CFG.DEBOUNCE_SECONDS,
                 initial_text: str = "") -> None:
        self.store = store
        self.table = table
        self.predicate = predicate
        self.retriever = CandidateRetriever(store)
        self.ranker = ranker or Ranker()
        self.normalizer = normalizer
        self.clear_on_select = clear_on_select
        self.on_commit = on_commit

        self.text: str = initial_text
        self.focused: bool = False
        self.state: SessionState = SessionState.IDLE
        self.suggestions: SuggestionList = SuggestionList(query=initial_text)
        self.voice: Optional["VoiceDictationAdapter"] = None

        self._gen = 0
        self._closed = False
        self._debounce = Debouncer(debounce_seconds, self.on_input)

    # ------------- focus -------------

    def focus(self) -> None:
        self.focused = True

    def blur(self) -> None:
        """Hide suggestions; the field text stays as typed."""
        self.focused = False
        self._gen += 1
        self._debounce.cancel()
        if self.voice is not None:
            self.voice.stop()
        self._hide()

    # ------------- input -------------

    def query_for(self, raw: str) -> Query:
        return Query(raw=raw, normalized=self.normalizer(raw))

    def on_input(self, raw: str) -> SuggestionList:
        """Keystroke or dictated text: normalize -> retrieve -> rank, replacing the previous list."""
        if self._closed:
            return SuggestionList(query=raw)
        self._gen += 1
        self.text = raw
        if not raw or not raw.strip():
            return self.suggestions   # ignored: no query, state and list unchanged

        self.state = SessionState.QUERYING
        query = self.query_for(raw)
        candidates = self.retriever.retrieve(self.table, self.predicate, query)
        return self._present(query, candidates)

    async def on_input_async(self, raw: str) -> Optional[SuggestionList]:
        """Same as on_input for coroutine stores; returns None when the result went stale."""
        if self._closed:
            return None
        self._gen += 1
        gen = self._gen
        self.text = raw
        if not raw or not raw.strip():
            return self.suggestions

        self.state = SessionState.QUERYING
        query = self.query_for(raw)
        candidates = await self.retriever.aretrieve(self.table, self.predicate, query)
        if self._closed or gen != self._gen or self.text != raw:
            log.debug("dropping stale suggestions for %r (current %r)", raw, self.text)
            return None
        return self._present(query, candidates)

    def on_input_debounced(self, raw: str) -> None:
        """Schedule on_input(raw) once typing pauses for the debounce window."""
        if not self._closed:
            self._debounce(raw)

    def flush(self) -> bool:
        return self._debounce.flush()

    # ------------- selection -------------

    def select(self, value: str) -> None:
        """User picked a suggestion (or the new-entry sentinel)."""
        if self._closed:
            return
        self.state = SessionState.SELECTING
        try:
            try:
                if self.store.insert_if_missing(self.table, value):
                    log.info("added %r to %s", value, self.table)
            except Exception as e:
                log.warning("could not store %r in %s: %s", value, self.table, e)
            if self.on_commit is not None:
                self.on_commit(value)
            self.text = "" if self.clear_on_select else value
        finally:
            self._gen += 1
            self.focused = False
            self._hide()

    def show_all(self) -> SuggestionList:
        """Focus and list the whole dictionary, current text last when it is new."""
        if self._closed:
            return SuggestionList(query=self.text)
        self.focus()
        try:
            values = self.store.list_values(self.table, self.predicate)
            fault = False
        except Exception as e:
            log.warning("dictionary listing failed on %s: %s", self.table, e)
            values, fault = [CFG.DB_ERROR_TEXT], True
        sentinel = self.text if self.text and self.text not in values else None
        self.suggestions = SuggestionList(query=self.text, exact=tuple(values),
                                          sentinel=sentinel, fault=fault)
        self.state = SessionState.PRESENTING
        return self.suggestions

    # ------------- lifecycle -------------

    @property
    def generation(self) -> int:
        """Bumped by every input, selection, blur and close; stale work compares against it."""
        return self._gen

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._gen += 1
        self._debounce.close()
        if self.voice is not None:
            self.voice.destroy()
            self.voice = None
        self._hide()

    # ------------- internals -------------

    def _present(self, query: Query, candidates: CandidateSet) -> SuggestionList:
        self.suggestions = self.ranker.rank(candidates, query)
        if self.focused and query.normalized:
            self.state = SessionState.PRESENTING
        else:
            self.state = SessionState.IDLE
        return self.suggestions

    def _hide(self) -> None:
        self.suggestions = SuggestionList(query=self.text)
        self.state = SessionState.IDLE
