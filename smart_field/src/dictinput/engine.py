# dictinput/engine.py
from __future__ import annotations

import os
import logging
import uuid
from typing import Callable, Dict, Iterable, Optional, Tuple

from . import config as CFG
from .DB.api import DictionaryStore, Predicate, StoreError, ephemeral_table, make_store
from .DB.memory_store import MemoryStore
from .loader import load_values
from .models import SuggestionList
from .ranker import Ranker
from .session import SuggestionSession
from .voice import (
    MorphTokenizer,
    SpeechRecognizer,
    VoiceDictationAdapter,
    default_capabilities,
)

log = logging.getLogger(__name__)

CapabilityFactory = Callable[[], Tuple[SpeechRecognizer, Optional[MorphTokenizer]]]


class SuggestionService:
    """
    Thin orchestration layer that glues together:
      - a persisted dictionary store (SQLite or in-memory) for layer+field tables,
      - a process-local MemoryStore for per-field dynamic tables,
      - one SuggestionSession (+ optional voice adapter) per open field.

    Public API (used by CLI/Flask/desktop hosts):
      * open_session(table_key, predicate, ...) -> handle
      * on_input(handle, raw) -> SuggestionList
      * commit(handle, value)
      * start_voice(handle, locale) / stop_voice(handle)
      * close_session(handle)
      * shutdown()

    Storage DSNs (via dictinput.DB.api.make_store):
      - "sqlite:///path/to/dictionary.sqlite"
      - "memory://"
    """

    # ------------- lifecycle -------------

    def __init__(self,
                 store: Optional[DictionaryStore] = None,
                 *,
                 db_dsn: Optional[str] = None,
                 capabilities: Optional[CapabilityFactory] = None,
                 ranker: Optional[Ranker] = None,
                 verbose: bool = False) -> None:
        if verbose:
            logging.basicConfig(level=logging.INFO)
            os.environ["DICTINPUT_VERBOSE"] = "1"

        if store is None:
            dsn = db_dsn or CFG.DEFAULT_DSN
            log.info("Initializing dictionary store: %s", dsn)
            store = make_store(dsn)
        self.store: DictionaryStore = store
        self.dynamic = MemoryStore()        # per-field in-memory tables
        self.ranker = ranker or Ranker()
        self._capabilities = capabilities or default_capabilities
        self._sessions: Dict[str, SuggestionSession] = {}
        self._ephemeral: Dict[str, str] = {}   # handle -> owned in-memory table

    # ------------- sessions -------------

    def open_session(self,
                     table_key: Optional[str] = None,
                     predicate: Predicate = None,
                     *,
                     clear_on_select: bool = CFG.CLEAR_ON_SELECT,
                     initial_text: str = "",
                     seed: Optional[Iterable[str]] = None,
                     on_commit: Optional[Callable[[str], None]] = None,
                     on_notice: Optional[Callable[[str], None]] = None,
                     dispatch: Optional[Callable[[Callable[[], None]], None]] = None) -> str:
        """
        table_key given -> persisted (shared) dictionary.
        table_key None  -> fresh in-memory table owned by this field; dropped on close.
        `seed` initialises an in-memory table from existing record values.
        """
        handle = uuid.uuid4().hex
        if table_key is None:
            table = ephemeral_table()
            store: DictionaryStore = self.dynamic
            self._ephemeral[handle] = table
            if seed is not None:
                self.dynamic.seed(table, seed)
        else:
            table = table_key
            store = self.store

        session = SuggestionSession(
            store, table, predicate,
            ranker=self.ranker,
            clear_on_select=clear_on_select,
            on_commit=on_commit,
            initial_text=initial_text,
        )
        recognizer, tokenizer = self._capabilities()
        VoiceDictationAdapter(session, recognizer, tokenizer, on_notice=on_notice, dispatch=dispatch)
        self._sessions[handle] = session
        log.info("opened session %s on %s", handle[:8], table)
        return handle

    def session(self, handle: str) -> SuggestionSession:
        try:
            return self._sessions[handle]
        except KeyError:
            raise KeyError(f"unknown session handle: {handle}") from None

    def on_input(self, handle: str, raw: str) -> SuggestionList:
        s = self.session(handle)
        s.focus()
        return s.on_input(raw)

    def commit(self, handle: str, value: str) -> None:
        self.session(handle).select(value)

    def blur(self, handle: str) -> None:
        self.session(handle).blur()

    def show_all(self, handle: str) -> SuggestionList:
        return self.session(handle).show_all()

    def start_voice(self, handle: str, locale: str = CFG.VOICE_LOCALE) -> bool:
        s = self.session(handle)
        return s.voice.start(locale) if s.voice is not None else False

    def stop_voice(self, handle: str) -> None:
        s = self.session(handle)
        if s.voice is not None:
            s.voice.stop()

    def close_session(self, handle: str) -> None:
        s = self._sessions.pop(handle, None)
        if s is None:
            return
        s.close()
        table = self._ephemeral.pop(handle, None)
        if table is not None:
            self.dynamic.drop_table(table)
        log.info("closed session %s", handle[:8])

    # ------------- dictionaries -------------

    def import_values(self, table: str, values: Iterable[str], *, replace: bool = True) -> int:
        n = self.store.import_values(table, values, replace=replace)
        log.info("imported %d values into %s", n, table)
        return n

    def import_file(self, table: str, path: str, *, replace: bool = True) -> int:
        return self.import_values(table, load_values(path), replace=replace)

    def export_layer(self, layer_id: str, dest_path: str) -> str:
        """Write every field dictionary of one layer into a standalone SQLite file."""
        export = getattr(self.store, "export_tables", None)
        if export is None:
            raise StoreError(f"{type(self.store).__name__} cannot export dictionaries")
        path = export(layer_id, dest_path)
        log.info("exported layer %s dictionaries to %s", layer_id, path)
        return path

    # ------------- teardown -------------

    def shutdown(self) -> None:
        """Close every session, then the underlying stores."""
        try:
            for handle in list(self._sessions):
                self.close_session(handle)
            self.store.close()
        finally:
            self.dynamic.close()
            log.info("SuggestionService shutdown complete")
