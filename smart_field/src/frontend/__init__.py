"""Module-level convenience API over a single SuggestionService (scripts, notebooks)."""
from __future__ import annotations
from typing import List
from dictinput import SuggestionService

_service: SuggestionService | None = None

def initialize(db: str | None = None, verbose: bool = False) -> None:
    """
    Open the dictionary store once for the process.
      db: "sqlite:///path" for a persisted dictionary file, "memory://" (default) otherwise.
    """
    global _service
    if _service is not None:
        _service.shutdown()
    _service = SuggestionService(db_dsn=db, verbose=verbose)

def suggest(table: str, query: str, predicate: str | None = None) -> List[str]:
    """One-shot suggestion list for `query` against `table`."""
    if _service is None:
        raise RuntimeError("Service not initialized. Call initialize(...) first.")
    h = _service.open_session(table, predicate)
    try:
        return _service.on_input(h, query).values()
    finally:
        _service.close_session(h)

def add(table: str, value: str) -> bool:
    """Commit a value to `table`; returns whether it was new."""
    if _service is None:
        raise RuntimeError("Service not initialized. Call initialize(...) first.")
    return _service.store.insert_if_missing(table, value)

def shutdown() -> None:
    global _service
    if _service is not None:
        _service.shutdown()
        _service = None
