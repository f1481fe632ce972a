# dictinput/DB/api.py
from __future__ import annotations
import re
import uuid
from typing import Callable, Iterable, List, Optional, Protocol, Union

from ..config import TABLE_NAME_PATTERN, MATCH_ALL
from ..models import Entry

# A predicate narrows which entries of a table are eligible.
#   str      -> boolean expression (SQL over `value` / `normalized` for SQLite)
#   callable -> value -> bool (in-memory tables)
#   None     -> match all
Predicate = Union[str, Callable[[str], bool], None]

_TABLE_RE = re.compile(TABLE_NAME_PATTERN)


class StoreError(RuntimeError):
    """Any fault while talking to a dictionary store (I/O, SQL, bad predicate, bad table key)."""


class DictionaryStore(Protocol):
    # Read
    def query_exact(self, table: str, predicate: Predicate, key: str) -> List[Entry]: ...
    def query_partial(self, table: str, predicate: Predicate, key: str) -> List[Entry]: ...
    def list_values(self, table: str, predicate: Predicate = None) -> List[str]: ...
    def count(self, table: str) -> int: ...
    def tables(self) -> List[str]: ...
    # Write
    def insert_if_missing(self, table: str, value: str) -> bool: ...
    def import_values(self, table: str, values: Iterable[str], *, replace: bool = True) -> int: ...
    def drop_table(self, table: str) -> None: ...
    # lifecycle
    def close(self) -> None: ...


def is_match_all(predicate: Predicate) -> bool:
    return predicate is None or (isinstance(predicate, str) and predicate.strip() in ("", MATCH_ALL))


def validate_table(table: str) -> str:
    """Allow-list check for namespace identifiers; they are never taken from free-form data."""
    if not isinstance(table, str) or not _TABLE_RE.match(table):
        raise StoreError(f"invalid table key: {table!r}")
    return table


def layer_field_table(layer_id: str, field_id: str) -> str:
    """Shared (persisted) table for one field of one layer."""
    return validate_table(f"_{layer_id}_{field_id}")


def ephemeral_table() -> str:
    """Synthetic key for a per-field in-memory table."""
    return f"mem_{uuid.uuid4().hex}"


def make_store(dsn: str) -> DictionaryStore:
    """
    Factory:
      - sqlite:///path -> SQLiteStore (file is created on first use)
      - sqlite://      -> SQLiteStore on a private in-memory database
      - memory://      -> MemoryStore
    """
    if dsn.startswith("sqlite:///"):
        from .sqlite_store import SQLiteStore
        return SQLiteStore(dsn.removeprefix("sqlite:///"))

    if dsn == "sqlite://":
        from .sqlite_store import SQLiteStore
        return SQLiteStore(":memory:")

    if dsn.startswith("memory://"):
        from .memory_store import MemoryStore
        return MemoryStore()

    raise ValueError(f"Unsupported store DSN: {dsn}")


def dedupe(values: Iterable[str]) -> List[str]:
    """Trim, drop blanks and repeats, keep first-seen order (import/seed helper)."""
    seen: dict[str, None] = {}
    for v in values:
        if v is None:
            continue
        v = str(v).strip()
        if v:
            seen.setdefault(v, None)
    return list(seen)


def resolve_callable(predicate: Predicate) -> Optional[Callable[[str], bool]]:
    """Return a python filter for in-memory evaluation, or None for match-all."""
    if is_match_all(predicate):
        return None
    if callable(predicate):
        return predicate
    raise StoreError(f"predicate cannot be evaluated in memory: {predicate!r}")
