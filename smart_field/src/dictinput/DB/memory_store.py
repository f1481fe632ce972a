# dictinput/DB/memory_store.py
from __future__ import annotations
import itertools
from typing import Callable, Dict, Iterable, List, Optional

from .api import DictionaryStore, Predicate, StoreError, dedupe, resolve_callable, validate_table
from ..config import EXACT_LIMIT, RECENT_FIRST
from ..models import Entry
from ..normalize import normalize_key, collation_key, query_parts


class _Row:
    __slots__ = ("entry", "stamp")

    def __init__(self, entry: Entry, stamp: int) -> None:
        self.entry = entry
        self.stamp = stamp


class MemoryStore(DictionaryStore):
    """
    Process-local dictionaries (the dynamic per-field variant, also handy in tests).
    Rows keep insertion order, which is the "store order" used for ranking ties.
    Each row carries a use stamp: committing an existing value refreshes it.
    """
    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, _Row]] = {}
        self._clock = itertools.count(1)

    # ---- internals ----
    def _rows(self, table: str) -> Dict[str, _Row]:
        return self._tables.get(validate_table(table), {})

    def _filter(self, table: str, predicate: Predicate) -> Iterable[Entry]:
        keep: Optional[Callable[[str], bool]] = resolve_callable(predicate)
        for row in list(self._rows(table).values()):
            if keep is None:
                yield row.entry
                continue
            try:
                ok = keep(row.entry.value)
            except Exception as e:
                raise StoreError(f"predicate failed on {row.entry.value!r}: {e}") from e
            if ok:
                yield row.entry

    # ---- Read ----
    def query_exact(self, table: str, predicate: Predicate, key: str) -> List[Entry]:
        hits = [e for e in self._filter(table, predicate) if e.normalized.startswith(key)]
        hits.sort(key=lambda e: collation_key(e.value))
        return hits[:EXACT_LIMIT]

    def query_partial(self, table: str, predicate: Predicate, key: str) -> List[Entry]:
        parts = query_parts(key)
        if not parts:
            return []
        return [e for e in self._filter(table, predicate) if any(p in e.normalized for p in parts)]

    def list_values(self, table: str, predicate: Predicate = None) -> List[str]:
        """Most recently used RECENT_FIRST values first, the rest in ascending order."""
        rows = self._rows(table)
        allowed = {e.value for e in self._filter(table, predicate)}
        # imported rows carry stamp 0 and never count as used
        used = sorted((r for r in rows.values() if r.entry.value in allowed and r.stamp > 0),
                      key=lambda r: -r.stamp)
        recent = [r.entry.value for r in used[:RECENT_FIRST]]
        taken = set(recent)
        others = sorted((v for v in allowed if v not in taken), key=collation_key)
        return recent + others

    def count(self, table: str) -> int:
        return len(self._rows(table))

    def tables(self) -> List[str]:
        return sorted(self._tables)

    # ---- Write ----
    def insert_if_missing(self, table: str, value: str) -> bool:
        value = (value or "").strip()
        if not value:
            return False
        rows = self._tables.setdefault(validate_table(table), {})
        row = rows.get(value)
        if row is not None:
            row.stamp = next(self._clock)
            return False
        rows[value] = _Row(Entry(value, normalize_key(value)), next(self._clock))
        return True

    def import_values(self, table: str, values: Iterable[str], *, replace: bool = True) -> int:
        validate_table(table)
        if replace:
            self._tables.pop(table, None)
        rows = self._tables.setdefault(table, {})
        n = 0
        for v in dedupe(values):
            if v not in rows:
                rows[v] = _Row(Entry(v, normalize_key(v)), 0)
                n += 1
        return n

    def seed(self, table: str, values: Iterable[str]) -> int:
        """Initialise a table from existing record values; no-op once the table exists."""
        if validate_table(table) in self._tables:
            return 0
        vals = dedupe(values)
        if not vals:
            return 0
        return self.import_values(table, vals, replace=False)

    def drop_table(self, table: str) -> None:
        self._tables.pop(validate_table(table), None)

    def clear_all(self) -> None:
        """Forget every dictionary (e.g. when switching projects)."""
        self._tables.clear()

    # ---- lifecycle ----
    def close(self) -> None:
        self._tables.clear()
