# dictinput/DB/sqlite_store.py
from __future__ import annotations
import os
import sqlite3
from typing import Iterable, List

from .api import DictionaryStore, Predicate, StoreError, dedupe, is_match_all, validate_table
from ..config import EXACT_LIMIT, MATCH_ALL
from ..models import Entry
from ..normalize import normalize_key, collation_key, query_parts

# one table per dictionary namespace; {table} is always an allow-listed, quoted identifier
_SCHEMA = """
CREATE TABLE IF NOT EXISTS "{table}" (
  value TEXT NOT NULL UNIQUE,
  normalized TEXT NOT NULL
);
"""

def _q(table: str) -> str:
    return '"' + validate_table(table) + '"'

def _like_escape(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _where(predicate: Predicate) -> str:
    if is_match_all(predicate):
        return MATCH_ALL
    if not isinstance(predicate, str):
        raise StoreError(f"SQLite predicates must be SQL expressions, got {type(predicate).__name__}")
    return predicate


class SQLiteStore(DictionaryStore):
    """Persisted dictionaries shared by every field that names the same table."""
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)) or ".", exist_ok=True)
        try:
            self.conn: sqlite3.Connection = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {db_path}: {e}") from e
        self._known: set[str] = set()

    # ---- internals ----
    def _ensure(self, table: str) -> str:
        name = _q(table)
        if table not in self._known:
            try:
                self.conn.executescript(_SCHEMA.format(table=table))
            except sqlite3.Error as e:
                raise StoreError(f"cannot create {name}: {e}") from e
            self._known.add(table)
        return name

    def _select(self, sql: str, params: Iterable) -> List[Entry]:
        try:
            rows = self.conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return [Entry(v, n) for v, n in rows]

    # ---- Read ----
    def query_exact(self, table: str, predicate: Predicate, key: str) -> List[Entry]:
        name = self._ensure(table)
        sql = (f"SELECT value, normalized FROM {name} "
               f"WHERE normalized LIKE ? ESCAPE '\\' AND ({_where(predicate)}) ORDER BY rowid")
        hits = self._select(sql, [_like_escape(key) + "%"])
        # LIKE folds ASCII case only; re-check against the canonical key
        hits = [e for e in hits if e.normalized.startswith(key)]
        hits.sort(key=lambda e: collation_key(e.value))
        return hits[:EXACT_LIMIT]

    def query_partial(self, table: str, predicate: Predicate, key: str) -> List[Entry]:
        parts = query_parts(key)
        if not parts:
            return []
        name = self._ensure(table)
        cond = " OR ".join("normalized LIKE ? ESCAPE '\\'" for _ in parts)
        sql = (f"SELECT value, normalized FROM {name} "
               f"WHERE ({cond}) AND ({_where(predicate)}) ORDER BY rowid")
        hits = self._select(sql, ["%" + _like_escape(p) + "%" for p in parts])
        return [e for e in hits if any(p in e.normalized for p in parts)]

    def list_values(self, table: str, predicate: Predicate = None) -> List[str]:
        name = self._ensure(table)
        rows = self._select(f"SELECT value, normalized FROM {name} WHERE {_where(predicate)}", [])
        return sorted((e.value for e in rows), key=collation_key)

    def count(self, table: str) -> int:
        name = self._ensure(table)
        try:
            return int(self.conn.execute(f"SELECT COUNT(*) FROM {name}").fetchone()[0])
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e

    def tables(self) -> List[str]:
        try:
            rows = self.conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name").fetchall()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return [r[0] for r in rows]

    # ---- Write ----
    def insert_if_missing(self, table: str, value: str) -> bool:
        value = (value or "").strip()
        if not value:
            return False
        name = self._ensure(table)
        try:
            cur = self.conn.execute(
                f"INSERT OR IGNORE INTO {name}(value, normalized) VALUES (?, ?)",
                (value, normalize_key(value)),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return cur.rowcount > 0

    def import_values(self, table: str, values: Iterable[str], *, replace: bool = True) -> int:
        if replace:
            self.drop_table(table)
        name = self._ensure(table)
        rows = [(v, normalize_key(v)) for v in dedupe(values)]
        try:
            before = self.conn.total_changes
            self.conn.executemany(
                f"INSERT OR IGNORE INTO {name}(value, normalized) VALUES (?, ?)", rows)
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        return self.conn.total_changes - before

    def drop_table(self, table: str) -> None:
        name = _q(table)
        try:
            self.conn.execute(f"DROP TABLE IF EXISTS {name}")
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        self._known.discard(table)

    def export_tables(self, layer_id: str, dest_path: str) -> str:
        """Copy every `_<layer_id>_<field>` table into a fresh SQLite file."""
        prefix = f"_{layer_id}_"
        validate_table(prefix)
        dest_path = os.path.abspath(dest_path)
        os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)
        tmp = f"{dest_path}.tmp"
        if os.path.exists(tmp):
            os.remove(tmp)
        out = SQLiteStore(tmp)
        try:
            for t in self.tables():
                if t.startswith(prefix):
                    out.import_values(t, self.list_values(t), replace=True)
        finally:
            out.close()
        os.replace(tmp, dest_path)
        return dest_path

    # ---- lifecycle ----
    def close(self) -> None:
        self.conn.close()
