from __future__ import annotations
import csv
import os
from typing import Iterable, List

# Progress logging (set DICTINPUT_VERBOSE=1 to enable)
def _verbose() -> bool:
    return os.environ.get("DICTINPUT_VERBOSE") == "1"

def _iter_lines(path: str) -> Iterable[str]:
    with open(path, "r", encoding="utf-8-sig", errors="ignore", newline="") as f:
        for ln in f:
            yield ln.rstrip("\r\n")

def _iter_csv_first_column(path: str) -> Iterable[str]:
    with open(path, "r", encoding="utf-8-sig", errors="ignore", newline="") as f:
        for row in csv.reader(f):
            if row:
                yield row[0]

def load_values(path: str) -> List[str]:
    """
    Read dictionary values from a file: one value per line for .txt,
    first column per row for .csv. Values are trimmed; blanks are dropped.
    """
    if path.lower().endswith(".csv"):
        raw = _iter_csv_first_column(path)
    else:
        raw = _iter_lines(path)
    values = [v.strip() for v in raw if v and v.strip()]
    if _verbose():
        print(f"[loaded] {path}: values={len(values):,}")
    return values
