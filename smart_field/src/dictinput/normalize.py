from __future__ import annotations
import unicodedata
from typing import List

from .config import GRAM

# Hiragana block that has a katakana twin exactly 0x60 code points above
_HIRA_START = 0x3041
_HIRA_END = 0x3096
_HIRA_ITER = {"ゝ": "ヽ", "ゞ": "ヾ"}  # ゝゞ -> ヽヾ

def _to_katakana(ch: str) -> str:
    cp = ord(ch)
    if _HIRA_START <= cp <= _HIRA_END:
        return chr(cp + 0x60)
    return _HIRA_ITER.get(ch, ch)

def normalize_key(text: str) -> str:
    """
    Canonical search key for a stored value or a typed/dictated query.
    Rules:
      * NFKC compatibility fold (full-width latin, half-width katakana)
      * trim, collapse whitespace runs to one space
      * casefold
      * hiragana -> katakana, so keyboard kana and dictated readings compare equal
    """
    if not text:
        return ""
    s = unicodedata.normalize("NFKC", text)
    s = " ".join(s.split())
    s = s.casefold()
    return "".join(_to_katakana(ch) for ch in s)

def kgrams(s: str, k: int) -> List[str]:
    """Overlapping k-grams of s, in order of first appearance."""
    if k <= 0 or len(s) < k:
        return []
    seen: dict[str, None] = {}
    for i in range(len(s) - k + 1):
        seen.setdefault(s[i:i + k], None)
    return list(seen)

def query_parts(key: str) -> List[str]:
    """The whole key plus every overlapping GRAM-sized substring (no repeats)."""
    if not key:
        return []
    parts = [key]
    for g in kgrams(key, GRAM):
        if g != key:
            parts.append(g)
    return parts

def collation_key(value: str) -> tuple[str, str]:
    # ascending order for exact matches; raw value breaks ties deterministically
    return normalize_key(value), value
