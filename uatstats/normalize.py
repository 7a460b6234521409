import re
import unicodedata
from typing import Optional

_WORD_SPLIT = re.compile(r"[\s-]+")


def strip_diacritics(s: str) -> str:
    if not isinstance(s, str):
        return s
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(s: str) -> str:
    return " ".join(s.strip().split())


def hyphen_space_equivalent(a: str, b: str) -> bool:
    if not isinstance(a, str) or not isinstance(b, str):
        return False
    return a.replace("-", " ").upper() == b.replace("-", " ").upper()


def match_key(s: Optional[str]) -> str:
    """Folded comparison key: no diacritics, upper case, hyphens as spaces."""
    if not s:
        return ""
    return normalize_text(strip_diacritics(s).upper().replace("-", " "))


def leading_type_word(name: str) -> Optional[str]:
    if not isinstance(name, str):
        return None
    parts = [p for p in _WORD_SPLIT.split(name.strip()) if p]
    if not parts:
        return None
    first = parts[0]
    if len(first) > 3 and first != name.strip():
        return first
    return None


def trailing_word(name: str) -> Optional[str]:
    if not isinstance(name, str):
        return None
    parts = name.split()
    # Single-word names have no descriptive prefix to drop
    if len(parts) < 2:
        return None
    last = parts[-1]
    return last if len(last) > 3 else None
