import re
from typing import Callable, Optional


def _words_match(raw: str, accept: Callable[[str], bool]) -> bool:
    words = raw.split()
    if not words:
        return False
    return all(accept(ch) for word in words for ch in word)


def is_alphabetic_name(raw: str) -> bool:
    # letters only; any number of words separated by whitespace
    return _words_match(raw, str.isalpha)


def is_alphanumeric_name(raw: str) -> bool:
    return _words_match(raw, str.isalnum)


def format_name(raw: str) -> str:
    """'jOHN   doe ' -> 'John Doe'"""
    return " ".join(word[:1].upper() + word[1:].lower() for word in raw.split())


def parse_int(raw) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    # ASCII digits only; int() alone also takes "1_23" and non-latin digits
    if not re.fullmatch(r"[+-]?[0-9]+", text):
        return None
    return int(text)
