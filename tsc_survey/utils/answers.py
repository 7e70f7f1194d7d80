"""Canonicalization of single-choice survey answers."""
import re
from typing import Mapping, Optional

# A leading ASCII or fullwidth letter, then a separator or the end of the text.
_LEADING_LETTER = re.compile(
    r"^\s*([A-Za-z\uFF21-\uFF3A\uFF41-\uFF5A])(?=$|[\s.\uFF0E:\uFF1A)\uFF09\-\u3001,\uFF0C])"
)

_FULLWIDTH_OFFSET = 0xFF21 - ord("A")


def _to_ascii_upper(letter: str) -> str:
    code = ord(letter)
    if 0xFF41 <= code <= 0xFF5A:
        code -= 0xFF41 - 0xFF21
    if 0xFF21 <= code <= 0xFF3A:
        code -= _FULLWIDTH_OFFSET
    return chr(code).upper()


def leading_letter(raw: Optional[str]) -> Optional[str]:
    """Return the uppercase ASCII option letter an answer starts with, if any."""
    match = _LEADING_LETTER.match(raw or "")
    if not match:
        return None
    return _to_ascii_upper(match.group(1))


def canonical_code(raw: Optional[str], options: Mapping[str, str]) -> Optional[str]:
    """
    Map a raw answer to one of ``options``' letter codes.

    Tries the leading-letter rule first, then an exact match against the
    known labels (bare or ``"<letter>. <label>"``). Returns ``None`` when the
    answer belongs to none of the options.
    """
    letter = leading_letter(raw)
    if letter is not None and letter in options:
        return letter

    text = (raw or "").strip()
    for code, label in options.items():
        if text == label or text == f"{code}. {label}":
            return code
    return None
