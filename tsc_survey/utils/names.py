"""Player name normalization shared by submissions and the report."""
from typing import Optional

# Characters str.strip() keeps but that never belong to a player name
_INVISIBLE_CHARS = "\u200b\u200c\u200d\u2060\ufeff"


def normalize_player_name(name: Optional[str]) -> str:
    """Strip Unicode whitespace and zero-width characters from both ends."""
    text = name or ""
    previous = None
    while text != previous:
        previous = text
        text = text.strip().strip(_INVISIBLE_CHARS)
    return text
