"""Expiring in-memory store for parsed report rows."""
import time
from typing import Any, Callable, Dict, Optional, Tuple


class ExpiringCache:
    """Values expire ``ttl`` seconds after they are stored; expired keys read as missing."""

    def __init__(self, default_ttl: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + lifetime)


# Shared across ReportService instances created per request
report_cache = ExpiringCache()
