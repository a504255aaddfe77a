"""In-memory query cache keyed by date."""

from datetime import date
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class QueryCache:
    """Caches API payloads of finished days.

    Data of the current day is still changing and is never stored, neither
    are empty payloads.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._entries: dict[date, Any] = {}

    def __len__(self) -> int:
        """Number of cached dates."""
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        """Whether a result is cached for a date."""
        return key in self._entries

    def lookup(self, key: date) -> Any:
        """Get the payload stored for a date, or None."""
        payload = self._entries.get(key)
        if not payload:
            return None
        return payload

    def store(self, key: date, payload: Any) -> bool:
        """Store a payload.

        Args:
            key: The queried date.
            payload: The API payload.

        Returns:
            Whether the payload was stored.
        """
        if key == date.today() or not payload:
            return False

        self._entries[key] = payload
        logger.debug("Cached query result", cache=self.name, date=key.isoformat())
        return True

    def discard(self, key: date) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop all entries."""
        if self._entries:
            logger.debug("Clearing query cache", cache=self.name, entries=len(self._entries))
        self._entries.clear()
