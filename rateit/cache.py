"""In-process cache of derived aggregates and stale-response tracking."""

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Aggregate families invalidated whenever a user's ratings change
RATING_FAMILIES = (
    "ratings",
    "score-distribution",
    "profile-stats",
    "rating-history",
    "challenge-progress",
    "streak",
    "diary",
    "feed",
    "trending",
    "suggestions",
    "community-score",
    "top-rated",
)


class QueryCache:
    """Cache of computed views keyed by ``(family, user_id, *args)``."""

    def __init__(self) -> None:
        self._entries: dict[tuple[Hashable, ...], Any] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple[Hashable, ...]) -> bool:
        return key in self._entries

    def get_or_compute(self, key: tuple[Hashable, ...], compute: Callable[[], T]) -> T:
        """Return the cached value for key, computing and storing it on a miss."""
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        value = compute()
        with self._lock:
            self._entries[key] = value
        return value

    def invalidate(self, family: str, user_id: str | None = None) -> int:
        """Drop entries of a family, optionally only those of one user.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [
                k for k in self._entries if k[0] == family and (user_id is None or (len(k) > 1 and k[1] == user_id))
            ]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d %s entries for %s", len(doomed), family, user_id or "all users")
        return len(doomed)

    def invalidate_many(self, families: tuple[str, ...] | list[str], user_id: str | None = None) -> int:
        return sum(self.invalidate(family, user_id) for family in families)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RequestTracker:
    """Hands out per-key tokens so a superseded response can be discarded.

    Issue a token before starting a request; when the response arrives,
    apply it only if ``is_current`` still holds for that token.
    """

    def __init__(self) -> None:
        self._latest: dict[Hashable, int] = {}
        self._counter = 0
        self._lock = threading.Lock()

    def issue(self, key: Hashable) -> int:
        with self._lock:
            self._counter += 1
            self._latest[key] = self._counter
            return self._counter

    def is_current(self, key: Hashable, token: int) -> bool:
        with self._lock:
            return self._latest.get(key) == token

    def apply(self, key: Hashable, token: int, value: T, setter: Callable[[T], None]) -> bool:
        """Call setter with value if the token is still current. Returns whether it was applied."""
        if not self.is_current(key, token):
            logger.debug("Discarding stale response for %s", key)
            return False
        setter(value)
        return True
