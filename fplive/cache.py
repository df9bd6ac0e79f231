"""In-process cache of per-entrant gameweek results."""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger('fplive.cache')


def gameweek_confirmed(gameweek_finished: bool, data_checked: bool) -> bool:
    """A gameweek's scores are final once it is finished and the data checked."""
    return gameweek_finished and data_checked


class ResultCache:
    """
    Cache of computed results keyed by (entry_id, gameweek).

    Writes are gated by a single predicate: a result is only kept when its
    gameweek is confirmed finished, so live scores are always recomputed.
    """

    def __init__(self, should_cache: Optional[Callable[[Hashable, Any, bool], bool]] = None):
        self._entries: Dict[Hashable, Any] = {}
        self._lock = threading.Lock()
        self.should_cache = should_cache or (lambda key, value, confirmed: confirmed)

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: Hashable, value: Any, confirmed: bool = False) -> bool:
        """
        Store a value if the write policy allows it.

        Args:
            key: Cache key, usually (entry_id, gameweek)
            value: Result to cache
            confirmed: Whether the gameweek is confirmed finished

        Returns:
            True if the value was stored
        """
        if not self.should_cache(key, value, confirmed):
            return False
        with self._lock:
            self._entries[key] = value
        logger.debug(f'Cached result for {key}')
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
