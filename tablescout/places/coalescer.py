from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    future: Future = field(default_factory=Future)
    settled_at: float | None = None


class RequestCoalescer:
    """
    Share one in-flight call between identical concurrent requests.

    The first caller for a key runs the work; anyone arriving while it runs,
    or within ``linger`` seconds after it settles, receives the same result
    (or the same exception). Expired entries are evicted on every access.
    """

    def __init__(
        self,
        linger: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._linger = linger
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def run(self, key: str, work: Callable[[], Any]) -> Any:
        with self._lock:
            self._evict_expired()
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = _Entry()
                self._entries[key] = entry

        if not owner:
            logger.debug("Request deduplication: reusing pending request for %s", key)
            return entry.future.result()

        try:
            result = work()
        except BaseException as exc:
            entry.future.set_exception(exc)
            raise
        else:
            entry.future.set_result(result)
            return result
        finally:
            with self._lock:
                entry.settled_at = self._clock()

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.settled_at is not None and now - entry.settled_at >= self._linger
        ]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired()
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
