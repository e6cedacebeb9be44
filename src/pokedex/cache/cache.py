"""Time-bounded in-memory cache for raw response bodies.

Entries are opaque ``bytes`` stored under a string key (the request URL)
together with the monotonic time they were added. An entry whose age
exceeds the TTL is never returned:

* **Lazy expiry** -- :meth:`ResponseCache.get` checks the age under the
  lock and deletes a stale entry before reporting a miss. This is the
  authoritative check.
* **Reaper** -- a daemon thread wakes every ``ttl_seconds`` and removes all
  stale entries, so keys that are written once and never read again do not
  accumulate. It is best-effort cleanup, not a correctness requirement.

A single :class:`threading.Lock` guards the entry table. It is held only for
the dict access itself, never across I/O or a wait.

The reaper stops on :meth:`ResponseCache.close` (or on leaving a ``with``
block). ``close`` is idempotent.

Example::

    from pokedex.cache import ResponseCache

    with ResponseCache(ttl_seconds=300) as cache:
        cache.add("https://pokeapi.co/api/v2/pokemon/ditto", body)
        data, found = cache.get("https://pokeapi.co/api/v2/pokemon/ditto")
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pokedex.output import debug


@dataclass(frozen=True)
class CacheEntry:
    """A stored value plus the clock reading taken when it was added."""

    created_at: float
    value: bytes


class ResponseCache:
    """Thread-safe TTL cache of response bodies with a background reaper.

    Args:
        ttl_seconds: Maximum age of an entry, in seconds. Also the interval
            between reaper sweeps. Must be a positive number no larger
            than :data:`threading.TIMEOUT_MAX`.
        clock: Monotonic time source. Defaults to :func:`time.monotonic`.
            Both lazy expiry and the reaper read it.
        start_reaper: When ``False``, no thread is started and sweeps only
            happen through explicit :meth:`reap` calls.

    Raises:
        ValueError: If *ttl_seconds* is not positive or is too large to wait on.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Optional[Callable[[], float]] = None,
        start_reaper: bool = True,
    ) -> None:
        if not math.isfinite(ttl_seconds) or ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds!r}")
        if ttl_seconds > threading.TIMEOUT_MAX:
            raise ValueError(
                f"ttl_seconds must be at most {threading.TIMEOUT_MAX}, got {ttl_seconds!r}"
            )
        self._ttl = float(ttl_seconds)
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._reaper: Optional[threading.Thread] = None

        if start_reaper:
            self._reaper = threading.Thread(
                target=self._reap_loop,
                name="pokedex-cache-reaper",
                daemon=True,
            )
            self._reaper.start()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._stop.is_set()

    @property
    def reaper_running(self) -> bool:
        return self._reaper is not None and self._reaper.is_alive()

    def add(self, key: str, value: bytes) -> None:
        """Insert or overwrite the entry for *key*, stamped with the current time."""
        entry = CacheEntry(created_at=self._clock(), value=value)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> tuple[Optional[bytes], bool]:
        """Return ``(value, True)`` for a fresh entry, ``(None, False)`` otherwise.

        A stale entry is deleted in the same critical section that detected
        it, so a concurrent :meth:`add` for the same key is never lost to
        this delete.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None, False
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return None, False
            return entry.value, True

    def reap(self) -> int:
        """Remove every expired entry now and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if self._is_expired(entry, now)
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            debug(f"Cache reaper removed {len(expired)} expired entries")
        return len(expired)

    def close(self) -> None:
        """Stop the reaper thread and wait for it to exit.

        Safe to call more than once and from any thread. The cache keeps
        serving :meth:`get` / :meth:`add` afterwards; only proactive
        sweeping stops.
        """
        self._stop.set()
        reaper = self._reaper
        if reaper is not None and reaper is not threading.current_thread():
            reaper.join()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (physical entry count), ``ttl_seconds`` and ``reaper_running``."""
        return {
            "size": len(self),
            "ttl_seconds": self._ttl,
            "reaper_running": self.reaper_running,
        }

    # ------------------------------------------------------------------ #
    # Dunder helpers
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        # Counts entries still in the table, including expired ones the
        # reaper has not reached yet.
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ResponseCache(ttl_seconds={self._ttl}, size={len(self)}, "
            f"reaper_running={self.reaper_running})"
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._ttl

    def _reap_loop(self) -> None:
        """Sweep every ``ttl_seconds`` until :meth:`close` sets the stop event."""
        while not self._stop.wait(self._ttl):
            self.reap()
