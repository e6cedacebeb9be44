"""In-memory response caching for pokedex.

This package provides :class:`ResponseCache`, a thread-safe store of raw
HTTP response bodies keyed by request URL. Entries expire a fixed TTL after
they were added; expiry is checked on every read and a background reaper
thread sweeps stale entries on the same period.

The cache is constructed and owned by :func:`pokedex.app.run_session` and
injected into :class:`~pokedex.client.PokeAPIClient`. Its TTL comes from
the ``cache`` section of the configuration
(:class:`~pokedex.models.CacheConfig`).
"""

from pokedex.cache.cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
