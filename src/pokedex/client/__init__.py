"""HTTP client module for pokedex.

Provides :class:`PokeAPIClient`, a blocking client that wraps
:class:`httpx.Client` with response caching, retry with exponential
backoff, error mapping, and decoding into the payload models from
:mod:`pokedex.models`.

Example::

    from pokedex.cache import ResponseCache
    from pokedex.client import PokeAPIClient

    with ResponseCache(300) as cache, PokeAPIClient(config, cache=cache) as client:
        page = client.fetch_location_areas()
"""

from pokedex.client.sync_client import PokeAPIClient

__all__ = ["PokeAPIClient"]
