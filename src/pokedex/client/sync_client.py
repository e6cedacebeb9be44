"""Synchronous PokeAPI client with caching, retry, and typed decoding.

This module provides :class:`PokeAPIClient`. It wraps :class:`httpx.Client`
and layers on:

- **Response caching** -- raw bodies are stored in an injected
  :class:`~pokedex.cache.ResponseCache` keyed by the absolute request URL.
  The client only talks to the cache through ``get`` and ``add``.
- **Retry with backoff** -- retries on 5xx and transport errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- HTTP failures become
  :class:`~pokedex.exceptions.PokedexError` subclasses.
- **Decoding** -- bodies are validated into Pydantic models. A cached body
  that no longer decodes is ignored and fetched again; a freshly fetched
  body that does not decode raises :class:`~pokedex.exceptions.DecodeError`
  and is not cached.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from pokedex.exceptions import (
    ConnectionError_,
    DecodeError,
    InvalidUsageError,
    NotFoundError,
    ServerError,
)
from pokedex.models import GlobalConfig, LocationAreaDetail, LocationAreaPage, Pokemon
from pokedex.output import get_output

if TYPE_CHECKING:
    from pokedex.cache import ResponseCache


ModelT = TypeVar("ModelT", bound=BaseModel)

_API_DEFAULT_PAGE_SIZE = 20


class PokeAPIClient:
    """Synchronous client for the PokeAPI REST endpoints.

    Must be used as a context manager so that the underlying transport is
    opened and closed. The client never closes the cache; whoever
    constructed the cache owns its lifetime.

    Args:
        config: Resolved configuration (base URL, page size, request
            settings).
        cache: Optional response cache. When ``None``, every call goes to
            the network.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with PokeAPIClient(config, cache=cache) as client:
            pokemon = client.fetch_pokemon("pikachu")
    """

    def __init__(
        self,
        config: GlobalConfig,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> PokeAPIClient:
        self._client = httpx.Client(
            timeout=self._config.request.timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def base_url(self) -> str:
        return self._config.base_url.rstrip("/")

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def fetch_location_areas(self, url: Optional[str] = None) -> LocationAreaPage:
        """Fetch one page of location areas.

        Args:
            url: Absolute page URL, normally a previous page's ``next`` or
                ``previous``. When empty, the first page is requested.

        Returns:
            The decoded :class:`~pokedex.models.LocationAreaPage`.
        """
        if not url:
            url = f"{self.base_url}/location-area"
            if self._config.page_size != _API_DEFAULT_PAGE_SIZE:
                url = f"{url}?offset=0&limit={self._config.page_size}"
        return self._fetch_model(url, LocationAreaPage)

    def fetch_location_area(self, area_name: str) -> LocationAreaDetail:
        """Fetch a single location area and its Pokemon encounters."""
        url = f"{self.base_url}/location-area/{_slug(area_name, 'location area')}"
        return self._fetch_model(url, LocationAreaDetail)

    def fetch_pokemon(self, name: str) -> Pokemon:
        """Fetch a Pokemon by name (or numeric id)."""
        url = f"{self.base_url}/pokemon/{_slug(name, 'Pokemon name')}"
        pokemon = self._fetch_model(url, Pokemon)
        get_output().debug(f"{pokemon.name}: base experience {pokemon.base_experience}")
        return pokemon

    # ------------------------------------------------------------------ #
    # Fetch-and-decode
    # ------------------------------------------------------------------ #

    def fetch_bytes(self, url: str) -> bytes:
        """GET *url* with retry and error mapping, returning the raw body.

        Does not consult or populate the cache.

        Raises:
            NotFoundError: On 404.
            ServerError: On 5xx after all retries, or any other 4xx.
            ConnectionError_: On any transport error after all retries.
        """
        response = self._execute_with_retry(url)
        self._map_response_error(response)
        return response.content

    def _fetch_model(self, url: str, model: type[ModelT]) -> ModelT:
        output = get_output()

        if self._cache is not None:
            cached, found = self._cache.get(url)
            if found and cached is not None:
                try:
                    result = model.model_validate_json(cached)
                except ValidationError:
                    output.debug(f"Cached body for {url} did not decode, refetching")
                else:
                    output.debug(f"Cache hit: {url}")
                    return result
            else:
                output.debug(f"Cache miss: {url}")

        body = self.fetch_bytes(url)
        try:
            result = model.model_validate_json(body)
        except ValidationError as exc:
            raise DecodeError(
                f"Unexpected response from {url}: {exc.error_count()} validation error(s)"
            ) from exc

        if self._cache is not None:
            self._cache.add(url, body)
        return result

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _execute_with_retry(self, url: str) -> httpx.Response:
        """Execute a GET with exponential-backoff retry.

        Retries on 5xx status codes and any :class:`httpx.TransportError` up to
        ``max_retries`` times. The delay doubles each attempt: 1 s, 2 s, 4 s, ...
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._config.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            try:
                response = self._client.get(url)
            except httpx.TransportError as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            return response

        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        # PokeAPI answers errors with a short plain-text body ("Not Found").
        msg = response.text[:200].strip() if response.content else ""
        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)


def _slug(value: str, what: str) -> str:
    """Normalise a user-supplied name for use as a URL path segment."""
    cleaned = value.strip().lower()
    if not cleaned:
        raise InvalidUsageError(f"A {what} is required")
    return quote(cleaned, safe="-")
