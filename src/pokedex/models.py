"""Canonical Pydantic models shared across all pokedex modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**API payload models** -- decoded from PokeAPI response bodies by
:class:`~pokedex.client.PokeAPIClient`:
    :class:`NamedResource`, :class:`LocationAreaPage`,
    :class:`PokemonEncounter`, :class:`LocationAreaDetail`,
    :class:`PokemonStat`, :class:`PokemonTypeSlot`, and :class:`Pokemon`.

Payload models only declare the fields the REPL displays. Pydantic ignores
the rest of each (large) PokeAPI document.
"""

from __future__ import annotations

import threading
from typing import Literal, Optional

from pydantic import BaseModel, Field


DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"


# --- Configuration ---


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`."""

    ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        le=threading.TIMEOUT_MAX,
        allow_inf_nan=False,
        description="Cache TTL in seconds (also the reaper period)",
    )


class RequestConfig(BaseModel):
    """HTTP request settings applied to every API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=3, ge=0, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/pokedex/config.json``.

    Loaded and saved by :func:`~pokedex.config.load_global_config` and
    :func:`~pokedex.config.save_global_config`. Fields here have the lowest
    precedence and can be overridden by environment variables or CLI flags.
    See :func:`~pokedex.config.resolve_config` for the full chain.
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, description="PokeAPI root URL")
    page_size: int = Field(
        default=20, ge=1, description="Location areas per page for map/mapb"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- API payloads ---


class NamedResource(BaseModel):
    """A PokeAPI ``NamedAPIResource``: a name plus the URL of the full resource."""

    name: str
    url: Optional[str] = None


class LocationAreaPage(BaseModel):
    """One page of ``GET /location-area``.

    ``next`` and ``previous`` are absolute URLs, or ``None`` at either end
    of the listing. The REPL feeds them back into
    :meth:`~pokedex.client.PokeAPIClient.fetch_location_areas` verbatim,
    which keeps the cache key identical across paging.
    """

    count: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None
    results: list[NamedResource] = Field(default_factory=list)


class PokemonEncounter(BaseModel):
    pokemon: NamedResource


class LocationAreaDetail(BaseModel):
    """``GET /location-area/{name}``, reduced to the encounter list."""

    id: Optional[int] = None
    name: str
    pokemon_encounters: list[PokemonEncounter] = Field(default_factory=list)


class PokemonStat(BaseModel):
    base_stat: int
    stat: NamedResource


class PokemonTypeSlot(BaseModel):
    slot: Optional[int] = None
    type: NamedResource


class Pokemon(BaseModel):
    """``GET /pokemon/{name}``, reduced to what ``inspect`` prints."""

    id: Optional[int] = None
    name: str
    base_experience: Optional[int] = None
    height: int = 0
    weight: int = 0
    stats: list[PokemonStat] = Field(default_factory=list)
    types: list[PokemonTypeSlot] = Field(default_factory=list)
