"""Shared test fixtures for pokedex.

Provides reusable fixtures for creating isolated config environments,
managing output state, faking time for the response cache, serving canned
PokeAPI payloads through :class:`httpx.MockTransport`, and running CLI
commands. These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from pokedex.models import GlobalConfig, RequestConfig
from pokedex.output import OutputFormat, OutputManager, reset_output, set_output


BASE_URL = "https://pokeapi.test/api/v2"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced monotonic clock for deterministic TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, forces the XDG code path, and
    clears all POKEDEX_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("pokedex.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["POKEDEX_BASE_URL", "POKEDEX_CACHE_TTL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def api_config() -> GlobalConfig:
    """Config pointing at a fake API host with retries disabled."""
    return GlobalConfig(
        base_url=BASE_URL,
        request=RequestConfig(timeout=5, max_retries=0),
    )


# ---------------------------------------------------------------------------
# Canned PokeAPI payloads
# ---------------------------------------------------------------------------


def location_page(
    names: list[str],
    next_url: str | None = None,
    previous_url: str | None = None,
) -> dict[str, Any]:
    return {
        "count": 1054,
        "next": next_url,
        "previous": previous_url,
        "results": [
            {"name": name, "url": f"{BASE_URL}/location-area/{i + 1}/"}
            for i, name in enumerate(names)
        ],
    }


def location_area(name: str, pokemon: list[str]) -> dict[str, Any]:
    return {
        "id": 1,
        "name": name,
        "game_index": 1,
        "pokemon_encounters": [
            {
                "pokemon": {"name": p, "url": f"{BASE_URL}/pokemon/{p}/"},
                "version_details": [],
            }
            for p in pokemon
        ],
    }


def pokemon_payload(name: str = "pikachu") -> dict[str, Any]:
    return {
        "id": 25,
        "name": name,
        "base_experience": 112,
        "height": 4,
        "weight": 60,
        "stats": [
            {"base_stat": 35, "effort": 0, "stat": {"name": "hp", "url": ""}},
            {"base_stat": 55, "effort": 0, "stat": {"name": "attack", "url": ""}},
        ],
        "types": [{"slot": 1, "type": {"name": "electric", "url": ""}}],
        "abilities": [],
    }


class FakePokeAPI:
    """Route table for :class:`httpx.MockTransport` that records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[str] = []

    def json(self, url: str, payload: Any, status_code: int = 200) -> None:
        self.routes[url] = lambda request: httpx.Response(status_code, json=payload)

    def raw(self, url: str, content: bytes, status_code: int = 200) -> None:
        self.routes[url] = lambda request: httpx.Response(status_code, content=content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        return route(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def fake_api() -> FakePokeAPI:
    return FakePokeAPI()


def encode(payload: Any) -> bytes:
    return json.dumps(payload).encode("utf-8")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format OutputManager (info lines still shown)."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    from typer.testing import CliRunner

    return CliRunner()
