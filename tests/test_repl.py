"""Tests for the interactive REPL loop and its command table."""

from __future__ import annotations

from io import StringIO

import httpx
import pytest

from conftest import BASE_URL, location_area, location_page, pokemon_payload
from pokedex.cache import ResponseCache
from pokedex.client import PokeAPIClient
from pokedex.repl import (
    ReplCommand,
    ReplState,
    clean_input,
    dispatch,
    get_commands,
    run_repl,
)


FIRST_PAGE = f"{BASE_URL}/location-area"
SECOND_PAGE = f"{BASE_URL}/location-area?offset=20&limit=20"


@pytest.fixture(autouse=True)
def _plain(plain_output):
    yield


@pytest.fixture()
def paged_api(fake_api):
    fake_api.json(FIRST_PAGE, location_page(["canalave-city-area", "eterna-city-area"], SECOND_PAGE))
    fake_api.json(SECOND_PAGE, location_page(["pastoria-city-area"], None, FIRST_PAGE))
    return fake_api


@pytest.fixture()
def cache():
    c = ResponseCache(300, start_reaper=False)
    yield c
    c.close()


def _run(api_config, fake_api, script: str, cache=None) -> ReplState:
    with PokeAPIClient(api_config, cache=cache, transport=fake_api.transport()) as client:
        return run_repl(client, StringIO(script), prompt="")


# ------------------------------------------------------------------ #
# Input handling
# ------------------------------------------------------------------ #


class TestCleanInput:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("  hello  world  ", ["hello", "world"]),
            ("Charmander Bulbasaur PIKACHU", ["charmander", "bulbasaur", "pikachu"]),
            ("", []),
            ("   \n", []),
        ],
    )
    def test_clean_input(self, text: str, expected: list[str]) -> None:
        assert clean_input(text) == expected


class TestDispatchTable:
    def test_all_commands_registered(self) -> None:
        assert set(get_commands()) == {"help", "exit", "map", "mapb", "explore", "inspect"}

    def test_every_command_has_description(self) -> None:
        for name, cmd in get_commands().items():
            assert cmd.name == name
            assert cmd.description


# ------------------------------------------------------------------ #
# Loop control
# ------------------------------------------------------------------ #


class TestLoop:
    def test_eof_ends_loop(self, api_config, fake_api) -> None:
        state = _run(api_config, fake_api, "")
        assert state.running is True
        assert fake_api.requests == []

    def test_exit_stops_processing(self, api_config, paged_api, capsys) -> None:
        state = _run(api_config, paged_api, "exit\nmap\n")
        assert state.running is False
        assert paged_api.requests == []
        assert "Exiting Pokedex..." in capsys.readouterr().err

    def test_unknown_command(self, api_config, fake_api, capsys) -> None:
        _run(api_config, fake_api, "catch pikachu\n")
        err = capsys.readouterr().err
        assert "Unknown command. Type 'help' for a list of available commands." in err

    def test_blank_lines_ignored(self, api_config, fake_api, capsys) -> None:
        _run(api_config, fake_api, "\n   \n")
        assert "Unknown command" not in capsys.readouterr().err

    def test_help_lists_commands(self, api_config, fake_api, capsys) -> None:
        _run(api_config, fake_api, "help\n")
        err = capsys.readouterr().err
        for name in ("help", "exit", "map", "mapb", "explore <area>", "inspect <pokemon>"):
            assert name in err

    def test_command_is_case_insensitive(self, api_config, paged_api, capsys) -> None:
        _run(api_config, paged_api, "MAP\n")
        assert "canalave-city-area" in capsys.readouterr().out

    def test_error_does_not_end_loop(self, api_config, paged_api, capsys) -> None:
        _run(api_config, paged_api, "inspect agumon\nmap\n")
        captured = capsys.readouterr()
        assert "Error: HTTP 404" in captured.err
        assert "canalave-city-area" in captured.out

    def test_dropped_connection_does_not_end_loop(self, api_config, paged_api, capsys) -> None:
        def drop(request: httpx.Request) -> httpx.Response:
            raise httpx.RemoteProtocolError(
                "Server disconnected without sending a response.", request=request
            )

        paged_api.routes[f"{BASE_URL}/pokemon/pikachu"] = drop
        state = _run(api_config, paged_api, "inspect pikachu\nmap\n")
        captured = capsys.readouterr()
        assert "Error: Connection failed" in captured.err
        assert "canalave-city-area" in captured.out
        assert state.running is True


# ------------------------------------------------------------------ #
# map / mapb
# ------------------------------------------------------------------ #


class TestMap:
    def test_map_prints_first_page(self, api_config, paged_api, capsys) -> None:
        state = _run(api_config, paged_api, "map\n")
        assert capsys.readouterr().out.splitlines() == ["canalave-city-area", "eterna-city-area"]
        assert state.next_url == SECOND_PAGE
        assert state.previous_url is None

    def test_map_advances(self, api_config, paged_api, capsys) -> None:
        state = _run(api_config, paged_api, "map\nmap\n")
        assert capsys.readouterr().out.splitlines()[-1] == "pastoria-city-area"
        assert state.next_url is None
        assert state.previous_url == FIRST_PAGE

    def test_map_past_last_page(self, api_config, paged_api, capsys) -> None:
        _run(api_config, paged_api, "map\nmap\nmap\n")
        assert "No more locations available." in capsys.readouterr().err
        assert paged_api.count(SECOND_PAGE) == 1

    def test_mapb_without_previous(self, api_config, paged_api, capsys) -> None:
        _run(api_config, paged_api, "mapb\n")
        assert "No previous locations available." in capsys.readouterr().err
        assert paged_api.requests == []

    def test_mapb_on_first_page(self, api_config, paged_api, capsys) -> None:
        _run(api_config, paged_api, "map\nmapb\n")
        assert "No previous locations available." in capsys.readouterr().err

    def test_mapb_goes_back(self, api_config, paged_api, capsys) -> None:
        state = _run(api_config, paged_api, "map\nmap\nmapb\n")
        out = capsys.readouterr().out.splitlines()
        assert out[-2:] == ["canalave-city-area", "eterna-city-area"]
        assert state.next_url == SECOND_PAGE

    def test_paging_back_and_forth_uses_cache(self, api_config, paged_api, cache) -> None:
        _run(api_config, paged_api, "map\nmap\nmapb\nmap\nmapb\n", cache=cache)
        assert paged_api.count(FIRST_PAGE) == 1
        assert paged_api.count(SECOND_PAGE) == 1


# ------------------------------------------------------------------ #
# explore / inspect
# ------------------------------------------------------------------ #


class TestExplore:
    def test_explore_lists_pokemon(self, api_config, fake_api, capsys) -> None:
        fake_api.json(
            f"{BASE_URL}/location-area/pastoria-city-area",
            location_area("pastoria-city-area", ["tentacool", "tentacruel"]),
        )
        _run(api_config, fake_api, "explore pastoria-city-area\n")
        captured = capsys.readouterr()
        assert captured.out.splitlines() == ["tentacool", "tentacruel"]
        assert "Exploring pastoria-city-area..." in captured.err

    def test_explore_empty_area(self, api_config, fake_api, capsys) -> None:
        fake_api.json(f"{BASE_URL}/location-area/empty", location_area("empty", []))
        _run(api_config, fake_api, "explore empty\n")
        assert "No Pokemon found." in capsys.readouterr().err

    def test_explore_requires_area(self, api_config, fake_api, capsys) -> None:
        _run(api_config, fake_api, "explore\n")
        assert "explore requires a location area name" in capsys.readouterr().err
        assert fake_api.requests == []


class TestInspect:
    def test_inspect_prints_stats(self, api_config, fake_api, capsys) -> None:
        fake_api.json(f"{BASE_URL}/pokemon/pikachu", pokemon_payload())
        _run(api_config, fake_api, "inspect Pikachu\n")
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "field\tvalue"
        assert "name\tpikachu" in out
        assert "height\t4" in out
        assert "weight\t60" in out
        assert "base_experience\t112" in out
        assert "stat:hp\t35" in out
        assert "type\telectric" in out

    def test_inspect_requires_name(self, api_config, fake_api, capsys) -> None:
        _run(api_config, fake_api, "inspect\n")
        assert "inspect requires a Pokemon name" in capsys.readouterr().err


class TestDispatch:
    def test_dispatch_with_custom_table(self, api_config, fake_api) -> None:
        seen: list[list[str]] = []
        table = {"echo": ReplCommand("echo", "test", lambda c, s, args: seen.append(args))}
        with PokeAPIClient(api_config, transport=fake_api.transport()) as client:
            dispatch(client, ReplState(), "echo One Two", table)
        assert seen == [["one", "two"]]
