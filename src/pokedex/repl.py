"""Interactive ``pokedex >`` prompt and its command dispatch table.

The REPL is a thin loop over a :class:`PokeAPIClient`. Each input line is
lower-cased and split on whitespace; the first word selects a
:class:`ReplCommand`, the rest are passed as arguments. Commands print
through :mod:`pokedex.output`, so data lands on stdout and the prompt and
diagnostics on stderr.

A :class:`~pokedex.exceptions.PokedexError` raised by a command is
reported and the loop continues. ``exit`` or end of input stops it.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, TextIO

from pokedex.client import PokeAPIClient
from pokedex.exceptions import InvalidUsageError, PokedexError
from pokedex.models import LocationAreaPage
from pokedex.output import error, get_output, info, print_lines, print_table

PROMPT = "pokedex > "


@dataclass
class ReplState:
    """Pagination cursors shared by ``map`` and ``mapb``."""

    next_url: Optional[str] = None
    previous_url: Optional[str] = None
    started: bool = False
    running: bool = True

    def update_from(self, page: LocationAreaPage) -> None:
        self.next_url = page.next
        self.previous_url = page.previous
        self.started = True


CommandCallback = Callable[[PokeAPIClient, ReplState, list[str]], None]


@dataclass
class ReplCommand:
    name: str
    description: str
    callback: CommandCallback
    usage: str = field(default="")


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def command_help(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    info("Welcome to the Pokedex!")
    info("Usage:")
    for cmd in get_commands().values():
        label = f"{cmd.name} {cmd.usage}".strip()
        info(f"  {label}: {cmd.description}")


def command_exit(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    info("Exiting Pokedex...")
    state.running = False


def _print_page(page: LocationAreaPage) -> None:
    print_lines([area.name for area in page.results])


def command_map(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    if state.started and state.next_url is None:
        info("No more locations available.")
        return
    page = client.fetch_location_areas(state.next_url)
    state.update_from(page)
    _print_page(page)


def command_mapb(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    if not state.previous_url:
        info("No previous locations available.")
        return
    page = client.fetch_location_areas(state.previous_url)
    state.update_from(page)
    _print_page(page)


def command_explore(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    if not args:
        raise InvalidUsageError("explore requires a location area name")
    area = client.fetch_location_area(args[0])
    info(f"Exploring {area.name}...")
    names = [encounter.pokemon.name for encounter in area.pokemon_encounters]
    if not names:
        info("No Pokemon found.")
        return
    info("Found Pokemon:")
    print_lines(names)


def command_inspect(client: PokeAPIClient, state: ReplState, args: list[str]) -> None:
    if not args:
        raise InvalidUsageError("inspect requires a Pokemon name")
    pokemon = client.fetch_pokemon(args[0])
    base_exp = "" if pokemon.base_experience is None else str(pokemon.base_experience)
    rows = [
        ["name", pokemon.name],
        ["height", str(pokemon.height)],
        ["weight", str(pokemon.weight)],
        ["base_experience", base_exp],
    ]
    rows.extend([f"stat:{s.stat.name}", str(s.base_stat)] for s in pokemon.stats)
    rows.extend(["type", t.type.name] for t in pokemon.types)
    print_table(["field", "value"], rows, title=pokemon.name)


def get_commands() -> dict[str, ReplCommand]:
    """Return the dispatch table keyed by command name."""
    return {
        "help": ReplCommand("help", "Display a help message", command_help),
        "exit": ReplCommand("exit", "Exit the Pokedex", command_exit),
        "map": ReplCommand(
            "map",
            "Display the names of the next 20 location areas",
            command_map,
        ),
        "mapb": ReplCommand(
            "mapb",
            "Display the names of the previous 20 location areas",
            command_mapb,
        ),
        "explore": ReplCommand(
            "explore",
            "List the Pokemon found in a location area",
            command_explore,
            usage="<area>",
        ),
        "inspect": ReplCommand(
            "inspect",
            "Show height, weight, stats and types of a Pokemon",
            command_inspect,
            usage="<pokemon>",
        ),
    }


# ------------------------------------------------------------------ #
# Loop
# ------------------------------------------------------------------ #


def clean_input(text: str) -> list[str]:
    """Lower-case *text* and split it into words."""
    return text.lower().split()


def dispatch(
    client: PokeAPIClient,
    state: ReplState,
    line: str,
    commands: Optional[dict[str, ReplCommand]] = None,
) -> None:
    """Run the command named by the first word of *line*.

    Errors from the command are reported on stderr and swallowed so the
    loop can continue.
    """
    words = clean_input(line)
    if not words:
        return
    commands = commands if commands is not None else get_commands()
    cmd = commands.get(words[0])
    if cmd is None:
        info("Unknown command. Type 'help' for a list of available commands.")
        return
    try:
        cmd.callback(client, state, words[1:])
    except PokedexError as exc:
        error(str(exc))


def run_repl(
    client: PokeAPIClient,
    stream: Optional[TextIO] = None,
    prompt: str = PROMPT,
) -> ReplState:
    """Read commands from *stream* until ``exit`` or end of input.

    Args:
        client: An entered :class:`PokeAPIClient`.
        stream: Input source. Defaults to ``sys.stdin``.
        prompt: Text written to stderr before each read.

    Returns:
        The final :class:`ReplState` (useful in tests).
    """
    stream = stream if stream is not None else sys.stdin
    state = ReplState()
    commands = get_commands()
    output = get_output()

    while state.running:
        output.prompt(prompt)
        line = stream.readline()
        if not line:
            output.prompt("\n")
            break
        dispatch(client, state, line, commands)

    return state
