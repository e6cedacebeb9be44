"""pokedex -- an interactive PokeAPI explorer with an in-memory response cache.

The package wraps the public `PokeAPI <https://pokeapi.co/>`_ in a small
REPL. Every GET goes through a time-bounded response cache so that paging
back and forth through location areas, or re-inspecting a Pokemon, does
not hit the network again until the entry expires.

Typical session::

    $ pokedex
    pokedex > map
    pokedex > explore canalave-city-area
    pokedex > inspect pikachu
    pokedex > exit

Modules:
    app: Typer application and CLI entry point.
    repl: Interactive prompt and command dispatch table.
    cache: Thread-safe TTL cache with a background reaper.
    client: httpx-based PokeAPI client that consults the cache.
    models: Pydantic models for configuration and API payloads.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
