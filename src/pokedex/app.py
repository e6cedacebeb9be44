"""Typer application and CLI entry point for pokedex.

Running ``pokedex`` with no sub-command starts the interactive REPL.
:func:`run_session` owns the session's resources: it builds one
:class:`~pokedex.cache.ResponseCache` from the resolved configuration,
hands it to a :class:`~pokedex.client.PokeAPIClient`, runs the REPL, and
closes the client and the cache (stopping its reaper thread) on the way
out.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional, TextIO

import typer

from pokedex import __version__
from pokedex.commands.config import config_app
from pokedex.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="pokedex",
    help="Explore the Pokemon world from your terminal.",
    invoke_without_command=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"pokedex {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="PokeAPI root URL."
    ),
    cache_ttl: Optional[float] = typer.Option(
        None, "--cache-ttl", help="Response cache TTL in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output (cache hits, retries, sweeps)."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~pokedex.output.OutputManager` from CLI
    flags and stores the config overrides in ``ctx.obj``. When no
    sub-command was given, starts the REPL.
    """
    from pokedex.output import OutputFormat, OutputManager, set_output

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    set_output(
        OutputManager(
            format=OutputFormat(cli_format or OutputFormat.AUTO.value),
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["cache_ttl"] = cache_ttl
    ctx.obj["format"] = cli_format
    ctx.obj["no_color"] = no_color
    ctx.obj["quiet"] = quiet
    ctx.obj["verbose"] = verbose

    if ctx.invoked_subcommand is None:
        run_session(ctx.obj)


@app.command("repl")
def repl_command(ctx: typer.Context) -> None:
    """Start the interactive Pokedex prompt (the default command)."""
    run_session(ctx.obj or {})


def run_session(options: dict[str, Any], stream: Optional[TextIO] = None) -> None:
    """Resolve config, build the cache and client, and run the REPL.

    Args:
        options: CLI overrides as stored by :func:`main_callback`.
        stream: REPL input. Defaults to ``sys.stdin``.

    Raises:
        ConfigError: If the configuration cannot be resolved.
    """
    from pokedex.cache import ResponseCache
    from pokedex.client import PokeAPIClient
    from pokedex.config import resolve_config
    from pokedex.output import OutputFormat, OutputManager, debug, set_output
    from pokedex.repl import run_repl

    config = resolve_config(
        cli_base_url=options.get("base_url"),
        cli_cache_ttl=options.get("cache_ttl"),
        cli_format=options.get("format"),
    )

    # A stored output format applies only when no flag picked one.
    if options.get("format") is None and config.output.format != OutputFormat.AUTO.value:
        set_output(
            OutputManager(
                format=OutputFormat(config.output.format),
                no_color=bool(options.get("no_color")),
                quiet=bool(options.get("quiet")),
                verbose=bool(options.get("verbose")),
            )
        )

    debug(f"API: {config.base_url}, cache TTL: {config.cache.ttl_seconds}s")

    with ResponseCache(config.cache.ttl_seconds) as cache:
        with PokeAPIClient(config, cache=cache) as client:
            run_repl(client, stream)
        debug(f"Session cache: {cache.stats()}")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from pokedex.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``pokedex`` console script.

    :class:`~pokedex.exceptions.PokedexError` instances cause a clean exit
    with the error's ``exit_code``. All other exceptions produce a crash
    log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from pokedex.exceptions import PokedexError
        from pokedex.output import error

        if isinstance(exc, PokedexError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
