"""Exception hierarchy for pokedex.

All exceptions inherit from :class:`PokedexError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`pokedex.exit_codes`.
The REPL catches ``PokedexError`` per command and keeps going; the
top-level handler in :func:`pokedex.app.main` exits with the error's code.

The response cache never raises these: a miss is a normal
``(None, False)`` result, not an error.

Subclass hierarchy::

    PokedexError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- DecodeError         (exit 7)
    +-- ConfigError         (exit 1)
"""

from pokedex.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class PokedexError(Exception):
    """Base exception for all pokedex errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(PokedexError):
    """Raised for invalid CLI or REPL arguments."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(PokedexError):
    """Raised when the API returns HTTP 404 (unknown area or Pokemon)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(PokedexError):
    """Raised when the API returns an HTTP 5xx, or a 4xx other than 404."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(PokedexError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(PokedexError):
    """Raised when a response body is not valid JSON for the expected model."""

    exit_code = EXIT_DECODE_ERROR


class ConfigError(PokedexError):
    """Raised for configuration problems (invalid JSON, bad env overrides)."""

    exit_code = EXIT_GENERIC_FAILURE
