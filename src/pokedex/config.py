"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.pokedex/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- a single :class:`~pokedex.models.GlobalConfig` JSON
  file holding the API base URL, cache TTL, request and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective
  configuration.

Nothing here touches the response cache itself: the cache is in-memory only
and lives for one session.
"""

from __future__ import annotations

import json
import math
import os
import platform
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pokedex.exceptions import ConfigError
from pokedex.models import GlobalConfig

_APP_NAME = "pokedex"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "POKEDEX_BASE_URL"
ENV_CACHE_TTL = "POKEDEX_CACHE_TTL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/pokedex/`` (default ``~/.config/pokedex/``).
    On macOS/Windows: ``~/.pokedex/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/pokedex/`` (default ``~/.local/share/pokedex/``).
    On macOS/Windows: ``~/.pokedex/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~pokedex.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


def reset_global_config() -> None:
    """Delete the config file so that defaults apply again. No-op if absent."""
    path = global_config_path()
    if path.is_file():
        path.unlink()


# --- Precedence resolution ---


def _parse_ttl(raw: str, source: str) -> float:
    try:
        ttl = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid cache TTL {raw!r} from {source}") from exc
    if not math.isfinite(ttl) or ttl <= 0:
        raise ConfigError(
            f"Cache TTL must be a positive finite number, got {raw!r} from {source}"
        )
    if ttl > threading.TIMEOUT_MAX:
        raise ConfigError(
            f"Cache TTL must be at most {threading.TIMEOUT_MAX:.0f}s, got {raw!r} from {source}"
        )
    return ttl


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_cache_ttl: Optional[float] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_cache_ttl``, ``cli_format``)
        2. Environment variables (``POKEDEX_BASE_URL``, ``POKEDEX_CACHE_TTL``)
        3. User config (``~/.config/pokedex/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file is invalid or a TTL override is not
            a positive number within :data:`threading.TIMEOUT_MAX`.
    """
    config = load_global_config()

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        config.base_url = env_base_url
    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if env_ttl:
        config.cache.ttl_seconds = _parse_ttl(env_ttl, ENV_CACHE_TTL)

    if cli_base_url is not None:
        config.base_url = cli_base_url
    if cli_cache_ttl is not None:
        config.cache.ttl_seconds = _parse_ttl(str(cli_cache_ttl), "--cache-ttl")
    if cli_format is not None:
        config.output.format = cli_format

    config.base_url = config.base_url.rstrip("/")
    try:
        return GlobalConfig.model_validate(config.model_dump())
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
