"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for apizza:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apizza/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Profile document** -- the user's profile (:mod:`apizza.profile`) stored
  as ``config.json``. Managed via :func:`load_profile_document` and
  :func:`save_profile_document`.
* **Client settings** -- :class:`~apizza.models.ClientSettings` read from
  ``settings.json`` with ``APIZZA_*`` environment overrides, see
  :func:`resolve_settings`.
* **Store location** -- :func:`get_store_dir` names the on-disk key-value
  store shared by the menu cache and saved orders.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from apizza.document import Record
from apizza.exceptions import ConfigError
from apizza.models import ClientSettings
from apizza.profile import PROFILE_SCHEMA

_APP_NAME = "apizza"
_CONFIG_FILENAME = "config.json"
_SETTINGS_FILENAME = "settings.json"
_STORE_DIRNAME = "apizza.db"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/apizza/`` (default ``~/.config/apizza/``).
    On macOS/Windows: ``~/.apizza/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the key-value store with the cached menu and saved orders.

    On Linux/BSD: ``$XDG_CACHE_HOME/apizza/`` (default ``~/.cache/apizza/``).
    On macOS/Windows: ``~/.apizza/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apizza/`` (default ``~/.local/share/apizza/``).
    On macOS/Windows: ``~/.apizza/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_file() -> Path:
    """Path to the profile document (``config.json``)."""
    return get_config_dir() / _CONFIG_FILENAME


def get_store_dir(cache_dir: Optional[Path] = None) -> Path:
    """Directory of the on-disk key-value store inside *cache_dir*."""
    return (cache_dir or get_cache_dir()) / _STORE_DIRNAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and *path* is left as it was.
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
        # The profile holds card details.
        os.chmod(tmp_path, 0o600)
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


# --- Profile document ---


def load_profile_document(path: Optional[Path] = None) -> Record:
    """Load the profile document from ``config.json``.

    Args:
        path: Explicit file to read; defaults to :func:`get_config_file`.

    Returns:
        The profile document. A missing file yields an empty profile.

    Raises:
        ConfigError: If the file is not valid JSON or a value has the wrong
            type.
    """
    path = path or get_config_file()
    if not path.is_file():
        return PROFILE_SCHEMA.new_document()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    try:
        return PROFILE_SCHEMA.load(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc


def save_profile_document(doc: Record, path: Optional[Path] = None) -> None:
    """Persist the profile document atomically.

    Args:
        doc: The profile document.
        path: Explicit file to write; defaults to :func:`get_config_file`.
    """
    path = path or get_config_file()
    _atomic_write(path, json.dumps(doc.to_data(), indent=2) + "\n")


# --- Client settings ---


def resolve_settings(config_dir: Optional[Path] = None) -> ClientSettings:
    """Resolve client settings.

    Precedence (high to low):
        1. Environment variables (``APIZZA_BASE_URL``, ``APIZZA_MENU_TTL``,
           ``APIZZA_TIMEOUT``)
        2. ``settings.json`` in the config directory
        3. Defaults

    Raises:
        ConfigError: If ``settings.json`` or an environment value is invalid.
    """
    path = (config_dir or get_config_dir()) / _SETTINGS_FILENAME
    data: dict = {}
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Invalid settings at {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid settings at {path}: expected a JSON object")

    env_base_url = os.environ.get("APIZZA_BASE_URL")
    if env_base_url:
        data["base_url"] = env_base_url
    env_ttl = os.environ.get("APIZZA_MENU_TTL")
    if env_ttl:
        data["menu_ttl_seconds"] = env_ttl
    env_timeout = os.environ.get("APIZZA_TIMEOUT")
    if env_timeout:
        data.setdefault("request", {})["timeout"] = env_timeout

    try:
        return ClientSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
