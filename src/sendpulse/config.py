"""Where sendpulse keeps its settings and how it finds the API credentials.

* Settings live in one JSON file, ``config.json``, under the XDG config
  directory (``~/.sendpulse/`` on macOS and Windows). Crash logs go to
  the data directory.
* :func:`resolve_settings` layers ``--base-url``/``--timeout``, the
  ``SENDPULSE_BASE_URL``/``SENDPULSE_TIMEOUT`` variables and a
  project-local ``sendpulse.json`` on top of that file.
* The user id and secret are never stored: the settings hold a *source*
  for each (``env:VAR``, ``file:PATH`` or ``prompt``), which
  :func:`resolve_credential` reads when :func:`load_client_config`
  builds a :class:`~sendpulse.models.ClientConfig`.

The access token is not persisted anywhere.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from sendpulse.exceptions import ConfigError
from sendpulse.models import ClientConfig, Settings

_APP_NAME = "sendpulse"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "sendpulse.json"

ENV_BASE_URL = "SENDPULSE_BASE_URL"
ENV_TIMEOUT = "SENDPULSE_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """True on platforms that follow the XDG Base Directory layout (Linux, BSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/sendpulse/`` (default ``~/.config/sendpulse/``).
    On macOS/Windows: ``~/.sendpulse/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/sendpulse/`` (default ``~/.local/share/sendpulse/``).
    On macOS/Windows: ``~/.sendpulse/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure
    the temp file is removed.
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


# --- Settings file ---


def _settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load the user settings from the config directory.

    Returns:
        The deserialised :class:`~sendpulse.models.Settings`, or defaults
        when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = _settings_path()
    if not path.is_file():
        return Settings()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_settings(settings: Settings) -> None:
    """Persist *settings* atomically to the config directory."""
    data = settings.model_dump(mode="json")
    _atomic_write(_settings_path(), json.dumps(data, indent=2) + "\n")


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./sendpulse.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[int] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``)
        2. Environment variables (``SENDPULSE_BASE_URL``, ``SENDPULSE_TIMEOUT``)
        3. Project config (``./sendpulse.json``)
        4. User config (``~/.config/sendpulse/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is malformed.
    """
    data = load_settings().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data.update(project)

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        data["base_url"] = env_base_url
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            data["timeout"] = int(env_timeout)
        except ValueError:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be an integer number of seconds, got: {env_timeout}"
            ) from None

    if cli_base_url is not None:
        data["base_url"] = cli_base_url
    if cli_timeout is not None:
        data["timeout"] = cli_timeout

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, label: str = "credential") -> str:
    """Read one credential from its configured source.

    Sources:
        - ``env:VAR`` -- the variable must exist; an empty value is allowed
        - ``file:PATH`` -- file content with surrounding whitespace stripped
        - ``prompt`` -- asks on the terminal for *label*; stdin must be a TTY

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(f"SendPulse {label}: ")

    raise ConfigError(f"Unknown credential source format: {source}")


def load_client_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[int] = None,
) -> ClientConfig:
    """Build the :class:`~sendpulse.models.ClientConfig` for the current environment.

    Resolves settings via :func:`resolve_settings`, then reads the user id
    and secret from their configured sources.

    Raises:
        ConfigError: If settings are malformed or a credential is missing.
    """
    settings = resolve_settings(cli_base_url=cli_base_url, cli_timeout=cli_timeout)
    user_id = resolve_credential(settings.user_id_source, "user id")
    secret = resolve_credential(settings.secret_source, "secret")
    try:
        return ClientConfig(
            user_id=user_id,
            secret=secret,
            timeout=settings.timeout,
            base_url=settings.base_url,
            verify_ssl=settings.verify_ssl,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
