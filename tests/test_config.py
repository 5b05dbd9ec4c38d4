"""Tests for sendpulse.config — XDG paths, atomic writes, settings, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from sendpulse.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_client_config,
    load_project_config,
    load_settings,
    resolve_credential,
    resolve_settings,
    save_settings,
)
from sendpulse.exceptions import ConfigError
from sendpulse.models import DEFAULT_BASE_URL, OutputConfig, Settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _user_config_path(root: Path) -> Path:
    return root / "config" / "sendpulse" / "config.json"


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "sendpulse"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        assert get_config_dir() == custom / "sendpulse"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "sendpulse"
        assert result.is_dir()

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".sendpulse"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sendpulse.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".sendpulse" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("sendpulse.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings file
# ---------------------------------------------------------------------------


class TestSettings:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings.user_id_source == "env:SENDPULSE_USER_ID"
        assert settings.secret_source == "env:SENDPULSE_SECRET"
        assert settings.timeout == 30
        assert settings.base_url == DEFAULT_BASE_URL

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        settings = Settings(
            user_id_source="file:/etc/sp-id",
            timeout=12,
            output=OutputConfig(format="json"),
        )
        save_settings(settings)

        loaded = load_settings()
        assert loaded.user_id_source == "file:/etc/sp-id"
        assert loaded.timeout == 12
        assert loaded.output.format == "json"

    def test_saved_file_is_json(self, isolated_config: Path) -> None:
        save_settings(Settings(timeout=7))
        data = json.loads(_user_config_path(isolated_config).read_text(encoding="utf-8"))
        assert data["timeout"] == 7

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = _user_config_path(isolated_config)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid config"):
            load_settings()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(_user_config_path(isolated_config), {"timeout": "soon"})

        with pytest.raises(ConfigError):
            load_settings()


class TestProjectConfig:
    def test_returns_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loads_valid_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "sendpulse.json", {"timeout": 9})
        assert load_project_config() == {"timeout": 9}

    def test_invalid_json_raises(self, isolated_config: Path) -> None:
        (isolated_config / "sendpulse.json").write_text("nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config()

    def test_non_object_raises(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "sendpulse.json", [1, 2])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults(self, isolated_config: Path) -> None:
        settings = resolve_settings()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.timeout == 30

    def test_project_overrides_user(self, isolated_config: Path) -> None:
        save_settings(Settings(timeout=10, base_url="https://user.example"))
        _write_json(isolated_config / "sendpulse.json", {"timeout": 20})

        settings = resolve_settings()
        assert settings.timeout == 20
        assert settings.base_url == "https://user.example"

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "sendpulse.json", {"base_url": "https://project.example"})
        monkeypatch.setenv("SENDPULSE_BASE_URL", "https://env.example")
        monkeypatch.setenv("SENDPULSE_TIMEOUT", "45")

        settings = resolve_settings()
        assert settings.base_url == "https://env.example"
        assert settings.timeout == 45

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SENDPULSE_BASE_URL", "https://env.example")
        monkeypatch.setenv("SENDPULSE_TIMEOUT", "45")

        settings = resolve_settings(cli_base_url="https://cli.example", cli_timeout=3)
        assert settings.base_url == "https://cli.example"
        assert settings.timeout == 3

    def test_non_integer_env_timeout_raises(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SENDPULSE_TIMEOUT", "fast")
        with pytest.raises(ConfigError, match="SENDPULSE_TIMEOUT"):
            resolve_settings()


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "secret123")
        assert resolve_credential("env:MY_SECRET") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_env_source_empty_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An empty string is still a valid value from the environment."""
        monkeypatch.setenv("EMPTY_VAR", "")
        assert resolve_credential("env:EMPTY_VAR") == ""

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("  my-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/secret.txt")

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "typed-secret")

        assert resolve_credential("prompt") == "typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)

        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("magic:wand")


# ---------------------------------------------------------------------------
# Client config
# ---------------------------------------------------------------------------


class TestLoadClientConfig:
    def test_reads_credentials_from_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SENDPULSE_USER_ID", "id-1")
        monkeypatch.setenv("SENDPULSE_SECRET", "sec-1")

        config = load_client_config(cli_base_url="https://api.example/", cli_timeout=8)
        assert config.user_id == "id-1"
        assert config.secret == "sec-1"
        assert config.timeout == 8
        assert config.base_url == "https://api.example"

    def test_reads_credentials_from_configured_files(self, isolated_config: Path) -> None:
        (isolated_config / "id").write_text("file-id\n", encoding="utf-8")
        (isolated_config / "secret").write_text("file-secret\n", encoding="utf-8")
        save_settings(
            Settings(
                user_id_source=f"file:{isolated_config / 'id'}",
                secret_source=f"file:{isolated_config / 'secret'}",
            )
        )

        config = load_client_config()
        assert (config.user_id, config.secret) == ("file-id", "file-secret")

    def test_missing_credentials_raise(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="SENDPULSE_USER_ID"):
            load_client_config()

    def test_zero_timeout_rejected(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SENDPULSE_USER_ID", "id-1")
        monkeypatch.setenv("SENDPULSE_SECRET", "sec-1")
        monkeypatch.setenv("SENDPULSE_TIMEOUT", "0")

        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_client_config()
