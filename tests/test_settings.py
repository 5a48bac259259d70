"""Tests for configuration loading and validation logic.

Updates:
  v0.3.0 - 2026-10-02 - Cover GITHUB_TOKEN/GH_TOKEN aliases and JSON token rejection.
  v0.2.0 - 2026-09-21 - Cover platform cache defaults and the PV_CACHE_DIR override.
  v0.1.0 - 2026-09-07 - Cover JSON/env precedence and validation errors.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from pytest import LogCaptureFixture, MonkeyPatch

from config import SettingsError, VaultSettings, default_cache_dir, load_settings
from config.settings import DEFAULT_GITHUB_API_URL, DEFAULT_MAX_RETRIES


def _write_config(path: Path, payload: dict[str, object]) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_without_configuration(tmp_path: Path) -> None:
    """Fall back to platform cache paths and the public GitHub API."""
    settings = load_settings()

    assert isinstance(settings, VaultSettings)
    assert settings.github_token is None
    assert settings.github_api_url == DEFAULT_GITHUB_API_URL
    assert settings.cache_dir == tmp_path / "xdg-cache" / "pv"
    assert settings.force_remote is False
    assert settings.max_retries == DEFAULT_MAX_RETRIES


def test_load_settings_reads_json_and_env(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """JSON wins for overlapping keys while the environment fills the rest."""
    config_path = _write_config(
        tmp_path / "settings.json",
        {"cache_dir": str(tmp_path / "from-json"), "max_retries": 5},
    )
    monkeypatch.setenv("PROMPTVAULT_CONFIG_JSON", str(config_path))
    monkeypatch.setenv("PROMPTVAULT_MAX_RETRIES", "2")
    monkeypatch.setenv("PROMPTVAULT_FORCE_REMOTE", "true")

    settings = load_settings()

    assert settings.cache_dir == tmp_path / "from-json"
    assert settings.max_retries == 5
    assert settings.force_remote is True


def test_default_config_json_location_is_used(tmp_path: Path) -> None:
    """``config/config.json`` relative to the working directory is picked up."""
    (tmp_path / "config").mkdir()
    _write_config(
        tmp_path / "config" / "config.json",
        {"github_api_url": "https://ghe.test/api/v3/"},
    )

    assert load_settings().github_api_url == "https://ghe.test/api/v3"


def test_explicit_overrides_beat_every_source(monkeypatch: MonkeyPatch) -> None:
    """Keyword overrides take precedence over the environment."""
    monkeypatch.setenv("PROMPTVAULT_FORCE_REMOTE", "false")

    assert load_settings(force_remote=True).force_remote is True


@pytest.mark.parametrize("variable", ["PROMPTVAULT_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN"])
def test_token_is_read_from_environment_aliases(monkeypatch: MonkeyPatch, variable: str) -> None:
    """Every supported token variable populates ``github_token``."""
    monkeypatch.setenv(variable, "  ghp_alias  ")

    assert load_settings().github_token == "ghp_alias"


def test_prefixed_token_wins_over_bare_aliases(monkeypatch: MonkeyPatch) -> None:
    """The PROMPTVAULT_ variable is preferred to GITHUB_TOKEN and GH_TOKEN."""
    monkeypatch.setenv("GH_TOKEN", "from-gh")
    monkeypatch.setenv("GITHUB_TOKEN", "from-github")
    assert load_settings().github_token == "from-github"

    monkeypatch.setenv("PROMPTVAULT_GITHUB_TOKEN", "from-prefixed")
    assert load_settings().github_token == "from-prefixed"


def test_token_is_read_from_dotenv_file(tmp_path: Path) -> None:
    """``.env`` entries count as environment values without mutating ``os.environ``."""
    (tmp_path / ".env").write_text("GITHUB_TOKEN=ghp_from_dotenv\n", encoding="utf-8")

    assert load_settings().github_token == "ghp_from_dotenv"


def test_json_token_is_ignored_with_warning(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
    caplog: LogCaptureFixture,
) -> None:
    """Tokens in JSON files are dropped and reported."""
    config_path = _write_config(
        tmp_path / "settings.json",
        {"github_token": "ghp_leaked", "GH_TOKEN": "ghp_other", "force_remote": True},
    )
    monkeypatch.setenv("PROMPTVAULT_CONFIG_JSON", str(config_path))
    caplog.set_level(logging.WARNING, logger="prompt_vault.settings")

    settings = load_settings()

    assert settings.github_token is None
    assert settings.force_remote is True
    assert "Ignoring GitHub token key(s) GH_TOKEN, github_token" in caplog.text


def test_legacy_cache_dir_variable(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """``PV_CACHE_DIR`` overrides the platform default."""
    monkeypatch.setenv("PV_CACHE_DIR", str(tmp_path / "legacy"))

    assert load_settings().cache_dir == tmp_path / "legacy"


def test_cache_dir_expands_user(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """A ``~`` prefix is expanded against the home directory."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("PROMPTVAULT_CACHE_DIR", "~/prompts-cache")

    assert load_settings().cache_dir == tmp_path / "home" / "prompts-cache"


def test_default_cache_dir_follows_xdg(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """XDG_CACHE_HOME is honoured, with ``~/.cache`` as the fallback."""
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
    assert default_cache_dir("linux") == tmp_path / "xdg" / "pv"

    monkeypatch.delenv("XDG_CACHE_HOME")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    assert default_cache_dir("darwin") == tmp_path / "home" / ".cache" / "pv"


def test_default_cache_dir_on_windows(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Windows caches live under LOCALAPPDATA, which must be set."""
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "AppData" / "Local"))
    assert default_cache_dir("win32") == tmp_path / "AppData" / "Local" / "pv"

    monkeypatch.delenv("LOCALAPPDATA")
    with pytest.raises(SettingsError, match="LOCALAPPDATA"):
        default_cache_dir("win32")


@pytest.mark.parametrize("value", ["0", "11", "many"])
def test_invalid_max_retries_raise_settings_error(monkeypatch: MonkeyPatch, value: str) -> None:
    """Out-of-range or non-numeric retry counts are rejected."""
    monkeypatch.setenv("PROMPTVAULT_MAX_RETRIES", value)

    with pytest.raises(SettingsError):
        load_settings()


def test_non_http_api_url_is_rejected(monkeypatch: MonkeyPatch) -> None:
    """The API base URL must be http(s)."""
    monkeypatch.setenv("PROMPTVAULT_GITHUB_API_URL", "ftp://example.test")

    with pytest.raises(SettingsError):
        load_settings()


def test_missing_explicit_config_file(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """An explicitly configured JSON path must exist."""
    monkeypatch.setenv("PROMPTVAULT_CONFIG_JSON", str(tmp_path / "absent.json"))

    with pytest.raises(SettingsError, match="not found"):
        load_settings()


def test_invalid_json_config(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    """Malformed JSON and non-object payloads raise SettingsError."""
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("PROMPTVAULT_CONFIG_JSON", str(broken))
    with pytest.raises(SettingsError, match="Invalid JSON"):
        load_settings()

    listing = _write_config(tmp_path / "list.json", {})
    listing.write_text("[1, 2]", encoding="utf-8")
    monkeypatch.setenv("PROMPTVAULT_CONFIG_JSON", str(listing))
    with pytest.raises(SettingsError, match="JSON object"):
        load_settings()
