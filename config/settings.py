"""Settings management utilities for PromptVault configuration.

Updates:
  v0.3.0 - 2026-10-02 - Accept GITHUB_TOKEN/GH_TOKEN aliases and keep tokens out of JSON files.
  v0.2.0 - 2026-09-21 - Honour the legacy PV_CACHE_DIR override and platform cache defaults.
  v0.1.0 - 2026-09-07 - Initial settings model with JSON/env precedence.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_MAX_RETRIES = 3
CACHE_DIR_NAME = "pv"

# Environment names per field, tried with the PROMPTVAULT_ prefix; names in
# _BARE_ENV_NAMES are also accepted without it.
_ENV_ALIASES: dict[str, list[str]] = {
    "github_token": ["GITHUB_TOKEN", "github_token", "GH_TOKEN"],
    "github_api_url": ["GITHUB_API_URL", "github_api_url"],
    "cache_dir": ["CACHE_DIR", "cache_dir", "PV_CACHE_DIR"],
    "force_remote": ["FORCE_REMOTE", "force_remote"],
    "max_retries": ["MAX_RETRIES", "max_retries"],
    "http_logging_enabled": ["HTTP_LOGGING_ENABLED", "http_logging_enabled"],
}
_JSON_KEYS = ("github_api_url", "cache_dir", "force_remote", "max_retries", "http_logging_enabled")
_DISALLOWED_SECRET_KEYS = {"github_token", "GITHUB_TOKEN", "GH_TOKEN", "token"}
_BARE_ENV_NAMES = {"GITHUB_TOKEN", "GH_TOKEN", "PV_CACHE_DIR"}


class SettingsError(Exception):
    """Raised when PromptVault configuration cannot be loaded or validated."""


def default_cache_dir(platform: str | None = None) -> Path:
    """Return the per-user cache directory for the current platform.

    Windows uses ``%LOCALAPPDATA%\\pv``; everything else follows the XDG base
    directory layout (``$XDG_CACHE_HOME/pv`` or ``~/.cache/pv``).
    """
    active_platform = platform or sys.platform
    if active_platform.startswith("win"):
        local_app_data = os.getenv("LOCALAPPDATA")
        if not local_app_data:
            raise SettingsError("LOCALAPPDATA environment variable not set")
        return Path(local_app_data) / CACHE_DIR_NAME
    cache_home = os.getenv("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base / CACHE_DIR_NAME


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPTVAULT_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class VaultSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    github_token: str | None = Field(
        default=None,
        description="GitHub token with the gist scope; read from the environment only.",
    )
    github_api_url: str = Field(
        default=DEFAULT_GITHUB_API_URL,
        description="Base URL of the GitHub REST API.",
    )
    cache_dir: Path = Field(
        default_factory=default_cache_dir,
        description="Root directory of the local prompt cache.",
    )
    force_remote: bool = Field(
        default=False,
        description="Disable the local cache fallback for reads.",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        description="Attempts per GitHub request before a transient failure is reported.",
    )
    http_logging_enabled: bool = Field(
        default=False,
        description="Emit httpx/httpcore request logs at the configured log level.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPTVAULT_",
            "case_sensitive": False,
            "populate_by_name": True,
            "extra": "ignore",
        },
    )

    @field_validator("github_token", mode="before")
    @classmethod
    def _strip_token(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("github_api_url", mode="before")
    @classmethod
    def _normalise_api_url(cls, value: object) -> str:
        if value is None:
            return DEFAULT_GITHUB_API_URL
        text = str(value).strip().rstrip("/")
        if not text:
            return DEFAULT_GITHUB_API_URL
        if not text.startswith(("http://", "https://")):
            raise ValueError("github_api_url must be an http(s) URL")
        return text

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _expand_cache_dir(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return default_cache_dir()
            return Path(stripped).expanduser()
        if isinstance(value, Path):
            return value.expanduser()
        return value

    @field_validator("max_retries")
    @classmethod
    def _validate_max_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_retries must be at least 1")
        if value > 10:
            raise ValueError("max_retries must not exceed 10")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(force_remote=True)).
            2. JSON configuration file (application settings).
            3. Environment variables / aliases, then ``.env`` entries.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_values_map = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_values_map.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    candidates = [f"{prefix}{key}", f"{prefix}{key.upper()}"]
                    if key in _BARE_ENV_NAMES:
                        candidates.append(key)
                    for candidate in candidates:
                        val = _lookup(candidate)
                        if val is None:
                            continue
                        data[field] = val
                        break
                    else:
                        continue
                    break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPTVAULT_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for path in candidates:
                if not path.exists():
                    if explicit_path and path == candidates[0]:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    message = f"Configuration file {path} must contain a JSON object"
                    raise SettingsError(message)
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                removed_secrets = [
                    key
                    for key in _DISALLOWED_SECRET_KEYS
                    if key in data_dict and data_dict.pop(key, None) is not None
                ]
                if removed_secrets:
                    logger.warning(
                        "Ignoring GitHub token key(s) %s in configuration file %s; "
                        "set credentials via environment variables instead.",
                        ", ".join(sorted(removed_secrets)),
                        path,
                    )
                return {key: data_dict[key] for key in _JSON_KEYS if key in data_dict}
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> VaultSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return VaultSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid PromptVault configuration") from exc


logger = logging.getLogger("prompt_vault.settings")
