"""Configuration helpers for PromptVault.

Updates: v0.2.0 - 2026-09-21 - Expose cache directory resolution helpers.
Updates: v0.1.0 - 2026-09-07 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_GITHUB_API_URL,
    DEFAULT_MAX_RETRIES,
    SettingsError,
    VaultSettings,
    default_cache_dir,
    load_settings,
)

__all__ = [
    "DEFAULT_GITHUB_API_URL",
    "DEFAULT_MAX_RETRIES",
    "SettingsError",
    "VaultSettings",
    "default_cache_dir",
    "load_settings",
]
