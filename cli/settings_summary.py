"""Printable summaries for PromptVault configuration.

Updates:
  v0.1.0 - 2026-09-21 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.gist_client import REQUEST_TIMEOUT_SECONDS

from .utils import describe_path, mask_secret

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import VaultSettings


def print_settings_summary(settings: VaultSettings) -> None:
    """Emit a readable summary of storage and GitHub configuration."""
    cache_dir_desc = describe_path(settings.cache_dir, expect_directory=True)
    lines = [
        "PromptVault configuration summary",
        "---------------------------------",
        f"Cache directory: {cache_dir_desc}",
        f"Force remote: {'yes' if settings.force_remote else 'no'}",
        "",
        "GitHub",
        "------",
        f"API URL: {settings.github_api_url}",
        f"Token: {mask_secret(settings.github_token)}",
        f"Request timeout (seconds): {REQUEST_TIMEOUT_SECONDS:g}",
        f"Max attempts per request: {settings.max_retries}",
        f"HTTP request logging: {'yes' if settings.http_logging_enabled else 'no'}",
    ]
    print("\n".join(lines))
