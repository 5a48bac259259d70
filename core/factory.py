"""Factories for constructing the gist client and tiered prompt store from settings.

Updates:
  v0.2.0 - 2026-09-21 - Apply max_retries from settings to the gist client retry policy.
  v0.1.0 - 2026-09-07 - Build authenticated GistClient and CachedStore instances.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import AuthError
from .gist_client import GistClient
from .retry import RetryPolicy
from .store import CachedStore, GistStore, LocalCacheStore

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable

    import httpx

    from config import VaultSettings

factory_logger = logging.getLogger("prompt_vault.factory")


def build_gist_client(
    settings: VaultSettings,
    *,
    transport: httpx.BaseTransport | None = None,
) -> GistClient:
    """Return an authenticated client; the caller owns and closes it."""
    if not settings.github_token:
        raise AuthError(
            "GitHub token is not configured; set PROMPTVAULT_GITHUB_TOKEN or GITHUB_TOKEN"
        )
    return GistClient(
        settings.github_token,
        api_url=settings.github_api_url,
        retry_policy=RetryPolicy(max_attempts=settings.max_retries),
        transport=transport,
    )


def build_prompt_store(
    settings: VaultSettings,
    *,
    client: GistClient,
    force_remote: bool | None = None,
    on_cache_error: Callable[[str, Exception], None] | None = None,
) -> CachedStore:
    """Return the remote-first store with the local cache fallback wired in."""
    resolved_force_remote = settings.force_remote if force_remote is None else force_remote
    cache = LocalCacheStore(settings.cache_dir)
    factory_logger.debug(
        "Building prompt store",
        extra={"cache_dir": str(cache.cache_dir), "force_remote": resolved_force_remote},
    )
    return CachedStore(
        GistStore(client),
        cache,
        force_remote=resolved_force_remote,
        on_cache_error=on_cache_error,
    )


__all__ = ["build_gist_client", "build_prompt_store"]
