"""Prompt storage backends: remote gists, local cache, and the tiered combination."""

from __future__ import annotations

from .base import PromptStore, RemotePromptStore, parse_gist_id
from .cached import CachedStore
from .local import LocalCacheStore
from .remote import GistStore

__all__ = [
    "CachedStore",
    "GistStore",
    "LocalCacheStore",
    "PromptStore",
    "RemotePromptStore",
    "parse_gist_id",
]
