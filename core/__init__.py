"""Core storage engine for PromptVault.

Updates:
  v0.2.0 - 2026-09-21 - Export factory helpers for shared bootstrap.
  v0.1.0 - 2026-09-07 - Surface gist client, stores, and the error taxonomy.
"""

from .exceptions import (
    AuthError,
    CacheFallbackError,
    CacheIndexCorruptError,
    CacheIndexMissingError,
    ConflictError,
    EmptyCollectionError,
    InvalidGistURLError,
    NetworkError,
    NoIndexError,
    PromptVaultError,
    RemoteNotFoundError,
    RemoteStoreError,
    StorageError,
)
from .factory import build_gist_client, build_prompt_store
from .gist_client import Gist, GistClient, GistFile
from .retry import RetryPolicy, retry
from .store import (
    CachedStore,
    GistStore,
    LocalCacheStore,
    PromptStore,
    RemotePromptStore,
    parse_gist_id,
)

__all__ = [
    "AuthError",
    "CacheFallbackError",
    "CacheIndexCorruptError",
    "CacheIndexMissingError",
    "CachedStore",
    "ConflictError",
    "EmptyCollectionError",
    "Gist",
    "GistClient",
    "GistFile",
    "GistStore",
    "InvalidGistURLError",
    "LocalCacheStore",
    "NetworkError",
    "NoIndexError",
    "PromptStore",
    "PromptVaultError",
    "RemoteNotFoundError",
    "RemotePromptStore",
    "RemoteStoreError",
    "RetryPolicy",
    "StorageError",
    "build_gist_client",
    "build_prompt_store",
    "parse_gist_id",
    "retry",
]
