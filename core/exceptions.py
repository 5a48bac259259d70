"""Common exception classes for the PromptVault storage engine.

All exceptions ultimately inherit from :class:`PromptVaultError`, allowing
callers to catch a single base class for any storage failure while still
distinguishing individual error categories when needed.

Remote failures (:class:`RemoteStoreError` and subclasses) are raised by the
gist client and the remote store. Local cache failures are always
:class:`StorageError`. When the tiered store cannot serve a read from either
tier it raises :class:`CacheFallbackError`, which keeps both causes.

Updates:
  v0.4.0 - 2026-10-02 - Add ConflictError for concurrent index edits.
  v0.3.0 - 2026-09-21 - Split cache index missing/corrupt storage errors.
  v0.2.0 - 2026-09-14 - Add CacheFallbackError carrying remote and cache causes.
  v0.1.0 - 2026-09-07 - Created module with the storage error taxonomy.
"""

from __future__ import annotations


class PromptVaultError(Exception):
    """Base exception for PromptVault failures."""


# ---------------------------------------------------------------------------
# Collection state
# ---------------------------------------------------------------------------


class NoIndexError(PromptVaultError):
    """Raised when no prompt index exists yet (first use)."""

    def __init__(
        self,
        message: str = "No prompt index found - this appears to be your first time using pv",
    ) -> None:
        super().__init__(message)


class EmptyCollectionError(PromptVaultError):
    """Raised when the index exists but holds no usable prompts."""

    def __init__(self, message: str = "No prompts found in your collection") -> None:
        super().__init__(message)


class InvalidGistURLError(PromptVaultError):
    """Raised when a user-supplied gist URL cannot be parsed."""


# ---------------------------------------------------------------------------
# Remote errors
# ---------------------------------------------------------------------------


class RemoteStoreError(PromptVaultError):
    """Base class for failures talking to the hosted gist service."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(RemoteStoreError):
    """Raised on transport failures or unexpected remote service responses."""


class AuthError(RemoteStoreError):
    """Raised when the credential is missing, invalid, expired, or lacks scope."""


class RemoteNotFoundError(RemoteStoreError):
    """Raised when a remote document does not exist or is not visible."""


class ConflictError(RemoteStoreError):
    """Raised when the index kept changing underneath a read-modify-write."""


# ---------------------------------------------------------------------------
# Local cache errors
# ---------------------------------------------------------------------------


class StorageError(PromptVaultError):
    """Raised when reading or writing the local cache fails."""


class CacheIndexMissingError(StorageError):
    """Raised when the cached index file does not exist."""


class CacheIndexCorruptError(StorageError):
    """Raised when the cached index file cannot be read or parsed."""


class CacheFallbackError(PromptVaultError):
    """Raised when both the remote store and the local cache fail a read."""

    def __init__(self, remote_error: Exception, cache_error: Exception) -> None:
        super().__init__(
            "Remote failed and no cache available: "
            f"remote error: {remote_error}; cache error: {cache_error}"
        )
        self.remote_error = remote_error
        self.cache_error = cache_error


__all__ = [
    "AuthError",
    "CacheFallbackError",
    "CacheIndexCorruptError",
    "CacheIndexMissingError",
    "ConflictError",
    "EmptyCollectionError",
    "InvalidGistURLError",
    "NetworkError",
    "NoIndexError",
    "PromptVaultError",
    "RemoteNotFoundError",
    "RemoteStoreError",
    "StorageError",
]
