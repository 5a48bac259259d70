"""Tiered prompt store: remote first, local cache as a read fallback.

Reads (``list``, ``get``, ``get_content``, ``get_exports``) go to the remote
store and mirror successful results into the local cache. When the remote
fails the cached copy is served instead, unless ``force_remote`` is set, in
which case the remote error is re-raised untouched apart from an added note.

Writes always go to the remote store first; the cache is only updated after
the remote write succeeded and never buffers local-only changes. Cache
failures while mirroring are reported to the ``on_cache_error`` observer and
otherwise swallowed.

Updates:
  v0.3.1 - 2026-10-18 - Empty cached index is an empty collection; recompute file paths.
  v0.3.0 - 2026-10-02 - Add raw index sync and route swallowed cache errors to an observer.
  v0.2.0 - 2026-09-21 - Preserve cached timestamps when a refresh returns the same prompts.
  v0.1.0 - 2026-09-07 - Initial remote-first store with local cache fallback.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, TypeVar

from models.prompt_model import IndexedPrompt, Prompt, PromptIndex

from ..exceptions import (
    CacheFallbackError,
    EmptyCollectionError,
    NoIndexError,
    RemoteStoreError,
    StorageError,
)
from .base import extract_gist_id, matches_keyword, prompt_file_name

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from models.prompt_model import CacheInfo, GistInfo

    from .base import RemotePromptStore
    from .local import LocalCacheStore

    CacheErrorObserver = Callable[[str, Exception], None]

logger = logging.getLogger("prompt_vault.store.cached")

T = TypeVar("T")


def _log_cache_error(operation: str, exc: Exception) -> None:
    logger.warning(
        "Local cache update failed",
        extra={"operation": operation, "error": str(exc)},
    )


class CachedStore:
    """Prompt store combining a remote store with a local cache mirror."""

    def __init__(
        self,
        remote: RemotePromptStore,
        cache: LocalCacheStore,
        *,
        force_remote: bool = False,
        on_cache_error: CacheErrorObserver | None = None,
    ) -> None:
        self._remote = remote
        self._cache = cache
        self._force_remote = force_remote
        self._on_cache_error = on_cache_error or _log_cache_error

    @property
    def remote(self) -> RemotePromptStore:
        return self._remote

    @property
    def cache(self) -> LocalCacheStore:
        return self._cache

    @property
    def force_remote(self) -> bool:
        return self._force_remote

    # ------------------------------------------------------------------
    # Policy helpers
    # ------------------------------------------------------------------

    def _mirror(self, operation: str, action: Callable[[], None]) -> None:
        try:
            action()
        except StorageError as exc:
            self._on_cache_error(operation, exc)

    def _read(
        self,
        operation: str,
        remote_call: Callable[[], T],
        cache_call: Callable[[], T],
        mirror: Callable[[T], None] | None = None,
    ) -> T:
        try:
            result = remote_call()
        except RemoteStoreError as exc:
            if self._force_remote:
                exc.add_note(f"{operation}: cache fallback disabled by force_remote")
                raise
            logger.info(
                "Remote read failed; falling back to local cache",
                extra={"operation": operation, "error": str(exc)},
            )
            try:
                return cache_call()
            except StorageError as cache_exc:
                raise CacheFallbackError(exc, cache_exc) from exc
        if mirror is not None:
            self._mirror(operation, lambda: mirror(result))
        return result

    def _cached_index_or_empty(self) -> PromptIndex:
        try:
            return self._cache.load_index()
        except StorageError as exc:
            logger.debug("Starting a fresh cached index", extra={"reason": str(exc)})
            return PromptIndex()

    def _update_cache_from_prompts(self, prompts: Iterable[Prompt], *, merge: bool) -> None:
        """Write *prompts* into the cached index, keeping known entry timestamps.

        With ``merge`` the cached entries not among *prompts* are kept;
        otherwise *prompts* become the complete cached entry set.
        """
        try:
            cached: PromptIndex | None = self._cache.load_index()
        except StorageError:
            cached = None
        previous = {entry.gist_url: entry for entry in cached.prompts} if cached else {}
        now = datetime.now(UTC)

        fresh: dict[str, IndexedPrompt] = {}
        for prompt in prompts:
            known = previous.get(prompt.gist_url)
            fresh[prompt.gist_url] = IndexedPrompt(
                gist_url=prompt.gist_url,
                file_path=prompt_file_name(prompt.name),
                author=prompt.author,
                name=prompt.name,
                last_updated=known.last_updated if known else now,
                parent=prompt.parent,
            )

        if merge and cached is not None:
            entries = [fresh.pop(entry.gist_url, entry) for entry in cached.prompts]
            entries.extend(fresh.values())
        else:
            entries = list(fresh.values())

        unchanged = cached is not None and {e.gist_url for e in entries} == set(previous)
        index = PromptIndex(
            prompts=entries,
            last_updated=cached.last_updated if cached is not None and unchanged else now,
            exports=cached.exports if cached is not None else [],
        )
        self._cache.save_index(index)

    def _cached_prompts(self) -> list[Prompt]:
        index = self._cache.load_index()
        if not index.prompts:
            raise EmptyCollectionError()
        return [
            Prompt(
                id=extract_gist_id(entry.gist_url),
                name=entry.name,
                author=entry.author,
                gist_url=entry.gist_url,
                parent=entry.parent,
            )
            for entry in index.prompts
        ]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> list[Prompt]:
        """Return all prompts, from the cache when the remote store is unreachable."""
        return self._read(
            "list",
            self._remote.list,
            self._cached_prompts,
            lambda prompts: self._update_cache_from_prompts(prompts, merge=False),
        )

    def get(self, keyword: str) -> list[Prompt]:
        """Return prompts matching *keyword* by name, author, or gist id."""
        return self._read(
            "get",
            lambda: self._remote.get(keyword),
            lambda: [p for p in self._cached_prompts() if matches_keyword(p, keyword)],
            lambda prompts: self._update_cache_from_prompts(prompts, merge=True),
        )

    def get_content(self, prompt_id: str) -> str:
        """Return the raw content of *prompt_id*, falling back to the cached body."""
        return self._read(
            "get_content",
            lambda: self._remote.get_content(prompt_id),
            lambda: self._cache.load_content(prompt_id),
            lambda content: self._cache.save_content(prompt_id, content),
        )

    def get_exports(self) -> list[IndexedPrompt]:
        """Return the export entries recorded in the index."""
        return self._read(
            "get_exports",
            self._remote.get_exports,
            lambda: self._cache.load_index().exports,
        )

    def find_by_url(self, gist_url: str) -> Prompt | None:
        """Return the prompt stored at *gist_url*, using the cache when offline."""
        try:
            prompts = self.list()
        except (NoIndexError, EmptyCollectionError):
            return None
        return next((prompt for prompt in prompts if prompt.gist_url == gist_url), None)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _cache_upsert(self, prompt: Prompt) -> None:
        index = self._cached_index_or_empty()
        entry = IndexedPrompt.from_prompt(prompt, file_path=prompt_file_name(prompt.name))
        for position, existing in enumerate(index.prompts):
            if existing.gist_url == prompt.gist_url:
                index.prompts[position] = entry
                break
        else:
            index.prompts.append(entry)
        index.touch()
        self._cache.save_index(index)
        if prompt.id:
            self._cache.save_content(prompt.id, prompt.content)

    def add(self, prompt: Prompt) -> Prompt:
        """Store *prompt* remotely, then mirror its entry and content locally."""
        stored = self._remote.add(prompt)
        self._mirror("add", lambda: self._cache_upsert(stored))
        return stored

    def update(self, prompt: Prompt) -> Prompt:
        """Update *prompt* remotely, then refresh the cached entry."""
        stored = self._remote.update(prompt)
        self._mirror("update", lambda: self._cache_upsert(stored))
        return stored

    def _cache_remove(self, removed: list[IndexedPrompt]) -> None:
        urls = {entry.gist_url for entry in removed}
        try:
            index: PromptIndex | None = self._cache.load_index()
        except StorageError:
            index = None
        if index is not None:
            index.prompts = [entry for entry in index.prompts if entry.gist_url not in urls]
            index.touch()
            self._cache.save_index(index)
        for entry in removed:
            gist_id = extract_gist_id(entry.gist_url)
            if gist_id:
                self._cache.delete_content(gist_id)

    def delete(self, keyword: str) -> list[IndexedPrompt]:
        """Delete matching prompts remotely and drop them from the cache."""
        removed = self._remote.delete(keyword)
        if removed:
            self._mirror("delete", lambda: self._cache_remove(removed))
        return removed

    def _cache_export(self, entry: IndexedPrompt, *, replace: bool) -> None:
        index = self._cached_index_or_empty()
        if replace:
            for position, export in enumerate(index.exports):
                if export.gist_url == entry.gist_url:
                    index.exports[position] = entry
                    break
            else:
                index.exports.append(entry)
        else:
            index.exports.append(entry)
        index.touch()
        self._cache.save_index(index)

    def add_export(self, entry: IndexedPrompt) -> None:
        """Record an export entry remotely and in the cached index."""
        self._remote.add_export(entry)
        self._mirror("add_export", lambda: self._cache_export(entry, replace=False))

    def update_export(self, entry: IndexedPrompt) -> None:
        """Replace the export entry sharing *entry*'s gist URL."""
        self._remote.update_export(entry)
        self._mirror("update_export", lambda: self._cache_export(entry, replace=True))

    # ------------------------------------------------------------------
    # Maintenance and sharing
    # ------------------------------------------------------------------

    def sync_raw_index(self) -> None:
        """Copy the remote index document into the cache verbatim."""
        self._cache.save_raw_index(self._remote.get_raw_index_content())
        logger.info("Synchronised cached index", extra={"path": str(self._cache.index_path)})

    def cache_info(self) -> CacheInfo:
        """Return statistics about the local cache."""
        return self._cache.get_cache_info()

    def create_public_gist(self, prompt: Prompt) -> str:
        """Publish *prompt* as a public gist and return its URL."""
        return self._remote.create_public_gist(prompt)

    def update_public_gist(self, gist_url: str, prompt: Prompt) -> None:
        """Overwrite the public gist at *gist_url* with *prompt*."""
        self._remote.update_public_gist(gist_url, prompt)

    def get_gist_info(self, gist_url: str) -> GistInfo:
        """Return metadata for the gist at *gist_url*."""
        return self._remote.get_gist_info(gist_url)


__all__ = ["CachedStore"]
