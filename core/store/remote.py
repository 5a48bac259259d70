"""Gist-backed remote prompt store.

The store keeps one private *index gist* (description ``pv-prompts-index``,
file ``index.json``) listing prompt metadata, and one private gist per prompt
holding ``<name>.yaml``. Index edits are read-modify-write: the gist's latest
history version is recorded on read and compared again right before writing;
a changed version re-runs the mutation on the fresh index and gives up with
:class:`~core.exceptions.ConflictError` after a bounded number of attempts.

The store never falls back to anything local: client failures propagate.

Updates:
  v0.4.0 - 2026-10-02 - Check the index version before writing and retry on conflict.
  v0.3.0 - 2026-09-28 - Add public share helpers and gist info lookups.
  v0.2.0 - 2026-09-14 - Track exported prompts alongside the main index list.
  v0.1.0 - 2026-09-07 - Initial gist store with lazy index discovery.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

import yaml

from models.prompt_model import GistInfo, IndexedPrompt, Prompt, PromptIndex

from ..exceptions import (
    AuthError,
    ConflictError,
    EmptyCollectionError,
    InvalidGistURLError,
    NoIndexError,
    RemoteNotFoundError,
    RemoteStoreError,
)
from .base import (
    PROMPT_FILE_SUFFIX,
    dump_index,
    entry_matches_delete,
    extract_gist_id,
    matches_keyword,
    prompt_file_name,
    require_keyword,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..gist_client import Gist, GistClient

logger = logging.getLogger("prompt_vault.store.remote")

INDEX_GIST_DESCRIPTION: Final[str] = "pv-prompts-index"
INDEX_FILE_NAME: Final[str] = "index.json"
MAX_INDEX_WRITE_ATTEMPTS: Final[int] = 3


def _describe(prompt: Prompt) -> str:
    if prompt.description:
        return f"Prompt: {prompt.name} - {prompt.description}"
    return f"Prompt: {prompt.name}"


def render_share_content(prompt: Prompt) -> str:
    """Return the body published for *prompt*, preferring its raw content."""
    if prompt.content.strip():
        return prompt.content
    payload = {
        "name": prompt.name,
        "author": prompt.author,
        "description": prompt.description,
        "tags": list(prompt.tags),
        "version": prompt.version,
        "content": prompt.content,
    }
    return yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)


class GistStore:
    """Prompt store persisting the index and prompt bodies as GitHub gists."""

    def __init__(
        self,
        client: GistClient,
        *,
        index_description: str = INDEX_GIST_DESCRIPTION,
    ) -> None:
        """Wrap an authenticated *client*; the index is located on first use."""
        self._client = client
        self._index_description = index_description
        self._index_gist_id: str | None = None

    @property
    def index_gist_id(self) -> str | None:
        """Return the located index gist id, if initialisation has happened."""
        return self._index_gist_id

    # ------------------------------------------------------------------
    # Index bootstrap and persistence
    # ------------------------------------------------------------------

    def _locate_index(self) -> str | None:
        for gist in self._client.iter_gists():
            if gist.description == self._index_description:
                return gist.id
        return None

    def _create_index(self) -> str:
        gist = self._client.create_gist(
            self._index_description,
            {INDEX_FILE_NAME: dump_index(PromptIndex())},
            public=False,
        )
        logger.info("Created prompt index gist", extra={"gist_id": gist.id})
        return gist.id

    def _ensure_index(self, *, create: bool) -> str:
        if self._index_gist_id is not None:
            return self._index_gist_id
        gist_id = self._locate_index()
        if gist_id is None:
            if not create:
                raise NoIndexError()
            gist_id = self._create_index()
        self._index_gist_id = gist_id
        logger.debug("Using prompt index gist", extra={"gist_id": gist_id})
        return gist_id

    def _fetch_index_gist(self, *, create: bool) -> Gist:
        gist_id = self._ensure_index(create=create)
        try:
            return self._client.get_gist(gist_id)
        except RemoteNotFoundError as exc:
            logger.warning("Prompt index gist disappeared", extra={"gist_id": gist_id})
            self._index_gist_id = None
            if not create:
                raise NoIndexError() from exc
        return self._client.get_gist(self._ensure_index(create=True))

    def _read_index_text(self, gist: Gist) -> str:
        index_file = gist.files.get(INDEX_FILE_NAME)
        if index_file is None:
            raise RemoteStoreError(f"Index file {INDEX_FILE_NAME} not found in gist {gist.id}")
        return self._client.file_content(index_file)

    def _load_index(self, *, create: bool = False) -> tuple[PromptIndex, str | None]:
        gist = self._fetch_index_gist(create=create)
        text = self._read_index_text(gist)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RemoteStoreError(f"Failed to parse remote index in gist {gist.id}") from exc
        if not isinstance(data, dict):
            raise RemoteStoreError(f"Remote index in gist {gist.id} must be a JSON object")
        return PromptIndex.from_record(data), gist.version

    def _mutate_index(self, mutate: Callable[[PromptIndex], bool]) -> None:
        """Apply *mutate* to a fresh index and write it back.

        *mutate* returns ``False`` when it changed nothing, in which case the
        index is left untouched.
        """
        for attempt in range(1, MAX_INDEX_WRITE_ATTEMPTS + 1):
            index, version = self._load_index(create=True)
            if not mutate(index):
                return
            gist_id = self._ensure_index(create=True)
            if version is not None:
                current = self._client.get_gist(gist_id).version
                if current != version:
                    logger.warning(
                        "Prompt index changed during update; retrying",
                        extra={"attempt": attempt, "gist_id": gist_id},
                    )
                    continue
            index.touch()
            self._client.edit_gist(gist_id, files={INDEX_FILE_NAME: dump_index(index)})
            return
        raise ConflictError(
            f"Prompt index changed concurrently {MAX_INDEX_WRITE_ATTEMPTS} times; update abandoned"
        )

    def get_raw_index_content(self) -> str:
        """Return ``index.json`` exactly as stored in the index gist."""
        return self._read_index_text(self._fetch_index_gist(create=False))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> list[Prompt]:
        """Return prompts whose index entry still resolves to a readable gist file."""
        index, _ = self._load_index()
        if not index.prompts:
            raise EmptyCollectionError()
        prompts: list[Prompt] = []
        for entry in index.prompts:
            gist_id = extract_gist_id(entry.gist_url)
            if not gist_id:
                continue
            try:
                gist = self._client.get_gist(gist_id)
            except AuthError:
                raise
            except RemoteStoreError as exc:
                logger.debug(
                    "Skipping inaccessible prompt gist",
                    extra={"gist_id": gist_id, "error": str(exc)},
                )
                continue
            if entry.file_path not in gist.files:
                continue
            prompts.append(
                Prompt(
                    id=gist_id,
                    name=entry.name,
                    author=entry.author,
                    gist_url=entry.gist_url,
                    parent=entry.parent,
                )
            )
        if not prompts:
            raise EmptyCollectionError()
        return prompts

    def get(self, keyword: str) -> list[Prompt]:
        """Return prompts whose name, author, or id contains *keyword*."""
        return [prompt for prompt in self.list() if matches_keyword(prompt, keyword)]

    def get_content(self, prompt_id: str) -> str:
        """Return the raw ``.yaml`` body stored in gist *prompt_id*."""
        gist = self._client.get_gist(prompt_id)
        for name, gist_file in gist.files.items():
            if name.endswith(PROMPT_FILE_SUFFIX):
                return self._client.file_content(gist_file)
        raise RemoteNotFoundError(f"No {PROMPT_FILE_SUFFIX} file found in gist {prompt_id}")

    def _existing_prompts(self) -> list[Prompt]:
        try:
            return self.list()
        except (NoIndexError, EmptyCollectionError):
            return []

    def find_by_url(self, gist_url: str) -> Prompt | None:
        """Return the prompt stored at *gist_url*, if any."""
        for prompt in self._existing_prompts():
            if prompt.gist_url == gist_url:
                return prompt
        return None

    def _find_existing(self, name: str, author: str) -> Prompt | None:
        for prompt in self._existing_prompts():
            if prompt.name == name and prompt.author == author:
                return prompt
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, prompt: Prompt) -> Prompt:
        """Create a prompt gist and index entry, or update a name/author match."""
        existing = self._find_existing(prompt.name, prompt.author)
        if existing is not None:
            logger.info(
                "Prompt with the same name and author exists; updating instead",
                extra={"gist_id": existing.id, "prompt_name": prompt.name},
            )
            existing.content = prompt.content
            existing.description = prompt.description
            existing.tags = list(prompt.tags)
            existing.version = prompt.version
            return self.update(existing)

        self._ensure_index(create=True)
        file_name = prompt_file_name(prompt.name)
        gist = self._client.create_gist(
            _describe(prompt),
            {file_name: prompt.content},
            public=False,
        )
        stored = replace(prompt, id=gist.id, gist_url=gist.html_url)
        entry = IndexedPrompt.from_prompt(stored, file_path=file_name)

        def _append(index: PromptIndex) -> bool:
            index.prompts.append(entry)
            return True

        self._mutate_index(_append)
        logger.info("Added prompt", extra={"gist_id": gist.id, "prompt_name": prompt.name})
        return stored

    def update(self, prompt: Prompt) -> Prompt:
        """Replace the prompt file, renaming it when the prompt name changed."""
        gist_id = prompt.id or extract_gist_id(prompt.gist_url)
        if not gist_id:
            raise ValueError("Prompt has no gist id to update")
        existing = self._client.get_gist(gist_id)
        file_name = prompt_file_name(prompt.name)
        existing_file = next(
            (name for name in existing.files if name.endswith(PROMPT_FILE_SUFFIX)),
            file_name,
        )
        files: dict[str, str | None] = {file_name: prompt.content}
        if existing_file != file_name:
            files[existing_file] = None
        updated = self._client.edit_gist(gist_id, files=files, description=_describe(prompt))
        stored = replace(
            prompt,
            id=gist_id,
            gist_url=prompt.gist_url or updated.html_url or existing.html_url,
        )

        def _apply(index: PromptIndex) -> bool:
            for entry in index.prompts:
                if extract_gist_id(entry.gist_url) == gist_id:
                    entry.author = stored.author
                    entry.name = stored.name
                    entry.file_path = file_name
                    entry.last_updated = datetime.now(UTC)
                    return True
            logger.warning("Updated prompt has no index entry", extra={"gist_id": gist_id})
            return False

        self._mutate_index(_apply)
        return stored

    def delete(self, keyword: str) -> list[IndexedPrompt]:
        """Delete prompts whose id equals or whose file path contains *keyword*."""
        require_keyword(keyword)
        try:
            index, _ = self._load_index()
        except NoIndexError:
            return []
        targets = [entry for entry in index.prompts if entry_matches_delete(entry, keyword)]
        if not targets:
            logger.info("No prompts matched delete keyword", extra={"keyword": keyword})
            return []

        deleted_ids: set[str] = set()
        failure: RemoteStoreError | None = None
        for entry in targets:
            gist_id = extract_gist_id(entry.gist_url)
            try:
                self._client.delete_gist(gist_id)
            except RemoteNotFoundError:
                logger.info("Prompt gist already gone", extra={"gist_id": gist_id})
            except RemoteStoreError as exc:
                failure = exc
                break
            deleted_ids.add(gist_id)

        def _remove(index: PromptIndex) -> bool:
            remaining = [
                entry
                for entry in index.prompts
                if extract_gist_id(entry.gist_url) not in deleted_ids
            ]
            changed = len(remaining) != len(index.prompts)
            index.prompts = remaining
            return changed

        if deleted_ids:
            self._mutate_index(_remove)
        if failure is not None:
            raise failure
        return [entry for entry in targets if extract_gist_id(entry.gist_url) in deleted_ids]

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def add_export(self, entry: IndexedPrompt) -> None:
        """Append *entry* to the export list."""

        def _append(index: PromptIndex) -> bool:
            index.exports.append(entry)
            return True

        self._mutate_index(_append)

    def update_export(self, entry: IndexedPrompt) -> None:
        """Replace the export with *entry*'s gist URL, appending when absent."""

        def _upsert(index: PromptIndex) -> bool:
            for position, export in enumerate(index.exports):
                if export.gist_url == entry.gist_url:
                    index.exports[position] = entry
                    return True
            index.exports.append(entry)
            return True

        self._mutate_index(_upsert)

    def get_exports(self) -> list[IndexedPrompt]:
        """Return the recorded exports."""
        index, _ = self._load_index()
        return index.exports

    # ------------------------------------------------------------------
    # Public sharing
    # ------------------------------------------------------------------

    def create_public_gist(self, prompt: Prompt) -> str:
        """Publish *prompt* as a new public gist and return its URL."""
        gist = self._client.create_gist(
            prompt.description,
            {prompt_file_name(prompt.name): render_share_content(prompt)},
            public=True,
        )
        logger.info("Published public prompt gist", extra={"gist_id": gist.id})
        return gist.html_url

    def update_public_gist(self, gist_url: str, prompt: Prompt) -> None:
        """Replace the contents of the public gist at *gist_url* with *prompt*."""
        gist_id = extract_gist_id(gist_url)
        if not gist_id:
            raise InvalidGistURLError(f"Invalid gist URL: {gist_url}")
        existing = self._client.get_gist(gist_id)
        file_name = prompt_file_name(prompt.name)
        files: dict[str, str | None] = {file_name: render_share_content(prompt)}
        for old_name in existing.files:
            if old_name != file_name:
                files[old_name] = None
        self._client.edit_gist(gist_id, files=files, description=prompt.description)

    def get_gist_info(self, gist_url: str) -> GistInfo:
        """Return visibility details for *gist_url*; missing gists report no access."""
        gist_id = extract_gist_id(gist_url)
        if not gist_id:
            raise InvalidGistURLError(f"Invalid gist URL: {gist_url}")
        try:
            gist = self._client.get_gist(gist_id)
        except RemoteNotFoundError:
            return GistInfo(id=gist_id, url=gist_url, is_public=False, has_access=False)
        return GistInfo(
            id=gist_id,
            url=gist_url,
            is_public=gist.public,
            has_access=True,
            description=gist.description,
            owner=gist.owner,
        )


__all__ = [
    "INDEX_FILE_NAME",
    "INDEX_GIST_DESCRIPTION",
    "MAX_INDEX_WRITE_ATTEMPTS",
    "GistStore",
    "render_share_content",
]
