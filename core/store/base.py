"""Prompt store contract and helpers shared by every storage backend.

Updates:
  v0.2.0 - 2026-09-28 - Add validating gist URL parser for user-supplied links.
  v0.1.0 - 2026-09-07 - Extract store protocol and keyword matching helpers.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Final, Protocol
from urllib.parse import urlsplit

from ..exceptions import InvalidGistURLError

if TYPE_CHECKING:
    from models.prompt_model import GistInfo, IndexedPrompt, Prompt, PromptIndex

PROMPT_FILE_SUFFIX: Final[str] = ".yaml"

_GIST_HOSTS: Final[set[str]] = {"gist.github.com", "github.com"}
_GIST_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
_MIN_GIST_ID_LENGTH: Final[int] = 10


class PromptStore(Protocol):
    """Operations every prompt storage backend provides."""

    def list(self) -> list[Prompt]:
        """Return every prompt derivable from the index."""
        ...

    def get(self, keyword: str) -> list[Prompt]:
        """Return prompts whose name, author, or id contains *keyword*."""
        ...

    def get_content(self, prompt_id: str) -> str:
        """Return the raw content document for *prompt_id*."""
        ...

    def add(self, prompt: Prompt) -> Prompt:
        """Store *prompt*, updating an existing name/author match instead of duplicating."""
        ...

    def update(self, prompt: Prompt) -> Prompt:
        """Replace the stored content and index entry of *prompt*."""
        ...

    def delete(self, keyword: str) -> list[IndexedPrompt]:
        """Remove prompts matching *keyword* and return the removed entries."""
        ...

    def add_export(self, entry: IndexedPrompt) -> None:
        """Record a publicly shared prompt."""
        ...

    def update_export(self, entry: IndexedPrompt) -> None:
        """Replace the export sharing *entry*'s gist URL, appending when absent."""
        ...

    def get_exports(self) -> list[IndexedPrompt]:
        """Return recorded exports."""
        ...

    def find_by_url(self, gist_url: str) -> Prompt | None:
        """Return the prompt stored at *gist_url*, if any."""
        ...


class RemotePromptStore(PromptStore, Protocol):
    """Prompt store backed by the hosted service, adding sharing and raw index access."""

    def get_raw_index_content(self) -> str:
        """Return the index document text exactly as stored remotely."""
        ...

    def create_public_gist(self, prompt: Prompt) -> str:
        """Publish *prompt* publicly and return its URL."""
        ...

    def update_public_gist(self, gist_url: str, prompt: Prompt) -> None:
        """Replace the published copy of *prompt* at *gist_url*."""
        ...

    def get_gist_info(self, gist_url: str) -> GistInfo:
        """Return visibility details for *gist_url*."""
        ...


def extract_gist_id(gist_url: str) -> str:
    """Return the trailing path segment of *gist_url* without validation."""
    parts = gist_url.rstrip("/").split("/")
    if len(parts) < 2:
        return ""
    return parts[-1].removesuffix(".git")


def parse_gist_id(gist_url: str) -> str:
    """Return the gist id from a ``gist.github.com`` URL, validating its shape."""
    if not gist_url or not gist_url.strip():
        raise InvalidGistURLError("Gist URL must not be empty")
    parts = urlsplit(gist_url.strip())
    if parts.hostname not in _GIST_HOSTS:
        raise InvalidGistURLError(f"Not a GitHub gist URL: {gist_url}")
    segments = [segment for segment in parts.path.split("/") if segment]
    if not segments:
        raise InvalidGistURLError(f"Gist URL has no gist id: {gist_url}")
    gist_id = segments[-1].removesuffix(".git")
    if not _GIST_ID_PATTERN.match(gist_id) or len(gist_id) < _MIN_GIST_ID_LENGTH:
        raise InvalidGistURLError(f"Invalid gist id in URL: {gist_url}")
    return gist_id


def dump_index(index: PromptIndex) -> str:
    """Serialise *index* the way it is stored in gists and the local cache."""
    return json.dumps(index.to_record(), indent=2, ensure_ascii=False)


def prompt_file_name(name: str) -> str:
    """Return the gist file name holding the prompt called *name*."""
    return f"{name}{PROMPT_FILE_SUFFIX}"


def matches_keyword(prompt: Prompt, keyword: str) -> bool:
    """Case-insensitive substring match over name, author, and id."""
    needle = keyword.lower()
    return (
        needle in prompt.name.lower()
        or needle in prompt.author.lower()
        or needle in prompt.id.lower()
    )


def entry_matches_delete(entry: IndexedPrompt, keyword: str) -> bool:
    """Return ``True`` when a delete *keyword* selects *entry*.

    The id must match exactly while the file path matches by substring.
    """
    return extract_gist_id(entry.gist_url) == keyword or keyword in entry.file_path


def require_keyword(keyword: str) -> str:
    """Reject blank delete keywords, which would otherwise match every entry."""
    if not keyword or not keyword.strip():
        raise ValueError("Delete keyword must not be empty")
    return keyword


__all__ = [
    "PROMPT_FILE_SUFFIX",
    "PromptStore",
    "RemotePromptStore",
    "dump_index",
    "entry_matches_delete",
    "extract_gist_id",
    "matches_keyword",
    "parse_gist_id",
    "prompt_file_name",
    "require_keyword",
]
