"""Prompt, index, and cache data model definitions.

Updates: v0.3.0 - 2026-09-28 - Add GistInfo dataclass for public share lookups.
Updates: v0.2.1 - 2026-09-21 - Accept nanosecond RFC 3339 timestamps written by older clients.
Updates: v0.2.0 - 2026-09-14 - Track exported prompts in a separate index list.
Updates: v0.1.0 - 2026-09-07 - Initial Prompt/IndexedPrompt/PromptIndex schema with JSON helpers.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

ZERO_TIMESTAMP = datetime(1, 1, 1, tzinfo=UTC)

_FRACTION_PATTERN = re.compile(r"(\.\d{6})\d+")


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO-8601/RFC 3339 timestamps into aware datetimes.

    Missing or unparsable values collapse to :data:`ZERO_TIMESTAMP` so a single
    malformed entry never makes a whole index unreadable.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return ZERO_TIMESTAMP
    text = str(value).strip()
    if not text:
        return ZERO_TIMESTAMP
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    # Index files may carry nanosecond precision; datetime only holds microseconds.
    text = _FRACTION_PATTERN.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ZERO_TIMESTAMP
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def format_timestamp(value: datetime) -> str:
    """Return the ISO-8601 representation stored in index documents."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def _string_list(items: Iterable[Any] | str | None) -> list[str]:
    """Normalise tag-like inputs into a list of non-empty strings."""
    if items is None:
        return []
    if isinstance(items, str):
        items = [items]
    return [str(item).strip() for item in items if str(item).strip()]


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(slots=True)
class Prompt:
    """A stored prompt: metadata plus the raw body kept in its gist."""
    id: str = ""
    name: str = ""
    author: str = ""
    gist_url: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    version: str = ""
    content: str = ""
    parent: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping."""
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "author": self.author,
            "gist_url": self.gist_url,
            "description": self.description,
            "tags": list(self.tags),
            "version": self.version,
            "content": self.content,
        }
        if self.parent:
            record["parent"] = self.parent
        return record

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Hydrate a Prompt from a mapping."""
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            author=str(data.get("author") or ""),
            gist_url=str(data.get("gist_url") or ""),
            description=str(data.get("description") or ""),
            tags=_string_list(data.get("tags")),
            version=str(data.get("version") or ""),
            content=str(data.get("content") or ""),
            parent=_optional_text(data.get("parent")),
        )


@dataclass(slots=True)
class IndexedPrompt:
    """Metadata-only projection of a prompt stored in the index document."""
    gist_url: str
    file_path: str
    author: str = ""
    name: str = ""
    last_updated: datetime = field(default_factory=_utc_now)
    parent: str | None = None

    def to_record(self) -> dict[str, Any]:
        """Return the JSON mapping written to ``index.json``."""
        record: dict[str, Any] = {
            "gist_url": self.gist_url,
            "file_path": self.file_path,
            "author": self.author,
            "name": self.name,
            "last_updated": format_timestamp(self.last_updated),
        }
        if self.parent:
            record["parent"] = self.parent
        return record

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> IndexedPrompt:
        """Hydrate an index entry from a JSON mapping."""
        return cls(
            gist_url=str(data.get("gist_url") or ""),
            file_path=str(data.get("file_path") or ""),
            author=str(data.get("author") or ""),
            name=str(data.get("name") or ""),
            last_updated=parse_timestamp(data.get("last_updated")),
            parent=_optional_text(data.get("parent")),
        )

    @classmethod
    def from_prompt(
        cls,
        prompt: Prompt,
        *,
        file_path: str,
        last_updated: datetime | None = None,
    ) -> IndexedPrompt:
        """Project *prompt* into an index entry stored at *file_path*."""
        return cls(
            gist_url=prompt.gist_url,
            file_path=file_path,
            author=prompt.author,
            name=prompt.name,
            last_updated=last_updated or _utc_now(),
            parent=prompt.parent,
        )


def _entries(value: Any) -> list[IndexedPrompt]:
    if not isinstance(value, list):
        return []
    return [IndexedPrompt.from_record(item) for item in value if isinstance(item, Mapping)]


@dataclass(slots=True)
class PromptIndex:
    """The single per-account index document."""
    prompts: list[IndexedPrompt] = field(default_factory=list)
    last_updated: datetime = field(default_factory=_utc_now)
    exports: list[IndexedPrompt] = field(default_factory=list)

    def touch(self) -> None:
        """Refresh the index-level timestamp."""
        self.last_updated = _utc_now()

    def to_record(self) -> dict[str, Any]:
        """Return the JSON mapping written to ``index.json``."""
        return {
            "prompts": [entry.to_record() for entry in self.prompts],
            "last_updated": format_timestamp(self.last_updated),
            "exports": [entry.to_record() for entry in self.exports],
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptIndex:
        """Hydrate an index; ``null`` or missing lists become empty lists."""
        return cls(
            prompts=_entries(data.get("prompts")),
            last_updated=parse_timestamp(data.get("last_updated")),
            exports=_entries(data.get("exports")),
        )


@dataclass(slots=True, frozen=True)
class CacheInfo:
    """Statistics derived from the local cache directory."""
    last_updated: datetime = ZERO_TIMESTAMP
    total_prompts: int = 0
    cache_size: int = 0


@dataclass(slots=True, frozen=True)
class GistInfo:
    """Access and visibility details for a gist addressed by URL."""
    id: str
    url: str
    is_public: bool = False
    has_access: bool = False
    description: str = ""
    owner: str = ""


__all__ = [
    "ZERO_TIMESTAMP",
    "CacheInfo",
    "GistInfo",
    "IndexedPrompt",
    "Prompt",
    "PromptIndex",
    "format_timestamp",
    "parse_timestamp",
]
