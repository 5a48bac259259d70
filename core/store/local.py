"""On-disk mirror of the prompt index and prompt bodies.

Layout under the cache root::

    index.json
    prompts/<gist-id>.yaml

Directories are owner-only (0700) and files owner read/write (0600). Every
write goes to a temporary file in the target directory which is renamed over
the destination, so readers never observe a partially written file.

Updates:
  v0.3.0 - 2026-10-02 - Add verbatim raw index writes and content removal.
  v0.2.0 - 2026-09-21 - Distinguish missing and corrupt cached indexes.
  v0.1.0 - 2026-09-07 - Initial local cache store with atomic writes.
"""

from __future__ import annotations

import json
import logging
import os
import re
import stat
import tempfile
from pathlib import Path
from typing import Final

from models.prompt_model import ZERO_TIMESTAMP, CacheInfo, PromptIndex

from ..exceptions import CacheIndexCorruptError, CacheIndexMissingError, StorageError
from .base import PROMPT_FILE_SUFFIX, dump_index

logger = logging.getLogger("prompt_vault.cache")

INDEX_FILE_NAME: Final[str] = "index.json"
PROMPTS_DIR_NAME: Final[str] = "prompts"
DIR_MODE: Final[int] = 0o700
FILE_MODE: Final[int] = 0o600

_SAFE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _parse_index(text: str, path: Path) -> PromptIndex:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CacheIndexCorruptError(f"Cached index at {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CacheIndexCorruptError(f"Cached index at {path} must be a JSON object")
    return PromptIndex.from_record(data)


class LocalCacheStore:
    """Filesystem primitives for the local prompt cache; holds no policy."""

    def __init__(self, cache_dir: Path | str) -> None:
        self._root = Path(cache_dir).expanduser()
        self._prompts_dir = self._root / PROMPTS_DIR_NAME
        self._index_path = self._root / INDEX_FILE_NAME

    @property
    def cache_dir(self) -> Path:
        """Return the cache root directory."""
        return self._root

    @property
    def index_path(self) -> Path:
        """Return the path of the cached ``index.json``."""
        return self._index_path

    def ensure_layout(self) -> None:
        """Create the cache root and prompts directory with owner-only permissions."""
        for directory in (self._root, self._prompts_dir):
            try:
                directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
                if os.name != "nt":
                    current = directory.stat().st_mode & 0o777
                    if current != DIR_MODE:
                        directory.chmod(DIR_MODE)
            except OSError as exc:
                raise StorageError(f"Unable to prepare cache directory {directory}: {exc}") from exc

    def content_path(self, prompt_id: str) -> Path:
        """Return the cached content path for *prompt_id*."""
        if not prompt_id or not _SAFE_ID_PATTERN.match(prompt_id) or ".." in prompt_id:
            raise StorageError(f"Invalid prompt id for cache path: {prompt_id!r}")
        return self._prompts_dir / f"{prompt_id}{PROMPT_FILE_SUFFIX}"

    def _atomic_write(self, path: Path, text: str) -> None:
        self.ensure_layout()
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        except OSError as exc:
            raise StorageError(f"Unable to create temporary file for {path}: {exc}") from exc
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            if os.name != "nt":
                tmp_path.chmod(FILE_MODE)
            os.replace(tmp_path, path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Unable to write cache file {path}: {exc}") from exc
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def load_index(self) -> PromptIndex:
        """Return the cached index.

        Raises:
          CacheIndexMissingError: ``index.json`` does not exist.
          CacheIndexCorruptError: ``index.json`` cannot be read or parsed.
        """
        try:
            text = self._index_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CacheIndexMissingError(f"No cached index at {self._index_path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheIndexCorruptError(
                f"Unable to read cached index at {self._index_path}: {exc}"
            ) from exc
        return _parse_index(text, self._index_path)

    def save_index(self, index: PromptIndex) -> None:
        """Persist *index* as indented JSON."""
        self._atomic_write(self._index_path, dump_index(index))
        logger.debug(
            "Saved cached index",
            extra={"path": str(self._index_path), "prompts": len(index.prompts)},
        )

    def save_raw_index(self, text: str) -> None:
        """Persist index JSON exactly as given once it parses as an index."""
        _parse_index(text, self._index_path)
        self._atomic_write(self._index_path, text)

    def load_content(self, prompt_id: str) -> str:
        """Return the cached body of *prompt_id*."""
        path = self.content_path(prompt_id)
        try:
            with path.open("r", encoding="utf-8", newline="") as handle:
                return handle.read()
        except FileNotFoundError as exc:
            raise StorageError(f"Prompt {prompt_id} is not cached") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Unable to read cached prompt {prompt_id}: {exc}") from exc

    def save_content(self, prompt_id: str, content: str) -> None:
        """Persist the body of *prompt_id* unchanged."""
        self._atomic_write(self.content_path(prompt_id), content)

    def delete_content(self, prompt_id: str) -> None:
        """Remove the cached body of *prompt_id*; missing files are ignored."""
        path = self.content_path(prompt_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Unable to remove cached prompt {prompt_id}: {exc}") from exc

    def _directory_size(self) -> int:
        total = 0
        for current, _dirs, files in os.walk(self._root):
            for name in files:
                try:
                    info = os.lstat(os.path.join(current, name))
                except OSError:
                    continue
                if stat.S_ISREG(info.st_mode):
                    total += info.st_size
        return total

    def get_cache_info(self) -> CacheInfo:
        """Return cache statistics; never raises."""
        try:
            index = self.load_index()
        except StorageError:
            total_prompts = 0
            last_updated = ZERO_TIMESTAMP
        else:
            total_prompts = len(index.prompts)
            last_updated = index.last_updated
        return CacheInfo(
            last_updated=last_updated,
            total_prompts=total_prompts,
            cache_size=self._directory_size(),
        )


__all__ = ["DIR_MODE", "FILE_MODE", "INDEX_FILE_NAME", "PROMPTS_DIR_NAME", "LocalCacheStore"]
