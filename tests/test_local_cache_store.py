"""Local cache store persistence, permission, and atomic write tests.

Updates:
  v0.2.1 - 2026-10-18 - Cover temporary file creation failures.
  v0.2.0 - 2026-10-02 - Cover verbatim raw index writes and content removal.
  v0.1.0 - 2026-09-07 - Cover index/content round trips and cache statistics.
"""

from __future__ import annotations

import errno
import json
import os
import stat
from datetime import UTC, datetime
from pathlib import Path

import pytest

from core.exceptions import CacheIndexCorruptError, CacheIndexMissingError, StorageError
from core.store import LocalCacheStore
from models.prompt_model import ZERO_TIMESTAMP, IndexedPrompt, PromptIndex

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")


def _sample_index() -> PromptIndex:
    stamp = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
    return PromptIndex(
        prompts=[
            IndexedPrompt(
                gist_url="https://gist.github.com/octocat/aaaaaaaaaa",
                file_path="alpha.yaml",
                author="octocat",
                name="alpha",
                last_updated=stamp,
            )
        ],
        last_updated=stamp,
    )


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


@posix_only
def test_ensure_layout_creates_owner_only_directories(cache_store: LocalCacheStore) -> None:
    cache_store.ensure_layout()

    assert _mode(cache_store.cache_dir) == 0o700
    assert _mode(cache_store.cache_dir / "prompts") == 0o700


@posix_only
def test_ensure_layout_tightens_existing_directories(cache_dir: Path) -> None:
    (cache_dir / "prompts").mkdir(parents=True)
    cache_dir.chmod(0o755)
    (cache_dir / "prompts").chmod(0o775)

    LocalCacheStore(cache_dir).ensure_layout()
    LocalCacheStore(cache_dir).ensure_layout()

    assert _mode(cache_dir) == 0o700
    assert _mode(cache_dir / "prompts") == 0o700


def test_index_roundtrip(cache_store: LocalCacheStore) -> None:
    index = _sample_index()

    cache_store.save_index(index)
    loaded = cache_store.load_index()

    assert loaded.prompts == index.prompts
    assert loaded.last_updated == index.last_updated
    assert json.loads(cache_store.index_path.read_text(encoding="utf-8"))["exports"] == []


@posix_only
def test_saved_files_are_owner_read_write(cache_store: LocalCacheStore) -> None:
    cache_store.save_index(_sample_index())
    cache_store.save_content("aaaaaaaaaa", "body")

    assert _mode(cache_store.index_path) == 0o600
    assert _mode(cache_store.content_path("aaaaaaaaaa")) == 0o600


def test_load_index_distinguishes_missing_and_corrupt(cache_store: LocalCacheStore) -> None:
    with pytest.raises(CacheIndexMissingError):
        cache_store.load_index()

    cache_store.ensure_layout()
    cache_store.index_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CacheIndexCorruptError):
        cache_store.load_index()

    cache_store.index_path.write_text("[]", encoding="utf-8")
    with pytest.raises(StorageError):
        cache_store.load_index()


def test_content_is_preserved_byte_for_byte(cache_store: LocalCacheStore) -> None:
    body = "name: greet\r\ncontent: |\n  Hello, {{ name }}!\n\n  ünïcode\n"

    cache_store.save_content("bbbbbbbbbb", body)

    assert cache_store.load_content("bbbbbbbbbb") == body


def test_load_missing_content_raises_storage_error(cache_store: LocalCacheStore) -> None:
    with pytest.raises(StorageError):
        cache_store.load_content("cccccccccc")


def test_delete_content_ignores_missing_files(cache_store: LocalCacheStore) -> None:
    cache_store.save_content("dddddddddd", "x")

    cache_store.delete_content("dddddddddd")
    cache_store.delete_content("dddddddddd")

    assert not cache_store.content_path("dddddddddd").exists()


@pytest.mark.parametrize("prompt_id", ["", "../escape", "a/b", ".hidden"])
def test_content_path_rejects_unsafe_ids(cache_store: LocalCacheStore, prompt_id: str) -> None:
    with pytest.raises(StorageError):
        cache_store.content_path(prompt_id)


def test_failed_write_keeps_previous_index_intact(
    cache_store: LocalCacheStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    cache_store.save_index(_sample_index())
    original = cache_store.index_path.read_text(encoding="utf-8")

    def _fail_replace(src: object, dst: object) -> None:
        raise OSError("disk full")

    with monkeypatch.context() as patch:
        patch.setattr("core.store.local.os.replace", _fail_replace)
        with pytest.raises(StorageError):
            cache_store.save_index(PromptIndex())

    assert cache_store.index_path.read_text(encoding="utf-8") == original
    assert len(cache_store.load_index().prompts) == 1
    assert sorted(path.name for path in cache_store.cache_dir.iterdir()) == [
        "index.json",
        "prompts",
    ]


def test_temp_file_creation_failure_raises_storage_error(
    cache_store: LocalCacheStore,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _no_space(*args: object, **kwargs: object) -> tuple[int, str]:
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr("core.store.local.tempfile.mkstemp", _no_space)

    with pytest.raises(StorageError, match="No space left"):
        cache_store.save_content("abc123", "body")
    with pytest.raises(StorageError):
        cache_store.save_index(_sample_index())


def test_repeated_save_load_cycles_stay_parseable(cache_store: LocalCacheStore) -> None:
    index = _sample_index()
    for position in range(5):
        index.prompts.append(
            IndexedPrompt(
                gist_url=f"https://gist.github.com/octocat/{position:010d}",
                file_path=f"p{position}.yaml",
            )
        )
        cache_store.save_index(index)
        assert len(cache_store.load_index().prompts) == position + 2


def test_save_raw_index_writes_text_verbatim(cache_store: LocalCacheStore) -> None:
    raw = '{"prompts":[],"last_updated":"2024-01-01T00:00:00.123456789Z","exports":null}'

    cache_store.save_raw_index(raw)

    assert cache_store.index_path.read_text(encoding="utf-8") == raw
    assert cache_store.load_index().exports == []


def test_save_raw_index_rejects_invalid_json(cache_store: LocalCacheStore) -> None:
    cache_store.save_index(_sample_index())
    original = cache_store.index_path.read_text(encoding="utf-8")

    with pytest.raises(CacheIndexCorruptError):
        cache_store.save_raw_index("{broken")

    assert cache_store.index_path.read_text(encoding="utf-8") == original


def test_cache_info_reports_saved_index(cache_store: LocalCacheStore) -> None:
    index = _sample_index()
    cache_store.save_index(index)
    cache_store.save_content("aaaaaaaaaa", "hello")

    info = cache_store.get_cache_info()

    assert info.total_prompts == 1
    assert info.last_updated == index.last_updated
    expected_size = cache_store.index_path.stat().st_size + 5
    assert info.cache_size == expected_size


def test_cache_info_survives_corrupt_index(cache_store: LocalCacheStore) -> None:
    cache_store.save_content("aaaaaaaaaa", "cached body")
    cache_store.index_path.write_text("corrupted!", encoding="utf-8")

    info = cache_store.get_cache_info()

    assert info.total_prompts == 0
    assert info.last_updated == ZERO_TIMESTAMP
    assert info.cache_size > 0


def test_cache_info_for_missing_directory(tmp_path: Path) -> None:
    info = LocalCacheStore(tmp_path / "nowhere").get_cache_info()

    assert info.total_prompts == 0
    assert info.cache_size == 0
    assert info.last_updated == ZERO_TIMESTAMP
