"""Pytest configuration for shared test fixtures and fakes.

Updates:
  v0.2.0 - 2026-10-02 - Simulate concurrent index edits in the fake gist client.
  v0.1.0 - 2026-09-07 - In-memory gist client and store fixtures.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Self, cast

import pytest

from core.exceptions import RemoteNotFoundError
from core.gist_client import Gist, GistFile
from core.store import CachedStore, GistStore, LocalCacheStore

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from core.gist_client import GistClient

_ENV_VARS = (
    "PROMPTVAULT_GITHUB_TOKEN",
    "PROMPTVAULT_GITHUB_API_URL",
    "PROMPTVAULT_CACHE_DIR",
    "PROMPTVAULT_FORCE_REMOTE",
    "PROMPTVAULT_MAX_RETRIES",
    "PROMPTVAULT_HTTP_LOGGING_ENABLED",
    "PROMPTVAULT_CONFIG_JSON",
    "PROMPTVAULT_ENV_FILE",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "PV_CACHE_DIR",
)


@dataclass
class _FailureRule:
    operation: str
    error: Exception
    gist_id: str | None = None


class FakeGistClient:
    """In-memory stand-in for :class:`core.gist_client.GistClient`."""

    def __init__(self, owner: str = "octocat") -> None:
        self.owner = owner
        self.gists: dict[str, Gist] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        self.concurrent_edits: dict[str, int] = {}
        self._ids = itertools.count(1)
        self._versions = itertools.count(1)
        self._rules: list[_FailureRule] = []

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.closed = True

    def fail(self, operation: str, error: Exception, *, gist_id: str | None = None) -> None:
        """Make *operation* (or ``"*"`` for every call) raise *error*."""
        self._rules.append(_FailureRule(operation, error, gist_id))

    def heal(self) -> None:
        self._rules.clear()

    def _check(self, operation: str, gist_id: str = "") -> None:
        self.calls.append((operation, gist_id))
        for rule in self._rules:
            if rule.operation not in {operation, "*"}:
                continue
            if rule.gist_id is not None and rule.gist_id != gist_id:
                continue
            raise rule.error

    def _next_version(self) -> str:
        return f"v{next(self._versions)}"

    def iter_gists(self) -> Iterator[Gist]:
        self._check("iter_gists")
        yield from list(self.gists.values())

    def get_gist(self, gist_id: str) -> Gist:
        self._check("get_gist", gist_id)
        gist = self.gists.get(gist_id)
        if gist is None:
            raise RemoteNotFoundError(f"Failed to get gist {gist_id}: HTTP 404", status_code=404)
        pending = self.concurrent_edits.get(gist_id, 0)
        if pending > 0:
            self.concurrent_edits[gist_id] = pending - 1
            self.gists[gist_id] = replace(gist, version=self._next_version())
        return gist

    def create_gist(
        self,
        description: str,
        files: Mapping[str, str],
        *,
        public: bool = False,
    ) -> Gist:
        self._check("create_gist")
        gist_id = f"{next(self._ids):032x}"
        gist = Gist(
            id=gist_id,
            html_url=f"https://gist.github.com/{self.owner}/{gist_id}",
            description=description,
            public=public,
            files={name: GistFile(filename=name, content=text) for name, text in files.items()},
            owner=self.owner,
            version=self._next_version(),
        )
        self.gists[gist_id] = gist
        return gist

    def edit_gist(
        self,
        gist_id: str,
        *,
        files: Mapping[str, str | None],
        description: str | None = None,
    ) -> Gist:
        self._check("edit_gist", gist_id)
        existing = self.gists.get(gist_id)
        if existing is None:
            raise RemoteNotFoundError(f"Failed to update gist {gist_id}: HTTP 404", status_code=404)
        new_files = dict(existing.files)
        for name, text in files.items():
            if text is None:
                new_files.pop(name, None)
            else:
                new_files[name] = GistFile(filename=name, content=text)
        updated = replace(
            existing,
            files=new_files,
            description=existing.description if description is None else description,
            version=self._next_version(),
        )
        self.gists[gist_id] = updated
        return updated

    def delete_gist(self, gist_id: str) -> None:
        self._check("delete_gist", gist_id)
        if gist_id not in self.gists:
            raise RemoteNotFoundError(f"Failed to delete gist {gist_id}: HTTP 404", status_code=404)
        del self.gists[gist_id]

    def file_content(self, gist_file: GistFile) -> str:
        return gist_file.content or ""

    def index_gist(self) -> Gist | None:
        """Return the index gist when one has been created."""
        return next(
            (gist for gist in self.gists.values() if gist.description == "pv-prompts-index"),
            None,
        )

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real tokens, cache overrides, and config files out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_client() -> FakeGistClient:
    return FakeGistClient()


@pytest.fixture
def gist_store(fake_client: FakeGistClient) -> GistStore:
    return GistStore(cast("GistClient", fake_client))


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache_store(cache_dir: Path) -> LocalCacheStore:
    return LocalCacheStore(cache_dir)


@pytest.fixture
def cached_store(gist_store: GistStore, cache_store: LocalCacheStore) -> CachedStore:
    return CachedStore(gist_store, cache_store)