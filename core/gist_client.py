"""Blocking GitHub Gists API client used by the remote prompt store.

The client is constructed once with an already-resolved bearer token and
handed to :class:`core.store.remote.GistStore`; it never looks credentials up
on its own. Every request runs with the fixed :data:`REQUEST_TIMEOUT_SECONDS`
timeout and transient failures are retried via :mod:`core.retry`.

Updates:
  v0.3.1 - 2026-10-18 - Send gist creation once; only idempotent requests are retried.
  v0.3.0 - 2026-09-28 - Fetch truncated gist files through their raw URL.
  v0.2.0 - 2026-09-21 - Map HTTP status codes onto the storage error taxonomy.
  v0.1.0 - 2026-09-07 - Initial httpx-backed Gists client.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Self, cast

import httpx

from .exceptions import (
    AuthError,
    ConflictError,
    NetworkError,
    RemoteNotFoundError,
    RemoteStoreError,
)
from .retry import RetryPolicy, retry

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger("prompt_vault.gist_client")

DEFAULT_API_URL: Final[str] = "https://api.github.com"
REQUEST_TIMEOUT_SECONDS: Final[float] = 10.0
REQUIRED_SCOPE: Final[str] = "gist"
_PAGE_SIZE: Final[int] = 100
_USER_AGENT: Final[str] = "PromptVault/GistStore"
_API_VERSION: Final[str] = "2022-11-28"
# Creating a gist is not idempotent; a retried POST can leave an orphaned gist.
_SINGLE_ATTEMPT: Final[RetryPolicy] = RetryPolicy(max_attempts=1)


@dataclass(frozen=True, slots=True)
class GistFile:
    """Single file inside a gist as reported by the API."""

    filename: str
    content: str | None = None
    truncated: bool = False
    raw_url: str | None = None


@dataclass(frozen=True, slots=True)
class Gist:
    """Subset of the gist payload consumed by the stores."""

    id: str
    html_url: str = ""
    description: str = ""
    public: bool = False
    files: dict[str, GistFile] = field(default_factory=dict)
    owner: str = ""
    version: str | None = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> Gist:
        """Build a :class:`Gist` from a decoded API response."""
        files: dict[str, GistFile] = {}
        raw_files = data.get("files")
        if isinstance(raw_files, Mapping):
            for name, raw in cast("Mapping[str, Any]", raw_files).items():
                if not isinstance(raw, Mapping):
                    continue
                content = raw.get("content")
                files[str(name)] = GistFile(
                    filename=str(raw.get("filename") or name),
                    content=None if content is None else str(content),
                    truncated=bool(raw.get("truncated", False)),
                    raw_url=raw.get("raw_url"),
                )
        owner = data.get("owner")
        owner_login = ""
        if isinstance(owner, Mapping):
            owner_login = str(owner.get("login") or "")
        version: str | None = None
        history = data.get("history")
        if isinstance(history, list) and history and isinstance(history[0], Mapping):
            version = history[0].get("version")
        return cls(
            id=str(data.get("id") or ""),
            html_url=str(data.get("html_url") or ""),
            description=str(data.get("description") or ""),
            public=bool(data.get("public", False)),
            files=files,
            owner=owner_login,
            version=version,
        )


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def _map_status_error(exc: httpx.HTTPStatusError, action: str) -> RemoteStoreError:
    """Translate an HTTP status failure into the storage error taxonomy."""
    response = exc.response
    status = response.status_code
    message = f"Failed to {action}: HTTP {status}"
    if status == 401:
        return AuthError(f"{message} (invalid or expired GitHub token)", status_code=status)
    if status == 403:
        if _is_rate_limited(response):
            return NetworkError(f"{message} (GitHub API rate limit exceeded)", status_code=status)
        return AuthError(f"{message} (access denied)", status_code=status)
    if status == 404:
        return RemoteNotFoundError(message, status_code=status)
    if status in {409, 412}:
        return ConflictError(message, status_code=status)
    if status == 422:
        return RemoteStoreError(f"{message} (request rejected)", status_code=status)
    return NetworkError(message, status_code=status)


class GistClient:
    """Authenticated wrapper around the GitHub Gists REST API."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Open an HTTP client that sends *token* as a bearer credential."""
        if not token or not token.strip():
            raise AuthError("GitHub token is not configured")
        self._retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token.strip()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": _API_VERSION,
                "User-Agent": _USER_AGENT,
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
            follow_redirects=True,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying connection pool."""
        self._client.close()

    def _request(
        self,
        method: str,
        url: str,
        action: str,
        *,
        payload: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> httpx.Response:
        def _send() -> httpx.Response:
            response = self._client.request(method, url, json=payload, params=params)
            response.raise_for_status()
            return response

        try:
            return retry(_send, policy=retry_policy or self._retry_policy)
        except httpx.HTTPStatusError as exc:
            raise _map_status_error(exc, action) from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Failed to {action}: request timed out") from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to {action}: {exc}") from exc

    @staticmethod
    def _decode(response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkError(f"Failed to {action}: invalid JSON response") from exc

    def verify_credentials(self) -> str:
        """Return the authenticated login, checking the token carries the gist scope."""
        response = self._request("GET", "/user", "verify GitHub token")
        scopes_header = response.headers.get("x-oauth-scopes")
        if scopes_header is not None:
            scopes = {scope.strip() for scope in scopes_header.split(",") if scope.strip()}
            if REQUIRED_SCOPE not in scopes:
                raise AuthError("Token lacks required 'gist' scope")
        data = self._decode(response, "verify GitHub token")
        return str(data.get("login") or "") if isinstance(data, Mapping) else ""

    def iter_gists(self) -> Iterator[Gist]:
        """Yield every gist owned by the authenticated user, following pagination."""
        url = "/gists"
        params: dict[str, Any] | None = {"per_page": _PAGE_SIZE}
        while True:
            response = self._request("GET", url, "list gists", params=params)
            items = self._decode(response, "list gists")
            if isinstance(items, list):
                for item in items:
                    if isinstance(item, Mapping):
                        yield Gist.from_payload(item)
            next_url = response.links.get("next", {}).get("url")
            if not next_url:
                return
            url = next_url
            params = None

    def get_gist(self, gist_id: str) -> Gist:
        """Return the gist identified by *gist_id*."""
        action = f"get gist {gist_id}"
        response = self._request("GET", f"/gists/{gist_id}", action)
        return Gist.from_payload(self._decode(response, action))

    def create_gist(
        self,
        description: str,
        files: Mapping[str, str],
        *,
        public: bool = False,
    ) -> Gist:
        """Create a gist holding *files* and return it."""
        payload = {
            "description": description,
            "public": public,
            "files": {name: {"content": content} for name, content in files.items()},
        }
        response = self._request(
            "POST", "/gists", "create gist", payload=payload, retry_policy=_SINGLE_ATTEMPT
        )
        gist = Gist.from_payload(self._decode(response, "create gist"))
        logger.debug("Created gist", extra={"gist_id": gist.id, "public": public})
        return gist

    def edit_gist(
        self,
        gist_id: str,
        *,
        files: Mapping[str, str | None],
        description: str | None = None,
    ) -> Gist:
        """Patch *gist_id*; a ``None`` file value deletes that file."""
        payload: dict[str, Any] = {
            "files": {
                name: (None if content is None else {"content": content})
                for name, content in files.items()
            }
        }
        if description is not None:
            payload["description"] = description
        action = f"update gist {gist_id}"
        response = self._request("PATCH", f"/gists/{gist_id}", action, payload=payload)
        return Gist.from_payload(self._decode(response, action))

    def delete_gist(self, gist_id: str) -> None:
        """Delete *gist_id*."""
        self._request("DELETE", f"/gists/{gist_id}", f"delete gist {gist_id}")

    def fetch_raw(self, raw_url: str) -> str:
        """Return the full text behind a truncated file's raw URL."""
        response = self._request("GET", raw_url, "download gist file")
        return response.text

    def file_content(self, gist_file: GistFile) -> str:
        """Return the complete content of *gist_file*."""
        if gist_file.truncated and gist_file.raw_url:
            return self.fetch_raw(gist_file.raw_url)
        return gist_file.content or ""


__all__ = [
    "DEFAULT_API_URL",
    "REQUEST_TIMEOUT_SECONDS",
    "Gist",
    "GistClient",
    "GistFile",
]
