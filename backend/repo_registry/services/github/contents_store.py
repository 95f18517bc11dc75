"""Remote store for the shared repositories document.

The document is a single JSON file in a GitHub repository. Reads and writes
go through the GitHub contents API. Every write is a read-modify-write: the
current blob ``sha`` is fetched first and sent back as a precondition, so a
concurrent writer makes our PUT fail instead of being silently overwritten.
There is no retry here; callers decide whether to reload and try again.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence

import httpx

from repo_registry.config import RemoteStoreConfig
from repo_registry.entities.repository_record import (
    StoredRecord,
    dump_collection,
    parse_collection,
)
from repo_registry.services.github.exceptions import (
    MalformedDocument,
    NotConfigured,
    RemoteUnavailable,
    RemoteWriteError,
)
from repo_registry.utils.datetime import to_iso_z, utc_now

logger = logging.getLogger(__name__)

GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
UNKNOWN_ERROR = "Unknown error"


class FetchStatus(str, Enum):
    """Outcome of reading the remote document."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class FetchResult:
    status: FetchStatus
    repositories: List[StoredRecord] = field(default_factory=list)
    sha: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def is_available(self) -> bool:
        """True when the remote answered authoritatively (even if with no data)."""
        return self.status != FetchStatus.TRANSPORT_ERROR


class RemoteStore:
    """Read/write access to one JSON document hosted in a GitHub repository."""

    def __init__(
        self,
        config: RemoteStoreConfig,
        client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self._client = client
        self._clock = clock
        self._configured = config.is_configured

    @property
    def is_configured(self) -> bool:
        return self._configured

    # ------------------------------------------------------------------
    # Reads

    async def fetch_document(self) -> FetchResult:
        """
        Read and parse the remote document.

        Never raises for remote-side problems: a missing file is NOT_FOUND,
        content that is not a JSON array is MALFORMED, and network failures or
        unexpected statuses are TRANSPORT_ERROR.
        """
        self._require_configuration()
        async with self._open_client() as client:
            if self.config.public_url:
                return await self._fetch_public(client)
            return await self._fetch_via_api(client)

    async def fetch_collection(self) -> List[StoredRecord]:
        """Return the stored records; an absent or unreadable document yields ``[]``."""
        result = await self.fetch_document()
        if result.status == FetchStatus.TRANSPORT_ERROR:
            raise RemoteUnavailable(result.error or UNKNOWN_ERROR, result.status_code)
        return result.repositories

    async def fetch_version_token(self) -> Optional[str]:
        """Return the current blob sha of the document, or None if it does not exist yet."""
        self._require_configuration()
        async with self._open_client() as client:
            return await self._fetch_version_token(client)

    # ------------------------------------------------------------------
    # Writes

    async def write_collection(self, records: Sequence[StoredRecord]) -> None:
        """
        Replace the remote document with ``records``.

        One attempt only. Raises RemoteWriteError carrying the upstream message
        when GitHub rejects the write or cannot be reached.
        """
        self._require_configuration()
        content = json.dumps(dump_collection(records), indent=2, ensure_ascii=False)
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")

        async with self._open_client() as client:
            sha = await self._fetch_version_token(client)
            payload = {
                "message": f"Update repositories data - {to_iso_z(self._clock())}",
                "content": encoded,
                "branch": self.config.branch,
                "sha": sha,
            }
            try:
                response = await client.put(
                    self._contents_url(), headers=self._headers(), json=payload
                )
            except httpx.HTTPError as exc:
                raise RemoteWriteError(f"GitHub API request failed: {exc}") from exc

        if not response.is_success:
            raise RemoteWriteError(
                f"GitHub API error: {self._error_message(response)}",
                status_code=response.status_code,
            )

        logger.info(
            f"Saved {len(records)} repositories to {self._location()}",
            extra={"count": len(records)},
        )

    # ------------------------------------------------------------------
    # Helpers

    def _require_configuration(self) -> None:
        if not self._configured:
            raise NotConfigured(
                "Remote store requires token, owner, repo and branch to be configured"
            )

    @asynccontextmanager
    async def _open_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": GITHUB_ACCEPT_HEADER,
        }

    def _contents_url(self) -> str:
        return (
            f"{self.config.api_url}/repos/{self.config.owner}/{self.config.repo}"
            f"/contents/{self.config.path}"
        )

    def _location(self) -> str:
        return f"{self.config.owner}/{self.config.repo}@{self.config.branch}:{self.config.path}"

    def _cache_buster(self) -> str:
        return str(int(self._clock().timestamp() * 1000))

    async def _fetch_version_token(self, client: httpx.AsyncClient) -> Optional[str]:
        try:
            response = await client.get(
                self._contents_url(),
                headers=self._headers(),
                params={"ref": self.config.branch},
            )
        except httpx.HTTPError as exc:
            raise RemoteWriteError(f"GitHub API request failed: {exc}") from exc

        if response.status_code == 200:
            try:
                return response.json().get("sha")
            except (ValueError, AttributeError):
                logger.warning(f"Unreadable contents response for {self._location()}")
                return None
        if response.status_code != 404:
            logger.warning(
                f"Could not read version token for {self._location()} "
                f"(HTTP {response.status_code}), writing without one",
                extra={"status_code": response.status_code},
            )
        return None

    async def _fetch_via_api(self, client: httpx.AsyncClient) -> FetchResult:
        try:
            response = await client.get(
                self._contents_url(),
                headers=self._headers(),
                params={"ref": self.config.branch, "t": self._cache_buster()},
            )
        except httpx.HTTPError as exc:
            return FetchResult(FetchStatus.TRANSPORT_ERROR, error=f"GitHub API request failed: {exc}")

        failure = self._classify_failure(response)
        if failure is not None:
            return failure

        try:
            body = response.json()
        except ValueError:
            return FetchResult(FetchStatus.MALFORMED, error="Contents response is not JSON")
        if not isinstance(body, dict):
            return FetchResult(FetchStatus.MALFORMED, error="Contents response is not a file")

        sha = body.get("sha")
        if body.get("encoding") == "base64" and body.get("content") is not None:
            try:
                text = base64.b64decode(body["content"]).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError, ValueError):
                return FetchResult(FetchStatus.MALFORMED, sha=sha, error="Content is not valid base64 UTF-8")
        elif body.get("download_url"):
            # Files above the contents API size limit come back without inline content.
            try:
                raw = await client.get(body["download_url"], params={"t": self._cache_buster()})
            except httpx.HTTPError as exc:
                return FetchResult(FetchStatus.TRANSPORT_ERROR, error=f"Download failed: {exc}")
            failure = self._classify_failure(raw)
            if failure is not None:
                return failure
            text = raw.text
        else:
            return FetchResult(FetchStatus.MALFORMED, sha=sha, error="Contents response has no content")

        return self._parse(text, sha)

    async def _fetch_public(self, client: httpx.AsyncClient) -> FetchResult:
        try:
            response = await client.get(
                self.config.public_url, params={"t": self._cache_buster()}
            )
        except httpx.HTTPError as exc:
            return FetchResult(FetchStatus.TRANSPORT_ERROR, error=f"Request failed: {exc}")

        failure = self._classify_failure(response)
        if failure is not None:
            return failure
        return self._parse(response.text, sha=None)

    def _classify_failure(self, response: httpx.Response) -> Optional[FetchResult]:
        if response.status_code == 404:
            return FetchResult(FetchStatus.NOT_FOUND, status_code=404)
        if not response.is_success:
            return FetchResult(
                FetchStatus.TRANSPORT_ERROR,
                error=f"HTTP {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )
        return None

    @staticmethod
    def _parse(text: str, sha: Optional[str]) -> FetchResult:
        if not text.strip():
            return FetchResult(FetchStatus.FOUND, sha=sha)
        try:
            data: Any = json.loads(text)
            repositories = parse_collection(data)
        except ValueError:
            return FetchResult(FetchStatus.MALFORMED, sha=sha, error="Document is not valid JSON")
        except MalformedDocument as exc:
            return FetchResult(FetchStatus.MALFORMED, sha=sha, error=str(exc))
        return FetchResult(FetchStatus.FOUND, repositories=repositories, sha=sha)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return UNKNOWN_ERROR
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return UNKNOWN_ERROR
