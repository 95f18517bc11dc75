"""Reconciling store for repository evaluations.

Reads prefer the shared remote document and fall back to the local cache only
when the remote cannot be reached (or is not configured). Writes always
rewrite the whole collection: remote first when configured, with the local
cache as a mirror of every attempt.

Concurrent writers are detected by the remote version token, not resolved:
a rejected write is reported through ``PersistResult.conflict`` and the caller
is expected to reload and upsert again.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Literal, Mapping, Optional, Sequence, Union

from repo_registry.entities.repository_record import (
    DEFAULT_DESCRIPTION,
    RepositoryMetrics,
    RepositoryRecord,
    StoredRecord,
)
from repo_registry.repositories.local_cache import LocalCache
from repo_registry.services.github.contents_store import FetchStatus, RemoteStore
from repo_registry.services.github.exceptions import RemoteWriteError
from repo_registry.utils.datetime import utc_now

logger = logging.getLogger(__name__)

MIN_QUALITY = 1
MAX_QUALITY = 1000

LoadSource = Literal["remote", "cache", "empty"]


@dataclass
class LoadResult:
    repositories: List[StoredRecord]
    source: LoadSource
    # True when the remote did not answer authoritatively (unreachable or not configured).
    degraded: bool


@dataclass
class PersistResult:
    """Outcome of writing the collection to both storage paths."""

    shared_persisted: bool
    local_persisted: bool
    remote_configured: bool
    error: Optional[str] = None
    conflict: bool = False


@dataclass
class UpsertResult:
    repositories: List[StoredRecord]
    record: RepositoryRecord
    persist: PersistResult


@dataclass
class WalletUpdateResult:
    found: bool
    persist: Optional[PersistResult] = None

    def __bool__(self) -> bool:
        return self.found


def clamp_quality(value: Optional[Union[int, float]]) -> int:
    """Round half up, then bound to [MIN_QUALITY, MAX_QUALITY]. None and NaN map to the minimum."""
    if value is None or math.isnan(value):
        return MIN_QUALITY
    if math.isinf(value):
        return MAX_QUALITY if value > 0 else MIN_QUALITY
    return max(MIN_QUALITY, min(MAX_QUALITY, math.floor(value + 0.5)))


def build_record(
    url: str,
    owner: str,
    name: str,
    metrics: RepositoryMetrics,
    repo_info: Optional[Mapping[str, Any]],
    wallet: str,
    evaluated_at: datetime,
) -> RepositoryRecord:
    quality = clamp_quality(metrics.quality)
    description = (repo_info or {}).get("description") or DEFAULT_DESCRIPTION
    return RepositoryRecord(
        url=url,
        username=owner,
        name=name,
        description=description,
        solanaWallet=wallet,
        metrics=RepositoryMetrics.model_validate({**metrics.model_dump(), "quality": quality}),
        evaluatedAt=evaluated_at,
        combinedScore=quality + (metrics.hourlyEarnings or 0) / 100,
    )


def find_index(repositories: Sequence[StoredRecord], url: str) -> Optional[int]:
    for index, record in enumerate(repositories):
        if record.url == url:
            return index
    return None


class RepositoryStore:
    """Load, upsert and persist the shared collection of evaluated repositories."""

    def __init__(
        self,
        cache: LocalCache,
        remote: Optional[RemoteStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.cache = cache
        self.remote = remote
        self._clock = clock

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None and self.remote.is_configured

    async def load(self) -> List[StoredRecord]:
        """Return the current collection. Never raises for storage problems."""
        return (await self.load_with_source()).repositories

    async def load_with_source(self) -> LoadResult:
        if self.remote_configured:
            result = await self.remote.fetch_document()
            if result.is_available:
                if result.status == FetchStatus.MALFORMED:
                    logger.warning(f"Shared file is malformed, treating as empty: {result.error}")
                elif result.status == FetchStatus.NOT_FOUND:
                    logger.info("Shared file not found, returning empty collection")
                else:
                    logger.info(
                        f"Loaded {len(result.repositories)} repositories from shared file",
                        extra={"source": "remote", "count": len(result.repositories)},
                    )
                return LoadResult(result.repositories, "remote", degraded=False)
            logger.error(f"Error loading repositories from shared file: {result.error}")

        cached = self.cache.load()
        if cached:
            logger.warning(
                "Using local cache backup (shared file unavailable)",
                extra={"source": "cache", "count": len(cached)},
            )
            return LoadResult(cached, "cache", degraded=True)
        return LoadResult([], "empty", degraded=True)

    async def upsert(
        self,
        url: str,
        owner: str,
        name: str,
        metrics: Union[RepositoryMetrics, Mapping[str, Any]],
        repo_info: Optional[Mapping[str, Any]] = None,
        wallet: Optional[str] = "",
    ) -> UpsertResult:
        """
        Insert or replace the record for ``url`` and persist the whole collection.

        An empty ``wallet`` keeps the wallet already stored for ``url``.
        """
        if not isinstance(metrics, RepositoryMetrics):
            metrics = RepositoryMetrics.model_validate(dict(metrics))

        repositories = await self.load()
        index = find_index(repositories, url)

        wallet = wallet or ""
        if index is not None and not wallet:
            wallet = getattr(repositories[index], "solanaWallet", "") or ""

        record = build_record(url, owner, name, metrics, repo_info, wallet, self._clock())
        if index is not None:
            repositories[index] = record
        else:
            repositories.append(record)

        persist = await self.persist(repositories)
        return UpsertResult(repositories=repositories, record=record, persist=persist)

    async def update_wallet(self, url: str, wallet: str) -> WalletUpdateResult:
        """Set the wallet of an existing record. Not finding ``url`` is not an error."""
        repositories = await self.load()
        index = find_index(repositories, url)
        if index is None:
            return WalletUpdateResult(found=False)

        repositories[index] = repositories[index].model_copy(update={"solanaWallet": wallet})
        persist = await self.persist(repositories)
        return WalletUpdateResult(found=True, persist=persist)

    async def persist(self, repositories: Sequence[StoredRecord]) -> PersistResult:
        """Write to the remote (when configured) and mirror to the local cache. Never raises."""
        if not self.remote_configured:
            local = self.cache.save(repositories)
            logger.warning(
                "Remote store not configured. Data saved to local cache only "
                "(not shared with other users)."
            )
            return PersistResult(
                shared_persisted=False, local_persisted=local, remote_configured=False
            )

        try:
            await self.remote.write_collection(repositories)
        except RemoteWriteError as exc:
            logger.error(
                f"Failed to save repositories to shared file: {exc.message}",
                extra={"status_code": exc.status_code},
            )
            local = self.cache.save(repositories)
            return PersistResult(
                shared_persisted=False,
                local_persisted=local,
                remote_configured=True,
                error=exc.message,
                conflict=exc.is_conflict,
            )

        local = self.cache.save(repositories)
        return PersistResult(shared_persisted=True, local_persisted=local, remote_configured=True)
