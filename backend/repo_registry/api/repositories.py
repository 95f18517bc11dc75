"""Repository registry endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from repo_registry.api.deps import get_query_view, get_repository_store
from repo_registry.dtos import (
    PersistStatus,
    RepositoryListResponse,
    RepositoryTableResponse,
    UpdateWalletRequest,
    UpdateWalletResponse,
    UpsertRepositoryRequest,
    UpsertRepositoryResponse,
)
from repo_registry.repositories.repository_store import PersistResult, RepositoryStore
from repo_registry.services.query_view import QueryView, rank

router = APIRouter(prefix="/repositories", tags=["Repositories"])


def _persist_status(result: PersistResult) -> PersistStatus:
    return PersistStatus(
        sharedPersisted=result.shared_persisted,
        localPersisted=result.local_persisted,
        remoteConfigured=result.remote_configured,
        error=result.error,
        conflict=result.conflict,
    )


def _failed_write_status(result: Optional[PersistResult]) -> Optional[int]:
    """HTTP status for a write the remote store rejected, None when nothing went wrong."""
    if result is None or result.shared_persisted or not result.remote_configured:
        return None
    if result.conflict:
        return status.HTTP_409_CONFLICT
    return status.HTTP_502_BAD_GATEWAY


@router.get("", response_model=RepositoryListResponse)
async def list_repositories(store: RepositoryStore = Depends(get_repository_store)):
    """All repositories ranked by hourly earnings, with the source they were read from."""
    loaded = await store.load_with_source()
    repositories = rank(loaded.repositories)
    return RepositoryListResponse(
        repositories=repositories,
        total=len(repositories),
        source=loaded.source,
        degraded=loaded.degraded,
    )


@router.get("/table", response_model=RepositoryTableResponse)
async def repositories_table(
    limit: Optional[int] = Query(None, ge=0),
    view: QueryView = Depends(get_query_view),
):
    page = await view.for_table(limit)
    return RepositoryTableResponse(
        displayed=page.displayed, total=page.total, hasMore=page.hasMore
    )


@router.post("", response_model=UpsertRepositoryResponse)
async def upsert_repository(
    payload: UpsertRepositoryRequest,
    store: RepositoryStore = Depends(get_repository_store),
):
    """Save a fresh evaluation. The local mirror is written even if the shared write fails."""
    result = await store.upsert(
        payload.url,
        payload.username,
        payload.name,
        payload.metrics,
        payload.repoData,
        payload.solanaWallet,
    )
    response = UpsertRepositoryResponse(
        repository=result.record,
        total=len(result.repositories),
        persist=_persist_status(result.persist),
    )
    failed = _failed_write_status(result.persist)
    if failed is not None:
        return JSONResponse(status_code=failed, content=response.model_dump(mode="json"))
    return response


@router.patch("/wallet", response_model=UpdateWalletResponse)
async def update_wallet(
    payload: UpdateWalletRequest,
    store: RepositoryStore = Depends(get_repository_store),
):
    """Set the wallet of a stored repository. An unknown url answers ``found: false``."""
    result = await store.update_wallet(payload.url, payload.solanaWallet)
    if not result.found:
        return UpdateWalletResponse(found=False)
    response = UpdateWalletResponse(
        found=True, persist=_persist_status(result.persist)
    )
    failed = _failed_write_status(result.persist)
    if failed is not None:
        return JSONResponse(status_code=failed, content=response.model_dump(mode="json"))
    return response
