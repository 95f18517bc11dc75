"""Repository registry DTOs"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from repo_registry.entities.repository_record import AnyRecord, RepositoryMetrics, RepositoryRecord


class PersistStatus(BaseModel):
    sharedPersisted: bool
    localPersisted: bool
    remoteConfigured: bool
    error: Optional[str] = None
    conflict: bool = False


class LoadSourceResponse(BaseModel):
    source: str
    degraded: bool


class RepositoryListResponse(LoadSourceResponse):
    repositories: List[AnyRecord]
    total: int


class RepositoryTableResponse(BaseModel):
    displayed: List[AnyRecord]
    total: int
    hasMore: bool


class UpsertRepositoryRequest(BaseModel):
    url: str = Field(..., min_length=1)
    username: str
    name: str
    metrics: RepositoryMetrics
    # Extra repository info from the GitHub API (only ``description`` is used)
    repoData: Dict[str, Any] = Field(default_factory=dict)
    solanaWallet: str = ""


class UpsertRepositoryResponse(BaseModel):
    repository: RepositoryRecord
    total: int
    persist: PersistStatus


class UpdateWalletRequest(BaseModel):
    url: str = Field(..., min_length=1)
    solanaWallet: str


class UpdateWalletResponse(BaseModel):
    found: bool
    persist: Optional[PersistStatus] = None
