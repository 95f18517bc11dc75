"""Request and response models for the repositories API"""

from .repository import (
    LoadSourceResponse,
    PersistStatus,
    RepositoryListResponse,
    RepositoryTableResponse,
    UpdateWalletRequest,
    UpdateWalletResponse,
    UpsertRepositoryRequest,
    UpsertRepositoryResponse,
)

__all__ = [
    "LoadSourceResponse",
    "PersistStatus",
    "RepositoryListResponse",
    "RepositoryTableResponse",
    "UpdateWalletRequest",
    "UpdateWalletResponse",
    "UpsertRepositoryRequest",
    "UpsertRepositoryResponse",
]
