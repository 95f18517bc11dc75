"""Storage layer for repository evaluations"""

from .local_cache import LocalCache
from .repository_store import (
    LoadResult,
    PersistResult,
    RepositoryStore,
    UpsertResult,
    WalletUpdateResult,
    clamp_quality,
)

__all__ = [
    "LocalCache",
    "RepositoryStore",
    "LoadResult",
    "PersistResult",
    "UpsertResult",
    "WalletUpdateResult",
    "clamp_quality",
]
