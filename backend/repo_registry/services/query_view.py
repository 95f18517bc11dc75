"""Read-only ranked views over the repositories collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from repo_registry.entities.repository_record import StoredRecord, hourly_earnings
from repo_registry.repositories.repository_store import RepositoryStore

MAX_TABLE_ROWS = 100


@dataclass
class TablePage:
    displayed: List[StoredRecord]
    total: int
    hasMore: bool


def rank(repositories: List[StoredRecord]) -> List[StoredRecord]:
    """Order by hourly earnings (missing counts as 0), highest first; ties by url ascending."""
    return sorted(repositories, key=lambda r: (-hourly_earnings(r), r.url))


class QueryView:
    """Derives sorted and paginated views. Every call reloads through the store."""

    def __init__(self, store: RepositoryStore, max_rows: int = MAX_TABLE_ROWS):
        self.store = store
        self.max_rows = max_rows

    async def sorted(self) -> List[StoredRecord]:
        return rank(await self.store.load())

    async def for_table(self, limit: int | None = None) -> TablePage:
        limit = self.max_rows if limit is None else limit
        repositories = await self.sorted()
        total = len(repositories)
        return TablePage(
            displayed=repositories[: max(limit, 0)],
            total=total,
            hasMore=total > limit,
        )
