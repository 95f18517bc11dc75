"""FastAPI dependencies for the repository store."""

from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from repo_registry.config import Settings, settings
from repo_registry.repositories.local_cache import LocalCache
from repo_registry.repositories.repository_store import RepositoryStore
from repo_registry.services.github.contents_store import RemoteStore
from repo_registry.services.query_view import QueryView


def build_repository_store(app_settings: Settings) -> RepositoryStore:
    cache = LocalCache(Path(app_settings.LOCAL_CACHE_DIR), key=app_settings.LOCAL_CACHE_KEY)
    remote = RemoteStore(app_settings.remote_store_config())
    return RepositoryStore(cache=cache, remote=remote)


@lru_cache
def get_repository_store() -> RepositoryStore:
    return build_repository_store(settings)


def get_query_view(store: RepositoryStore = Depends(get_repository_store)) -> QueryView:
    return QueryView(store, max_rows=settings.MAX_TABLE_ROWS)
