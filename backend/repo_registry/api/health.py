"""
Health check endpoints
"""

from fastapi import APIRouter, Depends

from repo_registry.api.deps import get_repository_store
from repo_registry.repositories.repository_store import RepositoryStore
from repo_registry.utils.datetime import utc_now

router = APIRouter()


@router.get("/health")
async def health_check(store: RepositoryStore = Depends(get_repository_store)):
    """Simple API health check."""
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": "Repository Registry API",
        "remote_configured": store.remote_configured,
    }
