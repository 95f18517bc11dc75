"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repo_registry.api import health, repositories
from repo_registry.config import settings
from repo_registry.core.logging import setup_logging

setup_logging(settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Repository Registry API",
    description="Shared registry of evaluated repositories stored in a GitHub-hosted JSON file",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(repositories.router, prefix="/api")

if not settings.remote_store_config().is_configured:
    logger.warning(
        "GitHub storage is not configured (GITHUB_TOKEN/OWNER/REPO/BRANCH). "
        "Evaluations will only be kept in the local cache."
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Repository Registry API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("repo_registry.main:app", host="0.0.0.0", port=8000, reload=True)
