"""
Application configuration
"""
from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class RemoteStoreConfig:
    """Static credentials and location of the shared repositories document."""

    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: Optional[str] = "main"
    path: str = "repositories-data.json"
    api_url: str = "https://api.github.com"
    public_url: Optional[str] = None
    timeout: float = 10.0

    @property
    def is_configured(self) -> bool:
        return all((self.token, self.owner, self.repo, self.branch))


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Repository Registry"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_FORMAT: str = "text"

    # GitHub (shared storage)
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_OWNER: Optional[str] = None
    GITHUB_REPO: Optional[str] = None
    GITHUB_BRANCH: Optional[str] = "main"
    GITHUB_API_URL: str = "https://api.github.com"
    REPOSITORIES_DATA_FILE: str = "repositories-data.json"
    REPOSITORIES_PUBLIC_URL: Optional[str] = None
    HTTP_TIMEOUT: float = 10.0

    # Local fallback cache
    LOCAL_CACHE_DIR: str = ".cache"
    LOCAL_CACHE_KEY: str = "repositories-data-backup"

    # Table view
    MAX_TABLE_ROWS: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True

    def remote_store_config(self) -> RemoteStoreConfig:
        return RemoteStoreConfig(
            token=self.GITHUB_TOKEN,
            owner=self.GITHUB_OWNER,
            repo=self.GITHUB_REPO,
            branch=self.GITHUB_BRANCH,
            path=self.REPOSITORIES_DATA_FILE,
            api_url=self.GITHUB_API_URL.rstrip("/"),
            public_url=self.REPOSITORIES_PUBLIC_URL,
            timeout=self.HTTP_TIMEOUT,
        )


settings = Settings()
