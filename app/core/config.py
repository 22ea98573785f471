from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    storage_backend: Literal["memory", "database"] = "memory"
    database_url: str = ""
    db_ssl: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 15  # 20 connections total
    db_pool_timeout: float = 2.0

    # HTTP surface
    api_prefix: str = ""
    platform: str = "server"
    cors_origins: str = "*"
    default_list_limit: int = 50

    # Memory backend: insert one example record on startup
    seed_sample_data: bool = False

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def route_prefix(self) -> str:
        prefix = self.api_prefix.strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return prefix

    @property
    def uses_database(self) -> bool:
        return self.storage_backend == "database"


settings = Settings()
