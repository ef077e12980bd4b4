from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Environment names match field names, case-insensitive
    (MONGO_URI -> mongo_uri, API_BASE_URL -> api_base_url, ...).
    """

    app_name: str = "Civic Report Sync"
    env: str = "dev"
    log_level: str = "INFO"

    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "reportsync"
    cache_collection: str = "cache_entries"

    api_base_url: str = "http://localhost:3001/api"
    api_token: Optional[str] = None
    remote_timeout_seconds: float = Field(10.0, gt=0)

    category_ttl_seconds: int = Field(3600, ge=0)
    min_submission_score: int = Field(50, ge=0, le=100)
    max_photos: int = Field(5, ge=1)

    # owner reference 0 marks an anonymous report
    anonymous_owner_id: int = 0
    current_owner_id: int = 1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
