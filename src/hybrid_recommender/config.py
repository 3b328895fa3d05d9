"""Application configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = "hybrid-recommender"
    app_env: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # API Settings
    # -------------------------------------------------------------------------
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    # -------------------------------------------------------------------------
    # Storage Backends
    # -------------------------------------------------------------------------
    behavior_backend: Literal["memory", "redis"] = "memory"
    feature_backend: Literal["memory", "postgres"] = "memory"
    impression_backend: Literal["memory", "postgres"] = "memory"

    # -------------------------------------------------------------------------
    # PostgreSQL Database
    # -------------------------------------------------------------------------
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "recommender"
    postgres_password: str = ""
    postgres_db: str = "recommender"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle: int = 1800

    @property
    def database_url(self) -> str:
        """Construct PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # -------------------------------------------------------------------------
    # Redis
    # -------------------------------------------------------------------------
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_db: int = 0

    @property
    def redis_url(self) -> str:
        """Construct Redis connection URL."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # -------------------------------------------------------------------------
    # Recommendation Settings
    # -------------------------------------------------------------------------
    default_recommendation_count: int = 10
    max_recommendation_count: int = 50
    recommendation_timeout_seconds: float = 2.0
    # Separate budget for the trending answer served once the deadline has passed
    fallback_timeout_seconds: float = 0.5
    neighbor_sample_size: int = 100
    max_viewed_items: int = 200
    # Expiry of stored behavior documents in Redis; None keeps them forever
    behavior_ttl_seconds: int | None = None

    # -------------------------------------------------------------------------
    # Similarity Cache
    # -------------------------------------------------------------------------
    behavior_cache_size: int = 10_000
    behavior_cache_ttl_seconds: int = 300
    feature_cache_size: int = 50_000
    feature_cache_ttl_seconds: int = 600
    trending_cache_ttl_seconds: int = 300


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
