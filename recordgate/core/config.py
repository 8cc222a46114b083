"""Service configuration."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the recordgate service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # App
    debug: bool = Field(default=False, alias="RECORDGATE_DEBUG")
    secret_key: str = Field(..., alias="RECORDGATE_SECRET_KEY")
    host: str = Field(default="0.0.0.0", alias="RECORDGATE_HOST")
    port: int = Field(default=8090, alias="RECORDGATE_PORT")

    # JWT
    jwt_algorithm: str = Field(default="HS256", alias="RECORDGATE_JWT_ALGORITHM")
    record_token_minutes: int = Field(default=1440, alias="RECORDGATE_RECORD_TOKEN_MINUTES")
    superuser_token_minutes: int = Field(default=60, alias="RECORDGATE_SUPERUSER_TOKEN_MINUTES")

    # Trusted proxy (comma-separated header names, empty = use the transport peer)
    trusted_proxy_headers_raw: str = Field(default="", alias="RECORDGATE_TRUSTED_PROXY_HEADERS")
    trusted_proxy_use_leftmost: bool = Field(default=False, alias="RECORDGATE_TRUSTED_PROXY_USE_LEFTMOST")

    # CORS
    cors_origins_raw: str = Field(default="", alias="RECORDGATE_CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", alias="RECORDGATE_LOG_LEVEL")
    log_dir: Optional[str] = Field(default=None, alias="RECORDGATE_LOG_DIR")

    # Database
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    db_pool_min_size: int = Field(default=2, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(default=10, alias="DB_POOL_MAX_SIZE")
    collection_cache_ttl: float = Field(default=30.0, alias="RECORDGATE_COLLECTION_CACHE_TTL")

    @field_validator("jwt_algorithm", mode="before")
    @classmethod
    def validate_jwt_algorithm(cls, v):
        """Only allow HMAC-based JWT algorithms."""
        allowed = {"HS256", "HS384", "HS512"}
        if v not in allowed:
            raise ValueError(f"JWT algorithm must be one of {allowed}, got: {v}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return str(v or "INFO").upper()

    @property
    def trusted_proxy_headers(self) -> List[str]:
        """Parse trusted proxy header names from comma-separated string."""
        return _split_csv(self.trusted_proxy_headers_raw)

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return _split_csv(self.cors_origins_raw)

    @property
    def database_enabled(self) -> bool:
        return bool(self.database_url)


def _split_csv(raw: Optional[str]) -> List[str]:
    if not raw or not raw.strip():
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings()
