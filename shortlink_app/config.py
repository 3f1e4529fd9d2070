from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below

    Built once at startup and handed to the app factory, which passes it
    on to the connection pool, cache, store and service.
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "MDES Short"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 3001
    cors_origins: List[str] = ["*"]

    # Database (full URL wins over the individual parts)
    database_url: Optional[str] = None
    db_driver: str = "sqlite"  # e.g. "mysql+pymysql", "postgresql"
    db_host: Optional[str] = None
    db_port: Optional[int] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    db_name: str = "url_shortener.db"
    db_pool_size: int = Field(default=10, ge=1)
    db_queue_limit: int = Field(default=0, ge=0)  # 0 = unbounded waiters
    db_pool_timeout: float = Field(default=30.0, gt=0)
    db_echo: bool = False

    # Short id policy
    strict_id_format: bool = True
    id_max_length: int = Field(default=64, ge=1, le=64)
    max_url_length: int = Field(default=2048, ge=1)

    # Retries for connection acquisition failures
    store_retry_attempts: int = Field(default=3, ge=1)
    store_retry_backoff: float = Field(default=0.05, ge=0)

    # Cache settings
    cache_backend: str = "memory"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600

    # Record X-Forwarded-For as the creator origin (only behind a trusted proxy)
    trust_proxy_headers: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def sqlalchemy_url(self) -> URL:
        """SQLAlchemy URL assembled from database_url or the db_* parts."""
        if self.database_url:
            return make_url(self.database_url)
        return URL.create(
            drivername=self.db_driver,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, with explicit overrides on top."""
    return Settings(**overrides)
