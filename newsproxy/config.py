from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    http_timeout: float = Field(10.0, gt=0, alias="HTTP_TIMEOUT")
    http_max_connections: int = Field(20, ge=1, alias="HTTP_MAX_CONNECTIONS")
    http_max_keepalive: int = Field(10, ge=1, alias="HTTP_MAX_KEEPALIVE")
    http_user_agent: str = Field("newsproxy/0.1", alias="HTTP_USER_AGENT")

    newsapi_base_url: str = Field("https://newsapi.org/v2", alias="NEWSAPI_BASE_URL")
    newsapi_docs_url: str = Field("https://newsapi.org/docs", alias="NEWSAPI_DOCS_URL")
    # Deadline applied to every outbound newsapi call.
    upstream_timeout: float = Field(5.0, gt=0, alias="UPSTREAM_TIMEOUT")

    db_host: str | None = Field(default=None, alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str | None = Field(default=None, alias="DB_USER")
    db_password: str | None = Field(default=None, alias="DB_PASSWORD")
    db_name: str | None = Field(default=None, alias="DB_NAME")
    db_pool_min_size: int = Field(1, ge=0, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, ge=1, alias="DB_POOL_MAX_SIZE")

    # Seconds between ingestion runs, 0 disables the scheduler.
    ingest_interval: float = Field(0.0, ge=0, alias="INGEST_INTERVAL")

    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8000, ge=1, le=65535, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()
