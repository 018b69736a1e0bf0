# catalog_mirror/settings.py
"""
Catalog Mirror settings.

Values come from the environment or a local .env file.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices


class Settings(BaseSettings):
    # =========================================================================
    # Remote catalog (Shopify Admin GraphQL API)
    # =========================================================================
    SHOP_DOMAIN: str = Field(default="", validation_alias="SHOP_DOMAIN")
    ACCESS_TOKEN: str = Field(default="", validation_alias="ACCESS_TOKEN")
    API_VERSION: str = Field(default="2024-10", validation_alias="API_VERSION")
    SHOPIFY_TIMEOUT: float = Field(default=30.0, validation_alias="SHOPIFY_TIMEOUT")

    # Throttle: back off when the returned cost budget drops below the threshold
    THROTTLE_THRESHOLD: int = Field(default=200, validation_alias="THROTTLE_THRESHOLD")
    THROTTLE_NOMINAL_BUDGET: int = Field(default=1000, validation_alias="THROTTLE_NOMINAL_BUDGET")
    THROTTLE_DELAY_SECONDS: float = Field(default=2.0, validation_alias="THROTTLE_DELAY_SECONDS")

    # Full crawl
    CRAWL_PAGE_SIZE: int = Field(default=50, validation_alias="CRAWL_PAGE_SIZE")
    CRAWL_PAGE_DELAY_SECONDS: float = Field(default=0.3, validation_alias="CRAWL_PAGE_DELAY_SECONDS")

    # =========================================================================
    # Database
    # =========================================================================
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "CATALOG_DB_URL"),
    )
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="catalog_mirror", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings (ignored by SQLite)
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # =========================================================================
    # HTTP surface
    # =========================================================================
    PORT: int = Field(default=3000, validation_alias="PORT")
    WEBHOOK_SECRET: Optional[str] = Field(default=None, validation_alias="WEBHOOK_SECRET")
    ADMIN_KEY: Optional[str] = Field(default=None, validation_alias="ADMIN_KEY")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ORIGINS")

    # =========================================================================
    # Scheduling / startup
    # =========================================================================
    SYNC_SCHEDULE_ENABLED: bool = Field(default=True, validation_alias="SYNC_SCHEDULE_ENABLED")
    SYNC_SCHEDULE_HOUR: int = Field(default=3, ge=0, le=23, validation_alias="SYNC_SCHEDULE_HOUR")
    SYNC_SCHEDULE_MINUTE: int = Field(default=0, ge=0, le=59, validation_alias="SYNC_SCHEDULE_MINUTE")
    SYNC_ON_EMPTY_STORE: bool = Field(default=True, validation_alias="SYNC_ON_EMPTY_STORE")

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_DIR: Path = Field(
        default=(Path.cwd() / "logs"),
        validation_alias=AliasChoices("LOG_DIR", "CATALOG_LOG_DIR"),
    )
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def graphql_url(self) -> str:
        domain = self.SHOP_DOMAIN.replace("https://", "").replace("http://", "").rstrip("/")
        return f"https://{domain}/admin/api/{self.API_VERSION}/graphql.json"

    @property
    def database_url(self) -> str:
        """Async database URL; DATABASE_URL wins over the DB_* parts."""
        if self.DATABASE_URL:
            url = self.DATABASE_URL
            # Heroku/Render style URLs come without the async driver
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://"):]
            if url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            return url
        return (
            f"postgresql+asyncpg://"
            f"{self.DB_USER}:{self.DB_PASSWORD}@"
            f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


settings = Settings()
