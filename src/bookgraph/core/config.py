"""
Configuration management for the BookGraph API.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables,
    e.g. DATABASE_URL, RELATED_BOOKS_LIMIT, REQUEST_TIMEOUT.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ==========================================================================
    # Application Metadata
    # ==========================================================================
    app_name: str = "BookGraph API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = Field(default="development", description="development, staging, production")
    log_level: str = Field(default="INFO", description="Root log level for the CLI and server")

    # ==========================================================================
    # Database Configuration
    # ==========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string (pgvector enabled)",
    )
    supabase_db_url: Optional[str] = Field(
        default=None,
        description="Alternative Supabase-hosted Postgres URL",
    )
    database_pool_min_size: int = Field(default=2, ge=1, le=50)
    database_pool_size: int = Field(default=10, ge=1, le=50)

    @computed_field
    @property
    def db_url(self) -> str:
        """Get the effective database URL."""
        return self.database_url or self.supabase_db_url or ""

    # ==========================================================================
    # Document Store Layout
    # ==========================================================================
    embeddings_table: str = Field(
        default="documents",
        description="Table holding one row per embedded fragment",
    )
    metadata_table: str = Field(
        default="books",
        description="Table or view holding exactly one metadata row per book",
    )
    similarity_function: str = Field(
        default="get_similar_books",
        description="Nearest-neighbor SQL function",
    )

    # ==========================================================================
    # Graph Computation
    # ==========================================================================
    default_match_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    default_top_n: int = Field(default=3, ge=0)
    related_books_limit: int = Field(
        default=20,
        ge=0,
        description="Maximum related books in a graph, independent of top_n",
    )
    max_concurrent_queries: int = Field(default=8, ge=1, le=64)
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (seconds)")

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    expose_error_details: bool = Field(
        default=True,
        description="Return unhandled exception messages in 500 responses",
    )

    # ==========================================================================
    # CORS Configuration
    # ==========================================================================
    cors_allow_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ],
        description="Allowed CORS origins. Set to ['*'] for development.",
    )
    cors_allow_methods: list[str] = ["GET", "HEAD", "OPTIONS"]
    cors_allow_headers: list[str] = ["Accept", "Accept-Encoding", "Content-Type"]
    cors_expose_headers: list[str] = ["X-Process-Time"]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
