"""Configuration models for sqlscope.

All configuration is read from environment variables with the SQLSCOPE_
prefix (a ``.env`` file in the working directory is also honoured).

Environment Variables:
    Pagination:
        SQLSCOPE_DEFAULT_PAGE_SIZE: Page size when none is requested (default: 50)
        SQLSCOPE_MAX_PAGE_SIZE: Largest page a caller may request (default: 1000)

    Execution:
        SQLSCOPE_QUERY_TIMEOUT_SECONDS: Query timeout (default: 30.0)
        SQLSCOPE_SLOW_QUERY_SECONDS: Slow-query warning threshold (default: 5.0)

    Introspection:
        SQLSCOPE_INTROSPECTION_BUDGET_SECONDS: Overall budget (default: 60.0)
        SQLSCOPE_INTROSPECTION_CONCURRENCY: Per-table workers (default: 4)

    Logging / audit:
        SQLSCOPE_LOG_LEVEL: DEBUG/INFO/WARNING/ERROR (default: INFO)
        SQLSCOPE_LOG_FORMAT: json or text (default: text)
        SQLSCOPE_AUDIT_STORAGE: stdout or file (default: stdout)
        SQLSCOPE_AUDIT_FILE_PATH: JSON-lines file for file storage
"""

from functools import lru_cache
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationPolicy(BaseModel):
    """Page-size bounds passed explicitly to the pagination rewriter."""

    default_page_size: int = Field(default=50, ge=1, description="Page size when none is requested")
    max_page_size: int = Field(default=1000, ge=1, description="Largest page a caller may request")

    @model_validator(mode="after")
    def check_bounds(self) -> Self:
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) must not exceed "
                f"max_page_size ({self.max_page_size})"
            )
        return self

    def clamp(self, requested: int | None) -> int:
        """Clamp a requested page size into [1, max_page_size]."""
        if requested is None:
            requested = self.default_page_size
        return max(1, min(requested, self.max_page_size))


class IntrospectionConfig(BaseModel):
    """Bounds for one introspection call."""

    budget_seconds: float = Field(default=60.0, gt=0, description="Overall time budget")
    concurrency: int = Field(default=4, ge=1, le=32, description="Per-table worker pool size")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SQLSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=1000, ge=1)
    query_timeout_seconds: float = Field(default=30.0, gt=0)
    slow_query_seconds: float = Field(default=5.0, gt=0)

    introspection_budget_seconds: float = Field(default=60.0, gt=0)
    introspection_concurrency: int = Field(default=4, ge=1, le=32)

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    audit_storage: str = Field(default="stdout")
    audit_file_path: str | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {sorted(valid_levels)}")
        return v.upper()

    @field_validator("log_format", "audit_storage")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()

    @property
    def pagination_policy(self) -> PaginationPolicy:
        return PaginationPolicy(
            default_page_size=min(self.default_page_size, self.max_page_size),
            max_page_size=self.max_page_size,
        )

    @property
    def introspection(self) -> IntrospectionConfig:
        return IntrospectionConfig(
            budget_seconds=self.introspection_budget_seconds,
            concurrency=self.introspection_concurrency,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
