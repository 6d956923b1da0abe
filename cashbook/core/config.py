"""Cashbook Ledger - Core Configuration."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Cashbook Ledger"
    debug: bool = False

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./cashbook.db",
        description="Async SQLAlchemy URL (mysql+aiomysql in production)",
    )
    db_pool_size: int = Field(default=10, ge=1, description="Connection pool size")
    db_max_overflow: int = Field(default=20, ge=0, description="Pool overflow connections")

    # Ledger
    ledger_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to bucket transactions into calendar months and days",
    )
    ledger_lock_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Maximum time to wait for an account lock before reporting DATABASE_ERROR",
    )

    # Reporting
    history_page_size: int = Field(
        default=50, ge=1, le=500, description="Default page size for transaction history"
    )

    @field_validator("ledger_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
