"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./triangle_engine.db"
    database_echo: bool = False

    # Application
    environment: str = "development"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/triangle_engine.log"
    log_rotation: str = "1 day"
    log_retention: str = "7 days"

    # Allocation
    slot_reservation_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts to reserve a slot before giving up on a lost race",
    )

    # Referral
    referral_code_attempts: int = Field(
        default=5,
        ge=1,
        description="Random referral codes tried before the UUID fallback",
    )
    referral_suffix_min_length: int = Field(
        default=3,
        ge=1,
        description="Shortest identifier accepted by the suffix-match lookup",
    )

    # Funding instructions stored on pending deposits
    deposit_coin: str = "USDT"
    deposit_network: str = "TRC20"
    deposit_wallet_address: str = "TBD"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL uses an async driver."""
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "or sqlite+aiosqlite://"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not supported in production. "
                    "Set DATABASE_URL to a postgresql+asyncpg:// URL."
                )
        return self


# Global settings instance
settings = Settings()
