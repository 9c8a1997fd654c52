"""
Configuration Management for the Savings Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
File locations and ledger defaults are read once and validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Where ledger data lives and the defaults applied to new buckets."""

    model_config = SettingsConfigDict(
        env_prefix="SAVINGS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    state_path: Path = Field(
        default=Path("data/savings_state.json"),
        description="JSON file holding the saved ledger state"
    )
    snapshot_path: Path = Field(
        default=Path("savings_data.json"),
        description="Bootstrap snapshot used when there is no saved state"
    )
    config_path: Path = Field(
        default=Path("savings_config.json"),
        description="Optional allocation/goal overrides for the bootstrap snapshot"
    )
    cleanup_paths: str = Field(
        default="public/savings_data.json,savings_data.json",
        description="Comma-separated files cleaned by the migration utility"
    )

    default_allocation: Decimal = Field(
        default=Decimal("10"),
        ge=0,
        le=100,
        description="Allocation given to bootstrap buckets with no override"
    )
    default_goal_base: Decimal = Field(
        default=Decimal("100000"),
        gt=0,
        description="Goal for a bucket with no explicit goal is base x allocation / 100"
    )
    reconciliation_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Allowed gap between a draft's amount and the sum of its per-bucket split"
    )

    @field_validator("reconciliation_tolerance")
    @classmethod
    def validate_tolerance(cls, v: Decimal) -> Decimal:
        """Tolerance is a currency amount, so it is kept to the cent."""
        if v != v.quantize(Decimal("0.01")):
            raise ValueError("reconciliation_tolerance must be a whole number of cents")
        return v

    @property
    def cleanup_paths_list(self) -> list[Path]:
        """Get cleanup paths as a list."""
        return [Path(p.strip()) for p in self.cleanup_paths.split(",") if p.strip()]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard logging level for the ledger's structured logs"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.ledger
        results["ledger"] = True
    except Exception as e:
        results["ledger"] = False
        results["ledger_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
