"""
Configuration Management for Cashflow

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The engine itself is pure; only the practical ceilings it needs
(the "forever" horizon, the max horizon for end dates) and the
collaborators around it (storage, logging) are configurable.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Recurrence and contribution configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CASHFLOW_",
        extra="ignore"
    )

    forever_horizon_years: int = Field(
        default=12,
        ge=1,
        le=100,
        description="Years added to a date when a transaction repeats 'forever'"
    )
    max_horizon_years: float = Field(
        default=12.1,
        gt=0,
        description="How far in the future an end date may lie"
    )
    contribution_category: str = Field(
        default="Other",
        min_length=1,
        description="Category of the expense created by a goal contribution"
    )
    contribution_name_template: str = Field(
        default="Contribution to {goal_name}",
        description="Name of the expense created by a goal contribution"
    )

    @field_validator('contribution_name_template')
    @classmethod
    def validate_name_template(cls, v: str) -> str:
        """The template must reference the goal name."""
        if "{goal_name}" not in v:
            raise ValueError("contribution_name_template must contain '{goal_name}'")
        return v

    @property
    def max_horizon_days(self) -> int:
        """Max horizon expressed in days (365.25 days per year)."""
        return int(self.max_horizon_years * 365.25)


class StorageSettings(BaseSettings):
    """Record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CASHFLOW_STORE_",
        extra="ignore"
    )

    backend: str = Field(
        default="json",
        pattern="^(memory|json)$",
        description="Record store backend"
    )
    path: str = Field(
        default="cashflow_data.json",
        description="Path of the JSON key-value file"
    )

    # Keys within the key-value document
    transactions_key: str = Field(
        default="Transactions",
        description="Key holding the transaction collection"
    )
    goals_key: str = Field(
        default="Goals",
        description="Key holding the goal collection"
    )

    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for each file read/write"
    )

    @property
    def file_path(self) -> Path:
        return Path(self.path)


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level for the cashflow loggers"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Render log lines as JSON or for a console"
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


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
    def engine(self) -> EngineSettings:
        return EngineSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

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

    for name in ("engine", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
