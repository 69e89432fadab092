"""
Configuration Management for Budget Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds used by validation and insights live in one place and are
validated at startup. The progress calculator's at-budget tolerance is
deliberately not configurable.
"""

from functools import lru_cache

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


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

    # Display
    currency_symbol: str = Field(
        default="$",
        max_length=5,
        description="Symbol used when formatting amounts"
    )

    # Validation thresholds
    max_transaction_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Maximum reasonable transaction amount (for sanity checking)"
    )
    max_budget_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Maximum reasonable budget amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a transaction can be dated"
    )


class InsightSettings(BaseSettings):
    """Thresholds for spending recommendations."""

    model_config = SettingsConfigDict(
        env_prefix="INSIGHTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    high_concentration_percent: float = Field(
        default=30.0,
        ge=0.0,
        le=100.0,
        description="Top category share above which spending is flagged"
    )
    excellent_savings_rate_percent: float = Field(
        default=20.0,
        description="Savings rate above which saving is praised"
    )
    low_savings_rate_percent: float = Field(
        default=10.0,
        description="Savings rate below which saving is flagged"
    )
    high_frequency_per_month: int = Field(
        default=50,
        ge=1,
        description="Transactions per month above which frequency is flagged"
    )
    top_categories_limit: int = Field(
        default=5,
        ge=1,
        le=13,
        description="How many categories the ranking shows"
    )
    default_period: str = Field(
        default="6",
        description="Reporting period used when none is given"
    )

    @field_validator('low_savings_rate_percent')
    @classmethod
    def validate_savings_band(cls, v: float, info: ValidationInfo) -> float:
        """The low threshold cannot sit above the excellent one."""
        excellent = info.data.get("excellent_savings_rate_percent")
        if excellent is not None and v > excellent:
            raise ValueError(
                "low_savings_rate_percent cannot exceed excellent_savings_rate_percent"
            )
        return v


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
    def app(self) -> AppSettings:
        return AppSettings()

    @property
    def insights(self) -> InsightSettings:
        return InsightSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for the groups that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("app", "insights"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
