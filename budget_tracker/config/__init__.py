"""Configuration package."""

from budget_tracker.config.settings import (
    AppSettings,
    InsightSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "InsightSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
