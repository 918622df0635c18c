"""Configuration package."""

from noteledger.config.settings import (
    LoggingSettings,
    ParserSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "LoggingSettings",
    "ParserSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
