"""
Configuration Management for Note Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The parser constants (currency marker, separator length) and the logging
setup are read once and shared by every component.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserSettings(BaseSettings):
    """Note parsing configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="NOTELEDGER_PARSER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    currency_marker: str = Field(
        default="₹",
        min_length=1,
        max_length=3,
        description="Character that marks a line as a transaction candidate"
    )
    separator_min_dashes: int = Field(
        default=7,
        ge=2,
        le=80,
        description="A run of this many dashes marks a separator line"
    )
    strict_amounts: bool = Field(
        default=False,
        description="Route candidate lines without digits to unrecognized instead of amount 0"
    )
    dominance_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Number of categories kept in the dominance view"
    )
    
    @field_validator('currency_marker')
    @classmethod
    def validate_currency_marker(cls, v: str) -> str:
        """Digits or dashes would collide with amount and separator parsing."""
        if any(ch.isdigit() or ch == "-" for ch in v) or v.strip() != v:
            raise ValueError(f"Invalid currency marker: {v!r}")
        return v


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="NOTELEDGER_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )
    
    level: str = Field(
        default="INFO",
        description="Log level name"
    )
    json_output: bool = Field(
        default=True,
        description="Render logs as JSON (otherwise human-readable console output)"
    )
    
    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        level = v.strip().upper()
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
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
    
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    
    @property
    def parser(self) -> ParserSettings:
        return ParserSettings()
    
    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


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
        _ = settings.parser
        results["parser"] = True
    except Exception as e:
        results["parser"] = False
        results["parser_error"] = str(e)
    
    try:
        _ = settings.logging
        results["logging"] = True
    except Exception as e:
        results["logging"] = False
        results["logging_error"] = str(e)
    
    return results
