"""
Deployment settings for Duo Finance, read from the environment and .env.

Per-user chat preferences (API key, personal context) are NOT settings;
they live in a ChatConfig loaded from a PreferenceStore (see preferences.py).
"""

import warnings
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    shopping_lists_sheet_name: str = Field(
        default="ShoppingLists",
        description="Name of the sheet for shopping lists"
    )
    users_sheet_name: str = Field(
        default="Users",
        description="Name of the sheet for user profiles"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing file only warns; it may be mounted after startup."""
        if not Path(v).exists():
            warnings.warn(f"No service account credentials at {v}; Sheets storage will not connect.")
        return v


class GeminiSettings(BaseSettings):
    """
    Gemini LLM configuration.

    The API key itself is supplied per user through ChatConfig.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    model_name: str = Field(
        default="gemini-1.5-pro",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class FormattingSettings(BaseSettings):
    """Locale and currency used when rendering money for people."""

    model_config = SettingsConfigDict(
        env_prefix="FORMATTING_",
        extra="ignore"
    )

    locale: str = Field(
        default="pt_BR",
        description="Locale identifier for number formatting"
    )
    currency: str = Field(
        default="BRL",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    fallback_category: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Category label for transactions without one (unset: follows the locale)"
    )
    shopping_category: str = Field(
        default="Compras",
        min_length=1,
        description="Category recorded when a shopping list is finished"
    )


class AppSettings(BaseSettings):
    """Settings with no prefix of their own."""

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

    default_period: str = Field(
        default="month",
        pattern="^(day|week|month|year)$",
        description="Period shown when a screen first loads"
    )
    preferences_path: str = Field(
        default=".duo_finance/preferences.json",
        description="Where chat preferences are kept on this device"
    )

    # Validation thresholds
    max_transaction_amount: float = Field(
        default=10000000.0,
        description="Maximum reasonable transaction magnitude (sanity check)"
    )


class Settings(BaseSettings):
    """Entry point to every settings group."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Groups are built on access so one bad group does not block the rest

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def formatting(self) -> FormattingSettings:
        return FormattingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings. Tests call get_settings.cache_clear() after changing env."""
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Try to build every settings group.

    Maps each group name to whether it loaded; failures also get a
    "<name>_error" entry with the message.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "gemini", "formatting", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
