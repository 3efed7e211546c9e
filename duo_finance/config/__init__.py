"""Configuration package."""

from duo_finance.config.preferences import (
    ChatConfig,
    InMemoryPreferenceStore,
    JsonFilePreferenceStore,
    PreferenceStore,
)
from duo_finance.config.settings import (
    AppSettings,
    FormattingSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ChatConfig",
    "FormattingSettings",
    "GeminiSettings",
    "GoogleSheetsSettings",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "PreferenceStore",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
