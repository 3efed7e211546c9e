"""
Chat Preferences

The API key and the user's free-text personal context are device-local
preferences. They are loaded into an explicit ChatConfig object that is
handed to the chat flow; nothing reads them from global state.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

API_KEY_PREFERENCE = "gemini_api_key"
CONTEXT_PREFERENCE = "chat_context"


class PreferenceStore(ABC):
    """Minimal key-value capability for device preferences."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never set."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass


class InMemoryPreferenceStore(PreferenceStore):
    """Preferences held in a dict. Used in tests and short-lived sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._values = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFilePreferenceStore(PreferenceStore):
    """
    Preferences persisted as a flat JSON object on disk.

    The file is re-read on every get so that two processes sharing it
    see each other's writes.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)


class ChatConfig(BaseModel):
    """Explicit configuration for one chat session."""

    api_key: Optional[str] = Field(
        default=None,
        description="Generative AI API key; None until the user provides one"
    )
    personal_context: str = Field(
        default="",
        description="Free text the user wants the assistant to know about them"
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def load(cls, store: PreferenceStore) -> "ChatConfig":
        return cls(
            api_key=store.get(API_KEY_PREFERENCE),
            personal_context=store.get(CONTEXT_PREFERENCE) or "",
        )

    def save(self, store: PreferenceStore) -> None:
        """
        Persist this configuration.

        A blank API key is never written, so saving cannot erase a
        previously stored key.
        """
        if self.has_api_key:
            store.set(API_KEY_PREFERENCE, self.api_key.strip())
        store.set(CONTEXT_PREFERENCE, self.personal_context or "")
