"""AI Agents package."""

from duo_finance.agents.chat_agent import (
    ChatServiceError,
    FinanceChatAgent,
    MissingApiKeyError,
    build_system_instruction,
    welcome_message,
)

__all__ = [
    "ChatServiceError",
    "FinanceChatAgent",
    "MissingApiKeyError",
    "build_system_instruction",
    "welcome_message",
]
