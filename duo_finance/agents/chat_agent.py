"""
Financial Assistant Agent

The assistant is a Gemini chat session whose system instruction carries
the user's transaction summary (already computed and formatted locally)
plus any personal context the user chose to share.

BOUNDARIES:
- The model never sees raw transactions, only the formatted summary
- The model never writes anything back to storage
- Failures of the generative service surface as ChatServiceError;
  the caller decides what to show the user
"""

from typing import Optional

import google.generativeai as genai

from duo_finance.config import ChatConfig, GeminiSettings, get_settings
from duo_finance.models.user import WELCOME_MESSAGE_ID, ChatMessage


class ChatServiceError(Exception):
    """The generative AI service failed to answer."""
    pass


class MissingApiKeyError(ChatServiceError):
    """No API key has been configured for the assistant."""
    pass


_INSTRUCTIONS = {
    "pt": {
        "persona": (
            "Você é um assistente financeiro especializado em ajudar pessoas "
            "a entenderem melhor seus gastos e organizarem suas finanças."
        ),
        "personal_context": "Contexto pessoal do usuário: {context}",
        "style": (
            "Seja amigável e direto nas respostas, use os dados financeiros do "
            "usuário para dar conselhos mais precisos e personalizados.\n\n"
            "Use emojis e quebras de linha para melhorar a legibilidade das respostas.\n\n"
            "Nunca use markdown, HTML ou outras formatações."
        ),
        "welcome": (
            "Olá! Sou seu assistente financeiro. Posso ajudar você a entender "
            "melhor seus gastos, criar orçamentos e dar dicas para economizar. "
            "Como posso ajudar hoje?"
        ),
    },
    "en": {
        "persona": (
            "You are a financial assistant who helps people understand their "
            "spending and organize their finances."
        ),
        "personal_context": "User's personal context: {context}",
        "style": (
            "Be friendly and direct, and use the user's financial data to give "
            "precise, personalized advice.\n\n"
            "Use emojis and line breaks to make answers easy to read.\n\n"
            "Never use markdown, HTML or any other markup."
        ),
        "welcome": (
            "Hi! I'm your financial assistant. I can help you understand your "
            "spending, build budgets and find ways to save. How can I help today?"
        ),
    },
}


def _instructions(language: str) -> dict:
    return _INSTRUCTIONS.get(language, _INSTRUCTIONS["en"])


def welcome_message(language: str = "pt") -> ChatMessage:
    """The assistant's opening message. Never sent to the model as history."""
    return ChatMessage(
        id=WELCOME_MESSAGE_ID,
        text=_instructions(language)["welcome"],
        is_user=False,
    )


def build_system_instruction(
    transactions_context: str,
    personal_context: str = "",
    language: str = "pt",
) -> str:
    """
    Assemble the system instruction for one chat turn.

    The transactions context is embedded verbatim.
    """
    texts = _instructions(language)
    parts = [texts["persona"], transactions_context.strip()]
    if personal_context and personal_context.strip():
        parts.append(texts["personal_context"].format(context=personal_context.strip()))
    parts.append(texts["style"])
    return "\n\n".join(part for part in parts if part)


class FinanceChatAgent:
    """
    Chat agent backed by Google Generative AI.

    One agent per ChatConfig. The model is created per turn because the
    system instruction changes whenever the user's transactions do.
    """

    def __init__(
        self,
        config: ChatConfig,
        settings: Optional[GeminiSettings] = None,
    ):
        if not config.has_api_key:
            raise MissingApiKeyError(
                "The assistant needs a Gemini API key before it can answer."
            )
        self._config = config
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._config.api_key.strip())

    def _create_model(self, system_instruction: str):
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            system_instruction=system_instruction,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            },
        )

    async def reply(
        self,
        message: str,
        history: list[ChatMessage],
        system_instruction: str,
    ) -> str:
        """
        Send `message` after replaying `history`, and return the answer text.

        Raises:
            ChatServiceError: If the service fails or returns no text
        """
        chat_history = [
            m.to_history_entry() for m in history if not m.is_welcome
        ]

        try:
            model = self._create_model(system_instruction)
            chat = model.start_chat(history=chat_history)
            response = await chat.send_message_async(message)
            text = response.text.strip()
        except Exception as e:
            raise ChatServiceError(f"Assistant failed to answer: {e}") from e

        if not text:
            raise ChatServiceError("Assistant returned an empty answer")
        return text
