"""User profile and chat message models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class PartnerStatus(str, Enum):
    """State of a partner invitation."""
    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"


class UserProfile(BaseModel):
    """
    A user of the app.

    Authentication is handled by an external identity provider; user_id
    is whatever stable identifier it issues.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str = Field(..., min_length=1)
    email: Optional[str] = None
    partner_email: Optional[str] = Field(
        default=None,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="E-mail of the invited partner"
    )
    partner_status: PartnerStatus = PartnerStatus.NONE
    updated_at: datetime = Field(default_factory=datetime.now)


WELCOME_MESSAGE_ID = "welcome"


class ChatMessage(BaseModel):
    """One message in the assistant conversation."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    text: str
    is_user: bool

    @property
    def is_welcome(self) -> bool:
        return self.id == WELCOME_MESSAGE_ID

    def to_history_entry(self) -> dict:
        """Shape expected by the generative AI chat history."""
        return {
            "role": "user" if self.is_user else "model",
            "parts": [self.text],
        }
