"""Message models for Slack events and NLU requests."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventClass(str, Enum):
    """How a message relates to the bot that received it."""

    AMBIENT = "ambient"  # Channel chatter, bot not mentioned
    DIRECT_MESSAGE = "direct_message"  # IM channel with the bot
    DIRECT_MENTION = "direct_mention"  # Message starts with the bot's mention
    MENTION = "mention"  # Bot mentioned elsewhere in the text


class InboundEvent(BaseModel):
    """Normalized event read from a tenant's stream."""

    type: str = "message"
    user: str | None = None
    text: str = ""
    channel: str = ""
    event_class: EventClass = EventClass.AMBIENT

    # Channel-specific data
    raw_payload: dict[str, Any] = Field(default_factory=dict)


class RoutedMessage(BaseModel):
    """An inbound message accepted for NLU processing."""

    text: str
    session_id: str
    channel: str
    user: str | None = None

    @property
    def contexts(self) -> list[dict[str, Any]]:
        """Conversational context forwarded verbatim to the NLU service."""
        return [
            {
                "name": "generic",
                "parameters": {
                    "slack_user_id": self.user,
                    "slack_channel": self.channel,
                },
            }
        ]
