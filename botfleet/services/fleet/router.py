"""Session routing and message-class filtering for inbound Slack events."""

import html
import re
from dataclasses import dataclass

import structlog

from botfleet.core.config import Settings, settings
from botfleet.models import EventClass, InboundEvent, RoutedMessage
from botfleet.services.fleet.registry import FleetRegistry
from botfleet.services.slack.rtm import MENTION_PATTERN

logger = structlog.get_logger()

# Mis-encoded right single quotation mark (UTF-8 read as cp1252)
BROKEN_APOSTROPHE = "â€™"


@dataclass
class RoutingPolicy:
    """Which event classes are forwarded to the NLU service."""

    process_ambient: bool = False
    process_direct_message: bool = True
    process_direct_mention: bool = True
    process_mention: bool = True

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "RoutingPolicy":
        config = config or settings
        return cls(
            process_ambient=config.process_ambient,
            process_direct_message=config.process_direct_message,
            process_direct_mention=config.process_direct_mention,
            process_mention=config.process_mention,
        )

    def allows(self, event_class: EventClass) -> bool:
        return {
            EventClass.AMBIENT: self.process_ambient,
            EventClass.DIRECT_MESSAGE: self.process_direct_message,
            EventClass.DIRECT_MENTION: self.process_direct_mention,
            EventClass.MENTION: self.process_mention,
        }[event_class]


def normalize_text(text: str, bot_id: str) -> str:
    """Decode entities, repair apostrophes and strip the bot's own mention."""
    text = html.unescape(text)
    text = text.replace(BROKEN_APOSTROPHE, "'")

    own_mention = rf"<@{re.escape(bot_id)}(?:\|[^>]*)?>"
    text = re.sub(rf"^\s*{own_mention}:?", "", text)
    text = re.sub(rf"{own_mention}\s*$", "", text)
    return text.strip()


class SessionRouter:
    """Decides whether an inbound event is processed and for which session."""

    def __init__(self, registry: FleetRegistry, policy: RoutingPolicy | None = None) -> None:
        self.registry = registry
        self.policy = policy or RoutingPolicy.from_settings()

    def route(self, bot_id: str, event: InboundEvent) -> RoutedMessage | None:
        """Route one event for the bot ``bot_id``.

        Returns:
            RoutedMessage, or None when the event is dropped
        """
        if event.type != "message":
            return None

        # Messages from the bot itself
        if event.user == bot_id:
            return None

        if self._is_foreign_mention(event.text, bot_id):
            logger.debug("Skipping mention of another user", channel=event.channel)
            return None

        if not self.policy.allows(event.event_class):
            return None

        text = normalize_text(event.text, bot_id)
        session_id = self.registry.session_for(event.channel)

        logger.info(
            "Routed message",
            channel=event.channel,
            event_class=event.event_class.value,
            text=text[:20],
        )

        return RoutedMessage(
            text=text,
            session_id=session_id,
            channel=event.channel,
            user=event.user,
        )

    @staticmethod
    def _is_foreign_mention(text: str, bot_id: str) -> bool:
        """True when the text opens by addressing someone else."""
        leading = MENTION_PATTERN.match(text.lstrip())
        if leading is None or leading.group(1) == bot_id:
            return False
        return all(m.group(1) != bot_id for m in MENTION_PATTERN.finditer(text))
