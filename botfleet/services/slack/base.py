"""Abstract base class for a tenant's chat stream."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

import aiohttp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.web.async_slack_response import AsyncSlackResponse

from botfleet.core.exceptions import TransportError, UpstreamRejected
from botfleet.models import InboundEvent


class ChatConnection(ABC):
    """One tenant's bidirectional stream to the chat platform.

    A connection can be opened again after its event stream ends; the
    supervisor relies on this to reconnect.
    """

    @property
    @abstractmethod
    def identity_id(self) -> str | None:
        """The bot's own user id, known once connected."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Perform the stream handshake.

        Raises:
            UpstreamRejected: The platform refused the credential
            TransportError: The network call failed
        """
        ...

    @abstractmethod
    def events(self) -> AsyncIterator[InboundEvent]:
        """Yield inbound events until the stream closes."""
        ...

    @abstractmethod
    async def reply(self, channel: str, payload: dict[str, Any]) -> None:
        """Post a reply payload (at least ``text`` or attachments) to a channel."""
        ...

    @abstractmethod
    async def send_typing(self, channel: str) -> None:
        """Show the typing indicator in a channel."""
        ...

    @abstractmethod
    async def send_private_message(self, user_id: str, text: str) -> None:
        """Send a message to a user through a private conversation."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        ...

    async def send_text(self, channel: str, text: str) -> None:
        """Convenience method to send a simple text message."""
        await self.reply(channel, {"text": text})


async def call_slack(client: AsyncWebClient, method: str, **kwargs: Any) -> AsyncSlackResponse:
    """Call a Slack Web API method, mapping failures onto the app's errors."""
    try:
        return await getattr(client, method)(**kwargs)
    except SlackApiError as e:
        error = e.response.get("error") if e.response is not None else None
        raise UpstreamRejected(
            f"Slack API error: {error or e}",
            service="slack",
            error=error,
        ) from e
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise TransportError(f"Slack API unreachable: {e!r}", service="slack") from e
