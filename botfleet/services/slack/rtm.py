"""Slack RTM (websocket) connection for one tenant."""

import asyncio
import itertools
import re
from collections.abc import AsyncIterator
from typing import Any

import aiohttp
import structlog
from slack_sdk.web.async_client import AsyncWebClient

from botfleet.core.config import settings
from botfleet.core.exceptions import TransportError
from botfleet.models import EventClass, InboundEvent, Tenant
from botfleet.services.slack.base import ChatConnection, call_slack

logger = structlog.get_logger()

# <@U123> or <@U123|name>
MENTION_PATTERN = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>")


def classify_event(channel: str, text: str, bot_id: str | None) -> EventClass:
    """Decide how a message relates to the bot.

    IM channel ids start with ``D``. A message whose first token is the bot's
    mention is a direct mention; a mention anywhere else is a plain mention.
    """
    if channel.startswith("D"):
        return EventClass.DIRECT_MESSAGE

    if bot_id:
        mentioned = [m.group(1) for m in MENTION_PATTERN.finditer(text)]
        leading = MENTION_PATTERN.match(text.lstrip())
        if leading and leading.group(1) == bot_id:
            return EventClass.DIRECT_MENTION
        if bot_id in mentioned:
            return EventClass.MENTION

    return EventClass.AMBIENT


class SlackRTMConnection(ChatConnection):
    """Slack RTM connection.

    Handshake goes through ``rtm.connect`` on the Web API, then events are
    read from the returned websocket URL. Replies and private messages use
    the Web API with the tenant's bot token.
    """

    def __init__(
        self,
        tenant: Tenant,
        client: AsyncWebClient | None = None,
        heartbeat: float = 30.0,
    ) -> None:
        self.tenant = tenant
        self._client = client or AsyncWebClient(token=tenant.token, base_url=settings.slack_api_url)
        self._heartbeat = heartbeat
        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._identity_id: str | None = None
        self._message_ids = itertools.count(1)

    @property
    def identity_id(self) -> str | None:
        return self._identity_id

    async def connect(self) -> None:
        await self.close()

        response = await call_slack(self._client, "rtm_connect")
        url = response["url"]
        self._identity_id = response["self"]["id"]

        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(url, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self.close()
            raise TransportError(f"RTM websocket handshake failed: {e!r}", service="slack") from e

        logger.info(
            "RTM websocket connected",
            token=self.tenant.token_preview,
            bot_id=self._identity_id,
        )

    async def events(self) -> AsyncIterator[InboundEvent]:
        if self._ws is None:
            return

        async for msg in self._ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                payload = msg.json()
                if payload.get("type") == "goodbye":
                    logger.info("RTM goodbye received", token=self.tenant.token_preview)
                    break
                event = self.parse_event(payload)
                if event is not None:
                    yield event
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning(
                    "RTM websocket error",
                    token=self.tenant.token_preview,
                    error=str(self._ws.exception()),
                )
                break
            elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
                break

    def parse_event(self, payload: dict[str, Any]) -> InboundEvent | None:
        """Turn a raw RTM payload into an InboundEvent.

        Only plain user messages are returned; edits, joins and other
        subtypes are ignored.
        """
        if payload.get("type") != "message" or payload.get("subtype"):
            return None

        channel = payload.get("channel", "")
        text = payload.get("text") or ""

        return InboundEvent(
            type="message",
            user=payload.get("user"),
            text=text,
            channel=channel,
            event_class=classify_event(channel, text, self._identity_id),
            raw_payload=payload,
        )

    async def reply(self, channel: str, payload: dict[str, Any]) -> None:
        await call_slack(self._client, "chat_postMessage", **{**payload, "channel": channel})

    async def send_typing(self, channel: str) -> None:
        if self._ws is None or self._ws.closed:
            return
        try:
            await self._ws.send_json({"id": next(self._message_ids), "type": "typing", "channel": channel})
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise TransportError(f"Failed to send typing indicator: {e!r}", service="slack") from e

    async def send_private_message(self, user_id: str, text: str) -> None:
        opened = await call_slack(self._client, "conversations_open", users=user_id)
        channel = opened["channel"]["id"]
        await self.send_text(channel, text)

    async def close(self) -> None:
        ws, session = self._ws, self._session
        self._ws = None
        self._session = None
        if ws is not None and not ws.closed:
            await ws.close()
        if session is not None and not session.closed:
            await session.close()
