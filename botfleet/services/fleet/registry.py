"""Shared registry of live connections and channel sessions."""

import asyncio
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from botfleet.core.exceptions import AlreadyRunning
from botfleet.models import trim_token

if TYPE_CHECKING:
    from botfleet.services.fleet.supervisor import LiveConnection

logger = structlog.get_logger()


class FleetRegistry:
    """Live connections keyed by bot token, plus channel session ids.

    One registry is shared by the supervisor, the session router and the
    control endpoint. Tests get isolation by building a fresh one.
    """

    def __init__(self) -> None:
        self._connections: dict[str, "LiveConnection"] = {}
        self._sessions: dict[str, str] = {}
        self._channel_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()

    # ==================== Connections ====================

    async def reserve(self, token: str, connection: "LiveConnection") -> None:
        """Register a connection, refusing a token that is already present.

        Raises:
            AlreadyRunning: A connection for this token is registered
        """
        async with self._lock:
            if token in self._connections:
                raise AlreadyRunning(trim_token(token))
            self._connections[token] = connection

    async def release(self, token: str, connection: "LiveConnection | None" = None) -> bool:
        """Remove a token's connection.

        When ``connection`` is given, only that exact instance is removed.
        """
        async with self._lock:
            current = self._connections.get(token)
            if current is None or (connection is not None and current is not connection):
                return False
            del self._connections[token]
            return True

    def get(self, token: str) -> "LiveConnection | None":
        return self._connections.get(token)

    def is_running(self, token: str) -> bool:
        return token in self._connections

    def connections(self) -> list["LiveConnection"]:
        return list(self._connections.values())

    @property
    def bots_count(self) -> int:
        return len(self._connections)

    # ==================== Sessions ====================

    def session_for(self, channel: str) -> str:
        """Get the channel's session id, creating it on first use.

        No await between lookup and insert, so this is atomic on the loop.
        """
        session_id = self._sessions.get(channel)
        if session_id is None:
            session_id = uuid4().hex
            self._sessions[channel] = session_id
            logger.debug("Created conversation session", channel=channel)
        return session_id

    def channel_lock(self, channel: str) -> asyncio.Lock:
        """Lock serializing NLU submissions for one channel's session."""
        lock = self._channel_locks.get(channel)
        if lock is None:
            lock = self._channel_locks[channel] = asyncio.Lock()
        return lock

    @property
    def session_count(self) -> int:
        return len(self._sessions)
