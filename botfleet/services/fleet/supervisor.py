"""Connection supervisor - owns and drives every tenant's live connection."""

import asyncio
import contextlib
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from botfleet.core.exceptions import AppException, PersistenceError
from botfleet.models import ConnectionState, FleetStatus, InboundEvent, RoutedMessage, Tenant
from botfleet.services.fleet.policy import RestartPolicy
from botfleet.services.fleet.registry import FleetRegistry
from botfleet.services.fleet.router import SessionRouter
from botfleet.services.nlu.client import NLUClient
from botfleet.services.nlu.translator import translate
from botfleet.services.slack.base import ChatConnection
from botfleet.services.slack.rtm import SlackRTMConnection
from botfleet.storage.base import TenantStore

logger = structlog.get_logger()

ConnectionFactory = Callable[[Tenant], ChatConnection]
NLUClientFactory = Callable[[Tenant], NLUClient]

WELCOME_MESSAGES = (
    "Hey! I'm your new bot. Great to meet you!",
    "Now you can /invite me to a channel, so I can chat with other people as well!",
)


def _default_nlu_factory(tenant: Tenant) -> NLUClient:
    return NLUClient()


class LiveConnection:
    """A tenant's running stream and its bound NLU client."""

    def __init__(self, tenant: Tenant, stream: ChatConnection, nlu: NLUClient) -> None:
        self.tenant = tenant
        self.stream = stream
        self.nlu = nlu
        self.state = ConnectionState.CONNECTING
        self.do_not_restart = False
        self.task: asyncio.Task | None = None
        self._pending: set[asyncio.Task] = set()

    @property
    def token(self) -> str:
        return self.tenant.token

    @property
    def bot_id(self) -> str:
        return self.stream.identity_id or self.tenant.user_id

    def spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        """Run per-message work without blocking the reader."""
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def cancel_pending(self) -> list[asyncio.Task]:
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        return tasks


class ConnectionSupervisor:
    """Spawns, monitors and restarts tenant connections.

    Handles:
    - Activation with the at-most-one-connection-per-token rule
    - The onboarding welcome on a tenant's first connection
    - Reading events and dispatching them to the NLU service
    - Reconnecting closed streams
    - Shutdown
    """

    def __init__(
        self,
        registry: FleetRegistry,
        store: TenantStore,
        router: SessionRouter | None = None,
        connection_factory: ConnectionFactory | None = None,
        nlu_factory: NLUClientFactory | None = None,
        restart_policy: RestartPolicy | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.router = router or SessionRouter(registry)
        self.connection_factory = connection_factory or SlackRTMConnection
        self.nlu_factory = nlu_factory or _default_nlu_factory
        self.restart_policy = restart_policy or RestartPolicy()

    # ==================== Lifecycle ====================

    async def activate(self, tenant: Tenant) -> LiveConnection:
        """Open a tenant's stream and register it as live.

        Raises:
            AlreadyRunning: The token already has a live connection
            UpstreamRejected: Slack refused the handshake
            TransportError: Slack could not be reached
        """
        connection = LiveConnection(
            tenant=tenant,
            stream=self.connection_factory(tenant),
            nlu=self.nlu_factory(tenant),
        )

        try:
            await self.registry.reserve(tenant.token, connection)
        except AppException:
            await connection.nlu.aclose()
            raise

        try:
            await connection.stream.connect()
        except Exception as e:
            self._set_state(connection, ConnectionState.TERMINATED)
            await self.registry.release(tenant.token, connection)
            await self._dispose(connection)
            logger.error(
                "Error connecting bot to Slack",
                token=tenant.token_preview,
                error=str(e),
            )
            raise

        self._set_state(connection, ConnectionState.OPEN)
        logger.info("Started bot", token=tenant.token_preview, team_id=tenant.team_id)

        if tenant.first_run:
            try:
                await self._welcome(connection)
            except Exception as e:
                # The bot still serves; the welcome is retried on the next activation
                logger.error(
                    "Welcome flow failed",
                    token=tenant.token_preview,
                    error=str(e),
                    exc_info=True,
                )

        connection.task = asyncio.create_task(
            self._run(connection),
            name=f"bot-{tenant.team_id or tenant.user_id}",
        )
        return connection

    async def start_all(self, filter: dict[str, Any] | None = None) -> int:
        """Activate every stored tenant matching ``filter``.

        One tenant failing to start does not stop the others.

        Returns:
            Number of tenants started
        """
        logger.info("Start bots by filter", filter=filter or {})
        try:
            tenants = await self.store.find_all(filter)
        except PersistenceError as e:
            logger.error("Could not load tenants", error=e.message)
            return 0

        results = await asyncio.gather(
            *(self.activate(tenant) for tenant in tenants),
            return_exceptions=True,
        )

        started = 0
        for tenant, result in zip(tenants, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Can't start bot instance",
                    token=tenant.token_preview,
                    error=str(result),
                )
            else:
                started += 1

        logger.info("Bots started", started=started, total=len(tenants))
        return started

    async def deactivate(self, token: str) -> bool:
        """Terminate a tenant's connection without restarting it."""
        connection = self.registry.get(token)
        if connection is None:
            return False

        connection.do_not_restart = True
        await connection.stream.close()

        tasks = connection.cancel_pending()
        if connection.task is not None and not connection.task.done():
            connection.task.cancel()
            tasks.append(connection.task)
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._set_state(connection, ConnectionState.TERMINATED)
        await self.registry.release(token, connection)
        await self._dispose(connection)
        logger.info("Bot stopped", token=connection.tenant.token_preview)
        return True

    async def shutdown(self) -> None:
        """Terminate all connections."""
        tokens = [connection.token for connection in self.registry.connections()]
        logger.info("Stopping bots", count=len(tokens))
        await asyncio.gather(*(self.deactivate(token) for token in tokens))

    def status(self) -> FleetStatus:
        return FleetStatus(
            bots_count=self.registry.bots_count,
            sessions=self.registry.session_count,
        )

    # ==================== Stream handling ====================

    async def _run(self, connection: LiveConnection) -> None:
        """Read events until the stream closes, then reconnect."""
        preview = connection.tenant.token_preview

        while True:
            try:
                async for event in connection.stream.events():
                    connection.spawn(self.handle_event(connection, event))
            except Exception as e:
                logger.warning("Stream read failed", token=preview, error=str(e))

            if connection.do_not_restart:
                return

            self._set_state(connection, ConnectionState.CLOSED)
            logger.info("The RTM api just closed", token=preview)
            self._set_state(connection, ConnectionState.RECONNECTING)

            try:
                attempts = await self.restart_policy.reconnect(connection.stream.connect, preview)
            except Exception as e:
                logger.error("Restart bot failed", token=preview, error=str(e))
                self._set_state(connection, ConnectionState.TERMINATED)
                await self.registry.release(connection.token, connection)
                await self._dispose(connection)
                return

            if connection.do_not_restart:
                return

            self._set_state(connection, ConnectionState.OPEN)
            logger.info("Restarted bot", token=preview, attempts=attempts)

    async def handle_event(self, connection: LiveConnection, event: InboundEvent) -> None:
        """Route one inbound event and answer it through the NLU service.

        Errors are logged here and never reach the connection's reader.
        """
        try:
            routed = self.router.route(connection.bot_id, event)
            if routed is None:
                return

            if not connection.tenant.nlu_active:
                logger.debug("NLU disabled for tenant", token=connection.tenant.token_preview)
                return

            await self._answer(connection, routed)
        except Exception as e:
            logger.error(
                "Error while processing message",
                channel=event.channel,
                error=str(e),
                exc_info=True,
            )

    async def _answer(self, connection: LiveConnection, routed: RoutedMessage) -> None:
        channel = routed.channel

        # Requests within a channel reach the NLU session in arrival order
        async with self.registry.channel_lock(channel):
            try:
                await connection.stream.send_typing(channel)
            except AppException as e:
                logger.debug("Typing indicator failed", channel=channel, error=e.message)

            logger.info("Start NLU request", channel=channel)
            response = await connection.nlu.text_request(
                routed.text,
                session_id=routed.session_id,
                contexts=routed.contexts,
            )
        logger.info("NLU response received", channel=channel)

        result = response.get("result")
        if not result:
            return

        reply = translate(result)
        if reply:
            await connection.stream.reply(channel, reply)

    # ==================== Onboarding ====================

    async def _welcome(self, connection: LiveConnection) -> None:
        """Greet the installing user and clear the tenant's first-run flag."""
        tenant = connection.tenant
        logger.info("Start welcome message", token=tenant.token_preview)

        try:
            for text in WELCOME_MESSAGES:
                await connection.stream.send_private_message(tenant.created_by, text)
        except AppException as e:
            logger.error("Welcome message failed", token=tenant.token_preview, error=e.message)
            return

        logger.info("Welcome message sent", token=tenant.token_preview)
        tenant.first_run = False
        await self._persist(tenant)

    async def _persist(self, tenant: Tenant) -> None:
        try:
            await self.store.upsert(tenant)
        except PersistenceError as e:
            logger.error("Error while persisting bot", token=tenant.token_preview, error=e.message)

    # ==================== Helpers ====================

    def _set_state(self, connection: LiveConnection, state: ConnectionState) -> None:
        logger.debug(
            "Connection state changed",
            token=connection.tenant.token_preview,
            old=connection.state.value,
            new=state.value,
        )
        connection.state = state

    async def _dispose(self, connection: LiveConnection) -> None:
        await connection.stream.close()
        await connection.nlu.aclose()
