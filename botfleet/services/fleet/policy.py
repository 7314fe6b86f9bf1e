"""Reconnect policy for closed tenant streams."""

from collections.abc import Awaitable, Callable

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_never,
    wait_fixed,
)

from botfleet.core.config import settings
from botfleet.core.exceptions import TransportError, UpstreamRejected

logger = structlog.get_logger()


class RestartPolicy:
    """Retries a connection handshake until it succeeds.

    There is no attempt ceiling: a sustained upstream outage keeps every
    affected tenant retrying. The wait between attempts is fixed and comes
    from ``reconnect_wait_seconds`` (0 by default).
    """

    retryable = (TransportError, UpstreamRejected)

    def __init__(self, wait_seconds: float | None = None) -> None:
        self.wait_seconds = settings.reconnect_wait_seconds if wait_seconds is None else wait_seconds

    async def reconnect(self, connect: Callable[[], Awaitable[None]], token_preview: str) -> int:
        """Run ``connect`` until it succeeds.

        Returns:
            Number of attempts made
        """

        def _before_sleep(retry_state: RetryCallState) -> None:
            logger.warning(
                "Reconnect attempt failed",
                token=token_preview,
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
            )

        attempts = 0
        async for attempt in AsyncRetrying(
            stop=stop_never,
            wait=wait_fixed(self.wait_seconds),
            retry=retry_if_exception_type(self.retryable),
            before_sleep=_before_sleep,
            reraise=True,
        ):
            with attempt:
                attempts = attempt.retry_state.attempt_number
                logger.info("Trying to restart bot", token=token_preview, attempt=attempts)
                await connect()

        return attempts
