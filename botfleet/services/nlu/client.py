"""HTTP client for the NLU service's text query endpoint."""

from typing import Any

import httpx
import structlog

from botfleet.core.config import settings
from botfleet.core.exceptions import TransportError, UpstreamRejected

logger = structlog.get_logger()


class NLUClient:
    """Client for an api.ai style ``/query`` endpoint.

    One client is bound to each live connection and carries the
    deployment's language setting.
    """

    def __init__(
        self,
        access_token: str | None = None,
        language: str | None = None,
        base_url: str | None = None,
        protocol_version: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token if access_token is not None else settings.nlu_access_token
        self.language = language or settings.nlu_language
        self.protocol_version = protocol_version or settings.nlu_protocol_version
        self._http = http_client or httpx.AsyncClient(
            base_url=base_url or settings.nlu_base_url,
            timeout=timeout or settings.nlu_timeout_seconds,
        )

    async def text_request(
        self,
        text: str,
        session_id: str,
        contexts: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Send a user utterance and return the decoded response.

        Args:
            text: Normalized user text
            session_id: Conversation session of the originating channel
            contexts: Context objects forwarded verbatim

        Returns:
            The response JSON; its ``result`` holds the fulfillment

        Raises:
            UpstreamRejected: The service answered with an error status
            TransportError: The service could not be reached
        """
        body = {
            "query": text,
            "lang": self.language,
            "sessionId": session_id,
            "contexts": contexts or [],
        }

        try:
            response = await self._http.post(
                "/query",
                params={"v": self.protocol_version},
                json=body,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UpstreamRejected(
                f"NLU request rejected with HTTP {e.response.status_code}",
                service="nlu",
                error=e.response.text[:200],
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"NLU service unreachable: {e!r}", service="nlu") from e

        payload = response.json()
        status = payload.get("status") or {}
        code = status.get("code", 200)
        if isinstance(code, int) and code >= 400:
            raise UpstreamRejected(
                f"NLU request failed: {status.get('errorDetails') or status.get('errorType')}",
                service="nlu",
                error=status.get("errorType"),
            )

        return payload

    async def aclose(self) -> None:
        await self._http.aclose()
