"""Slack OAuth handshake for onboarding new workspaces."""

from dataclasses import dataclass

import structlog
from slack_sdk.web.async_client import AsyncWebClient

from botfleet.core.config import settings
from botfleet.core.exceptions import InvalidRequest, UpstreamRejected
from botfleet.models import trim_token
from botfleet.services.slack.base import call_slack

logger = structlog.get_logger()


@dataclass
class AccessGrant:
    """Credentials returned by ``oauth.access``."""

    access_token: str
    bot_access_token: str
    bot_user_id: str
    scope: str = ""
    team_id: str = ""
    team_name: str = ""


@dataclass
class Identity:
    """The authenticated identity reported by ``auth.test``."""

    user_id: str
    user: str = ""
    team: str = ""
    team_id: str = ""
    url: str = ""


class SlackOAuthExchange:
    """Turns an authorization code into a verified bot credential.

    Makes exactly two outbound calls and never retries; persisting and
    activating the resulting tenant is left to the caller.
    """

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        api_url: str | None = None,
    ) -> None:
        self.client_id = client_id or settings.slack_client_id
        self.client_secret = client_secret or settings.slack_client_secret
        self.api_url = api_url or settings.slack_api_url

    def _client(self, token: str | None = None) -> AsyncWebClient:
        return AsyncWebClient(token=token, base_url=self.api_url)

    async def exchange(self, code: str | None, redirect_uri: str | None = None) -> tuple[AccessGrant, Identity]:
        """Exchange an authorization code and verify the resulting token.

        Raises:
            InvalidRequest: No authorization code given
            UpstreamRejected: Slack refused the code or the token
            TransportError: Slack could not be reached
        """
        if not code:
            raise InvalidRequest("Empty authentication code")

        grant = await self.oauth_access(code, redirect_uri)
        identity = await self.auth_test(grant)
        return grant, identity

    async def oauth_access(self, code: str, redirect_uri: str | None = None) -> AccessGrant:
        logger.info("Calling oauth.access")
        response = await call_slack(
            self._client(),
            "oauth_access",
            client_id=self.client_id,
            client_secret=self.client_secret,
            code=code,
            redirect_uri=redirect_uri,
        )

        bot = response.get("bot") or {}
        if not bot.get("bot_access_token") or not bot.get("bot_user_id"):
            raise UpstreamRejected(
                "OAuth grant did not include a bot user",
                service="slack",
                error="missing_bot",
            )

        grant = AccessGrant(
            access_token=response.get("access_token", ""),
            bot_access_token=bot["bot_access_token"],
            bot_user_id=bot["bot_user_id"],
            scope=response.get("scope", ""),
            team_id=response.get("team_id", ""),
            team_name=response.get("team_name", ""),
        )
        logger.info(
            "OAuth grant received",
            token=trim_token(grant.bot_access_token),
            team_id=grant.team_id,
        )
        return grant

    async def auth_test(self, grant: AccessGrant) -> Identity:
        logger.info("Calling auth.test")
        response = await call_slack(self._client(grant.access_token), "auth_test")

        identity = Identity(
            user_id=response["user_id"],
            user=response.get("user", ""),
            team=response.get("team", ""),
            team_id=response.get("team_id", ""),
            url=response.get("url", ""),
        )
        logger.info("Identity verified", user_id=identity.user_id, team_id=identity.team_id)
        return identity
