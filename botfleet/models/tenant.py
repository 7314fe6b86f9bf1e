"""Tenant models for multi-tenancy support."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from botfleet.services.slack.oauth import AccessGrant, Identity


def trim_token(token: str) -> str:
    """Loggable preview of an access token."""
    return token[:12] + "***"


class Tenant(BaseModel):
    """One Slack workspace bot integration, keyed by its bot token."""

    token: str = Field(..., min_length=1, repr=False, description="Bot access token")
    user_id: str = Field(..., description="The bot user's own id in the workspace")
    created_by: str = Field(..., description="Id of the user who installed the bot")
    team: str = ""
    team_id: str = ""

    # Onboarding and processing switches
    first_run: bool = True
    nlu_active: bool = True

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def token_preview(self) -> str:
        return trim_token(self.token)

    @property
    def mention(self) -> str:
        """Slack mention token for the bot user, e.g. ``<@U123>``."""
        return f"<@{self.user_id}>"

    @classmethod
    def from_grant(cls, grant: "AccessGrant", identity: "Identity") -> "Tenant":
        """Build a freshly onboarded tenant from an OAuth exchange."""
        return cls(
            token=grant.bot_access_token,
            user_id=grant.bot_user_id,
            created_by=identity.user_id,
            team=identity.team,
            team_id=identity.team_id,
            first_run=True,
            nlu_active=True,
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store."""
        return self.model_dump(mode="json")
