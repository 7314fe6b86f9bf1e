"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = Field(default=5000, validation_alias=AliasChoices("app_port", "port"))

    # Slack
    slack_client_id: str = ""
    slack_client_secret: str = ""
    slack_api_url: str = "https://slack.com/api/"

    # NLU service (api.ai style /query endpoint)
    nlu_access_token: str = Field(
        default="",
        validation_alias=AliasChoices("nlu_access_token", "apiai_access_token"),
    )
    nlu_language: str = "en"
    nlu_base_url: str = "https://api.api.ai/v1"
    nlu_protocol_version: str = "20150910"
    nlu_timeout_seconds: float = 30.0

    # Event classes forwarded to the NLU service
    process_ambient: bool = False
    process_direct_message: bool = True
    process_direct_mention: bool = True
    process_mention: bool = True

    # Tenant storage
    storage_backend: Literal["memory", "firestore"] = "memory"
    gcp_project_id: str = ""
    tenants_collection: str = "bots"

    # Connection supervision
    # Wait between reconnect attempts. Attempts are never capped.
    reconnect_wait_seconds: float = Field(default=0.0, ge=0.0)

    # Onboarding redirects
    success_redirect_url: str = "/success.html"
    error_redirect_url: str = "/error.html"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
