"""Runtime settings for the opengov-mcp server.

All settings can be configured via environment variables with the prefix
``OPENGOV_MCP_``. The portal URL and port also honour the bare ``DATA_PORTAL_URL``
and ``PORT`` variables. A ``.env`` file in the working directory is read as well.
"""

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OPENGOV_MCP_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Data portal settings
    data_portal_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENGOV_MCP_DATA_PORTAL_URL", "DATA_PORTAL_URL", "data_portal_url"),
    )
    data_portal_title: str | None = None
    """Overrides the title fetched from the portal when set."""
    app_token: str | None = None
    """Optional Socrata application token, sent as ``X-App-Token``."""
    request_timeout: float = 30.0

    # HTTP settings
    host: str = "0.0.0.0"
    port: int = Field(
        default=9090,
        validation_alias=AliasChoices("OPENGOV_MCP_PORT", "PORT", "port"),
    )
    mcp_path: str = "/mcp"
    sse_ping_interval: int = 15

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("data_portal_url")
    @classmethod
    def _normalise_portal_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        if not value:
            return None
        if "://" not in value:
            value = f"https://{value}"
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value
