"""
Partner CPC API configuration.

Environment variables:
- CPC_API_URL: partner base URL (integration is disabled while empty)
- CPC_API_USER: Basic auth username ("Vend" when unset or empty)
- CPC_API_PASSWORD: Basic auth password
- CPC_API_ENABLED: "true" turns the integration on; anything else leaves it off
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER = "Vend"


class CPCConfig(BaseSettings):
    """CPC partner API configuration from environment."""

    model_config = SettingsConfigDict(
        env_prefix="CPC_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default="", description="Partner API base URL")
    user: str = Field(default=DEFAULT_USER)
    password: str = Field(default="")
    enabled: bool = Field(default=False)

    @field_validator("enabled", mode="before")
    @classmethod
    def parse_enabled(cls, v: Any) -> Any:
        """Only the literal string "true" enables the integration."""
        if isinstance(v, str):
            return v == "true"
        return v

    @field_validator("user", mode="before")
    @classmethod
    def default_blank_user(cls, v: Any) -> Any:
        return v or DEFAULT_USER

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


def get_cpc_config() -> CPCConfig:
    return CPCConfig()
