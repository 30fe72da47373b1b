"""
Data models for the CPC partner API.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class CPCApiResponse(BaseModel):
    """Partner response shape, also used for normalized failures."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    sucesso: bool
    mensagem: str = ""

    @field_validator("mensagem", mode="before")
    @classmethod
    def default_message(cls, v: Any) -> Any:
        return "" if v is None else v


class CanContactResult(BaseModel):
    """Outcome of the composite can-contact decision."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str


class CPCFailure(str, Enum):
    """Why a partner call was turned into a failed response."""

    REJECTED = "partner_rejected"
    UNAVAILABLE = "partner_unavailable"
    CONFIG_ERROR = "partner_config_error"
