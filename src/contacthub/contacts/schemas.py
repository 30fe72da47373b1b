"""
Pydantic schemas for contact management.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContactBase(BaseModel):
    """Base contact schema with common fields."""

    name: str | None = Field(
        default=None,
        max_length=255,
        description="Display name",
    )
    cpf: str | None = Field(
        default=None,
        max_length=20,
        description="Brazilian taxpayer id (CPF)",
    )
    segment: int | None = Field(
        default=None,
        description="Portfolio segment the contact belongs to",
    )


class ContactCreate(ContactBase):
    """Schema for creating (or merging into) a contact keyed by phone."""

    phone: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Phone number, unique per contact",
    )


class ContactUpdate(ContactBase):
    """Schema for partial contact updates; omitted fields are left unchanged."""

    phone: str | None = Field(
        default=None,
        min_length=1,
        max_length=50,
    )
    is_cpc: bool | None = Field(
        default=None,
        description="Mark (or unmark) the contact as a confirmed CPC",
    )


class ContactResponse(BaseModel):
    """Schema for contact response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    phone: str
    name: str | None
    cpf: str | None
    segment: int | None
    is_cpc: bool
    last_cpc_at: datetime | None
    is_name_manual: bool
    created_at: datetime
    updated_at: datetime
