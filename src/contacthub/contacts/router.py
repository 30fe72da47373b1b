"""
API router for contact management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contacthub.contacts.schemas import ContactCreate, ContactResponse, ContactUpdate
from contacthub.contacts.service import ContactService
from contacthub.shared.database import get_db_session

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


def get_contact_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> ContactService:
    """Dependency for contact service."""
    return ContactService(session=session)


ContactServiceDep = Annotated[ContactService, Depends(get_contact_service)]


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create or merge a contact by phone",
)
async def upsert_contact(
    payload: ContactCreate,
    service: ContactServiceDep,
) -> ContactResponse:
    contact = await service.upsert_by_phone(payload)
    return ContactResponse.model_validate(contact)


@router.get(
    "",
    response_model=list[ContactResponse],
    summary="List contacts",
)
async def list_contacts(
    service: ContactServiceDep,
    search: Annotated[
        str | None,
        Query(description="Matches name (case-insensitive), phone or cpf"),
    ] = None,
    segment: Annotated[int | None, Query(description="Exact segment")] = None,
) -> list[ContactResponse]:
    contacts = await service.list_contacts(search=search, segment=segment)
    return [ContactResponse.model_validate(c) for c in contacts]


@router.get(
    "/phone/{phone}",
    response_model=ContactResponse | None,
    summary="Get a contact by phone (null when absent)",
)
async def get_contact_by_phone(
    phone: str,
    service: ContactServiceDep,
) -> ContactResponse | None:
    contact = await service.get_by_phone(phone)
    return ContactResponse.model_validate(contact) if contact else None


@router.patch(
    "/phone/{phone}",
    response_model=ContactResponse,
    summary="Update a contact by phone",
    description="Setting is_cpc stamps or clears last_cpc_at; "
    "a name change marks the name as manual.",
)
async def update_contact_by_phone(
    phone: str,
    payload: ContactUpdate,
    service: ContactServiceDep,
) -> ContactResponse:
    contact = await service.update_by_phone(phone, payload)
    return ContactResponse.model_validate(contact)


@router.get(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Get a contact by ID",
)
async def get_contact(
    contact_id: int,
    service: ContactServiceDep,
) -> ContactResponse:
    contact = await service.get_by_id(contact_id)
    return ContactResponse.model_validate(contact)


@router.patch(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Update a contact by ID",
)
async def update_contact(
    contact_id: int,
    payload: ContactUpdate,
    service: ContactServiceDep,
) -> ContactResponse:
    contact = await service.update_by_id(contact_id, payload)
    return ContactResponse.model_validate(contact)


@router.delete(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Remove a contact",
)
async def remove_contact(
    contact_id: int,
    service: ContactServiceDep,
) -> ContactResponse:
    contact = await service.remove_by_id(contact_id)
    return ContactResponse.model_validate(contact)
