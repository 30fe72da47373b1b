"""
API router for CPC (can-contact) checks.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from contacthub.cpc.models import CanContactResult, CPCApiResponse
from contacthub.cpc.service import CPCValidationService

router = APIRouter(prefix="/api/cpc", tags=["cpc"])


@lru_cache(maxsize=1)
def get_cpc_service() -> CPCValidationService:
    """Shared CPC service; configuration is read once per process."""
    return CPCValidationService()


CPCServiceDep = Annotated[CPCValidationService, Depends(get_cpc_service)]
Contract = Annotated[str, Query(min_length=1, description="Partner contract id")]
Segment = Annotated[str, Query(min_length=1, description="Partner segment")]


class AcionamentoRequest(BaseModel):
    """Body for registering a CPC contact."""

    contract: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    segment: str = Field(..., min_length=1)


class CPCStatusResponse(BaseModel):
    enabled: bool


@router.get("/status", response_model=CPCStatusResponse)
async def cpc_status(service: CPCServiceDep) -> CPCStatusResponse:
    return CPCStatusResponse(enabled=service.enabled)


@router.get("/validate-contract", response_model=CPCApiResponse)
async def validate_contract(
    service: CPCServiceDep,
    contract: Contract,
    segment: Segment,
    phone: Annotated[str | None, Query()] = None,
) -> CPCApiResponse:
    return await service.validate_contract(contract, segment, phone)


@router.get("/check-acionamento", response_model=CPCApiResponse)
async def check_acionamento(
    service: CPCServiceDep,
    contract: Contract,
    segment: Segment,
    phone: Annotated[str, Query(min_length=1)],
) -> CPCApiResponse:
    return await service.check_acionamento(contract, phone, segment)


@router.post("/register-acionamento", response_model=CPCApiResponse)
async def register_acionamento(
    payload: AcionamentoRequest,
    service: CPCServiceDep,
) -> CPCApiResponse:
    return await service.register_acionamento(payload.contract, payload.phone, payload.segment)


@router.get(
    "/can-contact",
    response_model=CanContactResult,
    summary="Validate contract, then check same-day acionamento",
)
async def can_contact(
    service: CPCServiceDep,
    contract: Contract,
    segment: Segment,
    phone: Annotated[str, Query(min_length=1)],
) -> CanContactResult:
    return await service.can_contact(contract, phone, segment)
