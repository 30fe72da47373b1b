"""
CPC (can-contact) validation against the partner API.
"""

from contacthub.cpc.models import CanContactResult, CPCApiResponse
from contacthub.cpc.phone import format_phone_for_partner
from contacthub.cpc.service import CPCValidationService

__all__ = [
    "CPCApiResponse",
    "CPCValidationService",
    "CanContactResult",
    "format_phone_for_partner",
]
