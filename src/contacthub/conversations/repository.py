"""
Conversation repository for the contact-name cascade.
"""

from typing import Protocol

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from contacthub.conversations.models import PLACEHOLDER_CONTACT_NAME, Conversation


class ConversationRepositoryProtocol(Protocol):
    """Protocol for conversation repository operations."""

    async def rename_contact(
        self,
        contact_phone: str,
        contact_name: str,
        *,
        only_placeholder: bool = False,
    ) -> int:
        """Rewrite the contact name on conversations for a phone."""
        ...


class ConversationRepository:
    """Repository for conversation database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def rename_contact(
        self,
        contact_phone: str,
        contact_name: str,
        *,
        only_placeholder: bool = False,
    ) -> int:
        """Rewrite ``contact_name`` on every conversation for a phone.

        Args:
            contact_phone: Phone shared by the contact and its conversations.
            contact_name: New display name.
            only_placeholder: Only touch rows still holding the placeholder name.

        Returns:
            Number of conversations updated.
        """
        stmt = (
            update(Conversation)
            .where(Conversation.contact_phone == contact_phone)
            .values(contact_name=contact_name)
        )
        if only_placeholder:
            stmt = stmt.where(Conversation.contact_name == PLACEHOLDER_CONTACT_NAME)

        result = await self._session.execute(stmt)
        return result.rowcount or 0
