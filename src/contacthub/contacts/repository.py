"""
Contact repository for database operations.
"""

from typing import Any, Protocol, Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contacthub.contacts.models import Contact
from contacthub.shared.exceptions import ConflictError


class ContactRepositoryProtocol(Protocol):
    """Protocol for contact repository operations."""

    async def get_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact | None:
        """Get a contact by ID."""
        ...

    async def get_by_phone(self, phone: str, *, for_update: bool = False) -> Contact | None:
        """Get a contact by phone."""
        ...

    async def list_all(
        self,
        search: str | None = None,
        segment: int | None = None,
    ) -> Sequence[Contact]:
        """List contacts matching the filters."""
        ...

    async def create(self, contact: Contact) -> Contact:
        """Create a single contact."""
        ...

    async def update(self, contact: Contact, values: dict[str, Any]) -> Contact:
        """Apply column changes to a contact."""
        ...

    async def delete(self, contact: Contact) -> None:
        """Delete a contact."""
        ...


class ContactRepository:
    """Repository for contact database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact | None:
        """Get a contact by ID.

        Args:
            contact_id: Contact ID.
            for_update: Lock the row until the current transaction ends.

        Returns:
            Contact if found, None otherwise.
        """
        stmt = select(Contact).where(Contact.id == contact_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str, *, for_update: bool = False) -> Contact | None:
        """Get a contact by phone.

        Args:
            phone: Phone number, matched exactly.
            for_update: Lock the row until the current transaction ends.

        Returns:
            Contact if found, None otherwise.
        """
        stmt = select(Contact).where(Contact.phone == phone)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(
        self,
        search: str | None = None,
        segment: int | None = None,
    ) -> Sequence[Contact]:
        """List contacts, newest first.

        Args:
            search: Free text matched against name (case-insensitive), phone
                or cpf (substring).
            segment: Exact segment match.

        Returns:
            Matching contacts.
        """
        stmt = select(Contact)

        if search:
            stmt = stmt.where(
                or_(
                    Contact.name.icontains(search, autoescape=True),
                    Contact.phone.contains(search, autoescape=True),
                    Contact.cpf.contains(search, autoescape=True),
                )
            )
        if segment is not None:
            stmt = stmt.where(Contact.segment == segment)

        stmt = stmt.order_by(Contact.created_at.desc(), Contact.id.desc())
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def create(self, contact: Contact) -> Contact:
        """Create a single contact.

        Args:
            contact: Contact to create.

        Returns:
            Created contact with ID.

        Raises:
            ConflictError: If another contact already holds the phone.
        """
        self._session.add(contact)
        await self._flush(contact.phone)
        await self._session.refresh(contact)
        return contact

    async def update(self, contact: Contact, values: dict[str, Any]) -> Contact:
        """Apply column changes to a contact.

        Args:
            contact: ORM contact instance (must be attached to session).
            values: Column name to new value.

        Returns:
            Updated contact.

        Raises:
            ConflictError: If the change moves the contact onto a taken phone.
        """
        for column, value in values.items():
            setattr(contact, column, value)

        await self._flush(contact.phone)
        await self._session.refresh(contact)
        return contact

    async def delete(self, contact: Contact) -> None:
        """Delete a contact.

        Args:
            contact: ORM contact instance (must be attached to session).
        """
        await self._session.delete(contact)
        await self._session.flush()

    async def _flush(self, phone: str) -> None:
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Contact with phone {phone} already exists",
                details={"phone": phone},
            ) from exc
