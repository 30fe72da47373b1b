"""
Contact service for business logic.

The contact directory is the single source of truth for contact records and
keeps the denormalized ``contact_name`` of conversations in sync with it:

- creating or merging a contact with a known name fills in conversations that
  still show the placeholder name;
- an explicit rename rewrites every conversation for the contact's phone.

Each write runs in one transaction: the contact row is locked on lookup, then
written, then the conversation cascade runs, then the session commits. Any
error rolls the whole sequence back.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from contacthub.contacts.models import Contact
from contacthub.contacts.repository import ContactRepository, ContactRepositoryProtocol
from contacthub.contacts.schemas import ContactCreate, ContactUpdate
from contacthub.conversations.models import PLACEHOLDER_CONTACT_NAME
from contacthub.conversations.repository import (
    ConversationRepository,
    ConversationRepositoryProtocol,
)
from contacthub.shared.exceptions import NotFoundError
from contacthub.shared.logging import get_logger

logger = get_logger(__name__)

# Columns that may be cleared to NULL through an update.
_NULLABLE_FIELDS = frozenset({"name", "cpf", "segment"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _has_name(name: str | None) -> bool:
    return bool(name and name.strip())


@dataclass(frozen=True)
class ContactPatch:
    """Column changes for one contact update.

    ``fields`` holds the validated input; ``last_cpc_at`` and
    ``is_name_manual`` are derived by the service and only written when set.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    stamp_last_cpc_at: bool = False
    last_cpc_at: datetime | None = None
    is_name_manual: bool | None = None

    @classmethod
    def from_update(cls, update: ContactUpdate) -> "ContactPatch":
        fields = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        return cls(fields=fields)

    @property
    def is_cpc(self) -> bool | None:
        return self.fields.get("is_cpc")

    @property
    def name(self) -> str | None:
        return self.fields.get("name")

    def renames(self, current_name: str | None) -> bool:
        """True when the patch sets a name different from ``current_name``."""
        return "name" in self.fields and self.fields["name"] != current_name

    def with_cpc_stamp(self, now: datetime) -> "ContactPatch":
        """Pair the CPC flag with its timestamp: set on True, cleared on False."""
        if self.is_cpc is None:
            return self
        return replace(
            self,
            stamp_last_cpc_at=True,
            last_cpc_at=now if self.is_cpc else None,
        )

    def values(self) -> dict[str, Any]:
        values = dict(self.fields)
        if self.stamp_last_cpc_at:
            values["last_cpc_at"] = self.last_cpc_at
        if self.is_name_manual is not None:
            values["is_name_manual"] = self.is_name_manual
        return values


class ContactService:
    """Service for contact management operations."""

    def __init__(
        self,
        session: AsyncSession,
        contact_repository: ContactRepositoryProtocol | None = None,
        conversation_repository: ConversationRepositoryProtocol | None = None,
    ) -> None:
        """Initialize contact service.

        Args:
            session: Async database session; the service owns its transactions.
            contact_repository: Optional contact repository (for DI).
            conversation_repository: Optional conversation repository (for DI).
        """
        self._session = session
        self._contacts = contact_repository or ContactRepository(session)
        self._conversations = conversation_repository or ConversationRepository(session)

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    async def upsert_by_phone(self, data: ContactCreate) -> Contact:
        """Create a contact or merge the given fields into the existing one.

        Args:
            data: Contact fields; ``phone`` selects the record.

        Returns:
            The created or updated contact.

        Raises:
            ConflictError: If a concurrent writer created the same phone first.
        """
        values = data.model_dump(exclude_unset=True)

        async with self._transaction():
            contact = await self._contacts.get_by_phone(data.phone, for_update=True)
            created = contact is None
            if contact is None:
                contact = await self._contacts.create(Contact(**values))
            else:
                contact = await self._contacts.update(contact, values)

            renamed = 0
            if _has_name(data.name):
                renamed = await self._conversations.rename_contact(
                    contact.phone,
                    data.name,
                    only_placeholder=True,
                )

        logger.info(
            "Contact created" if created else "Contact merged",
            extra={
                "contact_id": contact.id,
                "phone": contact.phone,
                "renamed_conversations": renamed,
            },
        )
        return contact

    async def list_contacts(
        self,
        search: str | None = None,
        segment: int | None = None,
    ) -> Sequence[Contact]:
        """List contacts, newest first.

        Args:
            search: Matched against name (case-insensitive), phone or cpf.
            segment: Exact segment filter.

        Returns:
            Matching contacts; all contacts when no filter is given.
        """
        return await self._contacts.list_all(search=search, segment=segment)

    async def get_by_id(self, contact_id: int) -> Contact:
        """Get a contact by ID.

        Raises:
            NotFoundError: If no contact has this ID.
        """
        return await self._require_by_id(contact_id)

    async def get_by_phone(self, phone: str) -> Contact | None:
        """Get a contact by phone, or None when absent."""
        return await self._contacts.get_by_phone(phone)

    async def update_by_id(self, contact_id: int, data: ContactUpdate) -> Contact:
        """Apply a partial update to the contact with this ID.

        A name change is propagated to every conversation for the contact's
        phone.

        Raises:
            NotFoundError: If no contact has this ID.
            ConflictError: If the update moves the contact onto a taken phone.
        """
        patch = ContactPatch.from_update(data)

        async with self._transaction():
            contact = await self._require_by_id(contact_id, for_update=True)
            contact = await self._apply(contact, patch, contact.phone)

        return contact

    async def update_by_phone(self, phone: str, data: ContactUpdate) -> Contact:
        """Apply a partial update to the contact with this phone.

        On top of :meth:`update_by_id`:

        - ``is_cpc=True`` stamps ``last_cpc_at`` with the current time and
          ``is_cpc=False`` clears it;
        - a name change marks the name as manually curated.

        Raises:
            NotFoundError: If no contact has this phone.
            ConflictError: If the update moves the contact onto a taken phone.
        """
        patch = ContactPatch.from_update(data).with_cpc_stamp(_utcnow())

        async with self._transaction():
            contact = await self._contacts.get_by_phone(phone, for_update=True)
            if contact is None:
                raise NotFoundError(
                    f"Contact with phone {phone} not found",
                    details={"phone": phone},
                )

            if patch.renames(contact.name):
                patch = replace(patch, is_name_manual=True)

            contact = await self._apply(contact, patch, phone)

        return contact

    async def remove_by_id(self, contact_id: int) -> Contact:
        """Delete the contact with this ID; its conversations are kept.

        Returns:
            The deleted contact.

        Raises:
            NotFoundError: If no contact has this ID.
        """
        async with self._transaction():
            contact = await self._require_by_id(contact_id, for_update=True)
            await self._contacts.delete(contact)

        logger.info(
            "Contact removed",
            extra={"contact_id": contact_id, "phone": contact.phone},
        )
        return contact

    async def _require_by_id(self, contact_id: int, *, for_update: bool = False) -> Contact:
        contact = await self._contacts.get_by_id(contact_id, for_update=for_update)
        if contact is None:
            raise NotFoundError(
                f"Contact with ID {contact_id} not found",
                details={"id": contact_id},
            )
        return contact

    async def _apply(self, contact: Contact, patch: ContactPatch, conversation_phone: str) -> Contact:
        previous_name = contact.name
        renamed = patch.renames(previous_name)

        contact = await self._contacts.update(contact, patch.values())

        updated_conversations = 0
        if renamed:
            updated_conversations = await self._conversations.rename_contact(
                conversation_phone,
                patch.name if patch.name is not None else PLACEHOLDER_CONTACT_NAME,
            )

        logger.info(
            "Contact updated",
            extra={
                "contact_id": contact.id,
                "fields": sorted(patch.values()),
                "renamed_conversations": updated_conversations,
            },
        )
        return contact
