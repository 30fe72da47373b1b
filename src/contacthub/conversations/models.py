"""
SQLAlchemy models for conversations.

Only the columns the contact directory keeps in sync are mapped here; the
messaging side of the system owns the rest of the table.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from contacthub.shared.database import Base

# Display name used until the contact's real name is known.
PLACEHOLDER_CONTACT_NAME = "Unknown"


class Conversation(Base):
    """Conversation with a denormalized copy of the contact's name."""

    __tablename__ = "conversations"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    contact_phone: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    contact_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=PLACEHOLDER_CONTACT_NAME,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, phone={self.contact_phone}, name={self.contact_name})>"
