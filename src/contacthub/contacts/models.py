"""
SQLAlchemy models for contacts.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from contacthub.shared.database import Base


class Contact(Base):
    """Contact record; ``phone`` is the natural key."""

    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    phone: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    cpf: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )
    segment: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
    )
    is_cpc: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    last_cpc_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    # Human-entered names are authoritative over automated merges.
    is_name_manual: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Contact(id={self.id}, phone={self.phone}, is_cpc={self.is_cpc})>"
