"""
Pytest configuration and shared fixtures.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import contacthub.contacts.models  # noqa: F401  (registers the contacts table)
import contacthub.conversations.models  # noqa: F401  (registers the conversations table)
from contacthub.contacts.service import ContactService
from contacthub.conversations.models import PLACEHOLDER_CONTACT_NAME, Conversation
from contacthub.cpc.config import CPCConfig
from contacthub.shared.database import Base

CPC_BASE_URL = "https://cpc.example.com/api"


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[Any, None]:
    """Create an in-memory test database engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: Any) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def contact_service(db_session: AsyncSession) -> ContactService:
    return ContactService(session=db_session)


@pytest.fixture
def add_conversation(db_session: AsyncSession):
    """Factory fixture inserting a conversation row."""

    async def _add(phone: str, name: str = PLACEHOLDER_CONTACT_NAME) -> Conversation:
        conversation = Conversation(contact_phone=phone, contact_name=name)
        db_session.add(conversation)
        await db_session.commit()
        await db_session.refresh(conversation)
        return conversation

    return _add


@pytest.fixture
def cpc_config() -> CPCConfig:
    """Enabled CPC configuration pointing at a fake partner."""
    return CPCConfig(
        url=CPC_BASE_URL,
        user="Vend",
        password="s3cret",
        enabled=True,
    )


@pytest.fixture
def disabled_cpc_config() -> CPCConfig:
    return CPCConfig(
        url=CPC_BASE_URL,
        user="Vend",
        password="s3cret",
        enabled=False,
    )
