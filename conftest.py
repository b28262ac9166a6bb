"""
Test Configuration and Fixtures

Each test gets its own in-memory SQLite database through SQLAlchemy's
aiosqlite dialect, so the real ORM queries run without a PostgreSQL server.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

# Must be set before config/database are imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from database import DatabaseManager
from models import Contact, LinkPrecedence
from services import IdentityService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
BASE_TIME = datetime(2023, 4, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseManager, None]:
    manager = DatabaseManager(TEST_DATABASE_URL)
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def service(database) -> IdentityService:
    return IdentityService(database)


@pytest.fixture
def seed_contact(database):
    """
    Insert a contact directly, bypassing the engine.
    `minutes` places created_at relative to BASE_TIME so seniority is explicit.
    """
    async def _seed(
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        linked_id: Optional[int] = None,
        minutes: int = 0,
        deleted: bool = False,
    ) -> int:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        async with database.transaction() as session:
            contact = Contact(
                email=email,
                phone_number=phone_number,
                linked_id=linked_id,
                link_precedence=(
                    LinkPrecedence.SECONDARY.value if linked_id is not None
                    else LinkPrecedence.PRIMARY.value
                ),
                created_at=created_at,
                updated_at=created_at,
                deleted_at=created_at if deleted else None,
            )
            session.add(contact)
            await session.flush()
            return contact.id

    return _seed


@pytest.fixture
def load_contact(database):
    async def _load(contact_id: int) -> Contact:
        async with database.transaction() as session:
            return await session.get(Contact, contact_id)

    return _load


@pytest.fixture
def count_contacts(database):
    async def _count() -> int:
        async with database.transaction() as session:
            return await session.scalar(select(func.count()).select_from(Contact))

    return _count
