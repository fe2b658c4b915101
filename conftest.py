"""Root pytest configuration."""

import os
from pathlib import Path

import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)

# Signing keys are read at import time
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-bytes-long")


@pytest_asyncio.fixture
async def test_db(tmp_path):
    """
    Install a throwaway SQLite database as the app's engine.

    Every table is created fresh for each test; services using
    get_connection() / get_transaction() hit this database.
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import NullPool

    from core.database import set_engine
    from core.tables import metadata

    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    set_engine(engine)
    try:
        yield engine
    finally:
        set_engine(None)
        await engine.dispose()


@pytest_asyncio.fixture
async def make_user(test_db):
    """Factory for user rows; keyword arguments override the defaults."""
    from core.database import get_transaction
    from core.queries.users import create_user, update_user

    async def _make(
        name="Alice",
        email="alice@example.com",
        phone_number=None,
        is_admin=False,
        **updates,
    ):
        async with get_transaction() as conn:
            user = await create_user(conn, name, email, phone_number, is_admin)
            if updates:
                user = await update_user(conn, user["user_id"], **updates)
        return user

    return _make


@pytest_asyncio.fixture
async def make_exam(test_db):
    """Factory for exam rows (no announcements are sent)."""
    from datetime import datetime, timezone

    from core.database import get_transaction
    from core.queries.exams import create_exam

    async def _make(
        name="Algebra",
        exam_date=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc),
        venue="Hall A",
        **kwargs,
    ):
        async with get_transaction() as conn:
            return await create_exam(conn, name, exam_date, venue, **kwargs)

    return _make
