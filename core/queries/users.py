"""User-related database queries using SQLAlchemy Core."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import exam_registrations, users


async def get_user_by_id(
    conn: AsyncConnection,
    user_id: int,
) -> dict[str, Any] | None:
    """Get a user by database ID."""
    result = await conn.execute(select(users).where(users.c.user_id == user_id))
    row = result.mappings().first()
    return dict(row) if row else None


async def get_all_users(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get every user, oldest first."""
    result = await conn.execute(select(users).order_by(users.c.user_id))
    return [dict(row) for row in result.mappings()]


async def create_user(
    conn: AsyncConnection,
    name: str,
    email: str | None = None,
    phone_number: str | None = None,
    is_admin: bool = False,
) -> dict[str, Any]:
    """Create a new user and return the created record."""
    result = await conn.execute(
        insert(users)
        .values(
            name=name,
            email=email,
            phone_number=phone_number,
            is_admin=is_admin,
            email_notifications_enabled=True,
            sms_notifications_enabled=False,
            in_app_notifications_enabled=False,
        )
        .returning(users)
    )
    row = result.mappings().first()
    return dict(row)


async def update_user(
    conn: AsyncConnection,
    user_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update a user by ID and return the updated record."""
    updates["updated_at"] = datetime.now(timezone.utc)
    result = await conn.execute(
        update(users)
        .where(users.c.user_id == user_id)
        .values(**updates)
        .returning(users)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def set_calendar_token(
    conn: AsyncConnection,
    user_id: int,
    refresh_token: str,
) -> dict[str, Any] | None:
    """Store (or overwrite) the user's calendar refresh token."""
    now = datetime.now(timezone.utc)
    return await update_user(
        conn,
        user_id,
        calendar_refresh_token=refresh_token,
        calendar_connected_at=now,
    )


async def get_users_registered_for_exam(
    conn: AsyncConnection,
    exam_id: int,
) -> list[dict[str, Any]]:
    """Get users with a registration for the exam, in registration order."""
    result = await conn.execute(
        select(users)
        .join(exam_registrations, exam_registrations.c.user_id == users.c.user_id)
        .where(exam_registrations.c.exam_id == exam_id)
        .order_by(exam_registrations.c.registration_id)
    )
    return [dict(row) for row in result.mappings()]
