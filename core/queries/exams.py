"""Exam and registration database queries using SQLAlchemy Core."""

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import exam_announcements, exam_materials, exam_registrations, exams


async def _attach_details(
    conn: AsyncConnection,
    exam_rows: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Add ordered materials and announcements lists to exam rows."""
    if not exam_rows:
        return []

    exam_ids = [row["exam_id"] for row in exam_rows]
    materials: dict[int, list[str]] = {exam_id: [] for exam_id in exam_ids}
    announcements: dict[int, list[str]] = {exam_id: [] for exam_id in exam_ids}

    result = await conn.execute(
        select(exam_materials.c.exam_id, exam_materials.c.material)
        .where(exam_materials.c.exam_id.in_(exam_ids))
        .order_by(exam_materials.c.material_id)
    )
    for exam_id, material in result:
        materials[exam_id].append(material)

    result = await conn.execute(
        select(exam_announcements.c.exam_id, exam_announcements.c.announcement)
        .where(exam_announcements.c.exam_id.in_(exam_ids))
        .order_by(exam_announcements.c.announcement_id)
    )
    for exam_id, announcement in result:
        announcements[exam_id].append(announcement)

    return [
        {
            **row,
            "materials": materials[row["exam_id"]],
            "announcements": announcements[row["exam_id"]],
        }
        for row in exam_rows
    ]


async def create_exam(
    conn: AsyncConnection,
    name: str,
    exam_date: datetime,
    venue: str | None = None,
    materials: list[str] | None = None,
    announcements: list[str] | None = None,
) -> dict[str, Any]:
    """Create an exam with its initial materials and announcements."""
    result = await conn.execute(
        insert(exams)
        .values(name=name, exam_date=exam_date, venue=venue)
        .returning(exams)
    )
    exam = dict(result.mappings().first())

    for material in materials or []:
        await add_exam_material(conn, exam["exam_id"], material)
    for announcement in announcements or []:
        await add_exam_announcement(conn, exam["exam_id"], announcement)

    return {
        **exam,
        "materials": list(materials or []),
        "announcements": list(announcements or []),
    }


async def get_exam_by_id(
    conn: AsyncConnection,
    exam_id: int,
) -> dict[str, Any] | None:
    """Get an exam with its materials and announcements."""
    result = await conn.execute(select(exams).where(exams.c.exam_id == exam_id))
    row = result.mappings().first()
    if not row:
        return None
    detailed = await _attach_details(conn, [dict(row)])
    return detailed[0]


async def get_all_exams(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get every exam, soonest first."""
    result = await conn.execute(
        select(exams).order_by(exams.c.exam_date, exams.c.exam_id)
    )
    rows = [dict(row) for row in result.mappings()]
    return await _attach_details(conn, rows)


async def add_exam_material(
    conn: AsyncConnection,
    exam_id: int,
    material: str,
) -> None:
    await conn.execute(
        insert(exam_materials).values(exam_id=exam_id, material=material)
    )


async def add_exam_announcement(
    conn: AsyncConnection,
    exam_id: int,
    announcement: str,
) -> None:
    await conn.execute(
        insert(exam_announcements).values(exam_id=exam_id, announcement=announcement)
    )


# =====================================================
# Registrations
# =====================================================


async def add_registration(
    conn: AsyncConnection,
    user_id: int,
    exam_id: int,
) -> dict[str, Any]:
    """Append an exam to the user's registration list."""
    result = await conn.execute(
        insert(exam_registrations)
        .values(user_id=user_id, exam_id=exam_id)
        .returning(exam_registrations)
    )
    return dict(result.mappings().first())


async def is_registered(
    conn: AsyncConnection,
    user_id: int,
    exam_id: int,
) -> bool:
    result = await conn.execute(
        select(exam_registrations.c.registration_id)
        .where(exam_registrations.c.user_id == user_id)
        .where(exam_registrations.c.exam_id == exam_id)
        .limit(1)
    )
    return result.first() is not None


async def get_registered_exam_ids(
    conn: AsyncConnection,
    user_id: int,
) -> list[int]:
    """Exam IDs the user registered for, in registration order."""
    result = await conn.execute(
        select(exam_registrations.c.exam_id)
        .where(exam_registrations.c.user_id == user_id)
        .order_by(exam_registrations.c.registration_id)
    )
    return [row[0] for row in result]


async def get_latest_registered_exam_id(
    conn: AsyncConnection,
    user_id: int,
) -> int | None:
    """Exam ID of the user's most recent registration."""
    result = await conn.execute(
        select(exam_registrations.c.exam_id)
        .where(exam_registrations.c.user_id == user_id)
        .order_by(exam_registrations.c.registration_id.desc())
        .limit(1)
    )
    row = result.first()
    return row[0] if row else None
