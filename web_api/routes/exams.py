"""
Exam routes.

Endpoints:
- GET /exams - List exams
- GET /exams/{exam_id} - Get one exam
- POST /exams - Create an exam and announce it to every user (admin)
- POST /exams/register - Register the current user for an exam
- POST /exams/addToCalendar - Add an exam to the current user's calendar
- POST /exams/{exam_id}/announcements - Add an announcement (admin)
- POST /exams/{exam_id}/materials - Add preparation material (admin)
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from core import exams as exam_service
from core import registration
from core.serializers import serialize_exam
from web_api.auth import get_current_user, get_user_id, require_admin

router = APIRouter(prefix="/exams", tags=["exams"])


class ExamCreate(BaseModel):
    """Request body for creating an exam."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    date: datetime
    venue: str | None = None
    preparation_materials: list[str] = Field(
        default_factory=list, alias="preparationMaterials"
    )
    announcements: list[str] = Field(default_factory=list)


class ExamRef(BaseModel):
    """Request body naming an exam."""

    model_config = ConfigDict(populate_by_name=True)

    exam_id: int = Field(alias="examId")


class AnnouncementCreate(BaseModel):
    announcement: str


class MaterialCreate(BaseModel):
    material: str


@router.get("")
async def list_exams() -> list[dict[str, Any]]:
    exams = await exam_service.list_exams()
    return [serialize_exam(exam) for exam in exams]


@router.get("/{exam_id}")
async def get_exam(exam_id: int) -> dict[str, Any]:
    exam = await exam_service.get_exam(exam_id)
    return serialize_exam(exam)


@router.post("", status_code=201)
async def create_exam(
    body: ExamCreate,
    admin: dict = Depends(require_admin),
) -> dict[str, Any]:
    """Create an exam; every user gets an announcement right away."""
    exam = await exam_service.create_exam(
        name=body.name,
        exam_date=body.date,
        venue=body.venue,
        materials=body.preparation_materials,
        announcements=body.announcements,
    )
    return {
        "message": "Exam created and notifications sent",
        "exam": serialize_exam(exam),
    }


@router.post("/register")
async def register_for_exam(
    body: ExamRef,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Register for an exam.

    The response carries an authUrl when the user still has to authorize
    calendar access; the browser should be sent there.
    """
    return await registration.register_for_exam(get_user_id(user), body.exam_id)


@router.post("/addToCalendar")
async def add_to_calendar(
    body: ExamRef,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    return await registration.add_to_calendar(get_user_id(user), body.exam_id)


@router.post("/{exam_id}/announcements")
async def add_announcement(
    exam_id: int,
    body: AnnouncementCreate,
    admin: dict = Depends(require_admin),
) -> dict[str, Any]:
    notified = await exam_service.add_announcement(exam_id, body.announcement)
    return {
        "message": "Announcement added and notifications sent",
        "notifiedUsers": notified,
    }


@router.post("/{exam_id}/materials")
async def add_material(
    exam_id: int,
    body: MaterialCreate,
    admin: dict = Depends(require_admin),
) -> dict[str, Any]:
    notified = await exam_service.add_material(exam_id, body.material)
    return {
        "message": "Preparation material added and notifications sent",
        "notifiedUsers": notified,
    }
