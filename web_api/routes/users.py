"""
User routes.

Endpoints:
- POST /users - Create a user and start a session
- GET /users - Current user's profile
- GET /users/registeredExams - Current user's registered exams
- GET /users/notifications - Current user's notifications
- GET /users/notifications/{notification_id} - One notification with its delivery log
- POST /users/updatePreferences - Update channels and reminder cadence
"""

from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from core import users as user_service
from core.serializers import (
    serialize_exam,
    serialize_notification,
    serialize_notification_detail,
    serialize_user,
)
from web_api.auth import create_jwt, get_current_user, get_user_id, set_session_cookie

router = APIRouter(prefix="/users", tags=["users"])


class UserCreate(BaseModel):
    """Request body for signing up."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str | None = None
    phone_number: str | None = Field(None, alias="phoneNumber")


class PreferencesUpdate(BaseModel):
    """Request body for updating notification preferences."""

    model_config = ConfigDict(populate_by_name=True)

    notification_preferences: list[str] = Field(alias="notificationPreferences")
    reminder_frequency: str = Field("daily", alias="reminderFrequency")


@router.post("", status_code=201)
async def create_user(body: UserCreate, response: Response) -> dict[str, Any]:
    """Create a user with default preferences and set the session cookie."""
    user = await user_service.create_user(body.name, body.email, body.phone_number)
    set_session_cookie(response, create_jwt(user["user_id"], user["name"]))
    return serialize_user(user, registered_exam_ids=[])


@router.get("")
async def get_me(user: dict = Depends(get_current_user)) -> dict[str, Any]:
    user_id = get_user_id(user)
    db_user = await user_service.get_user(user_id)
    exam_ids = await user_service.get_registered_exam_ids(user_id)
    return serialize_user(db_user, registered_exam_ids=exam_ids)


@router.get("/registeredExams")
async def get_registered_exams(
    user: dict = Depends(get_current_user),
) -> list[dict[str, Any]]:
    exams = await user_service.get_registered_exams(get_user_id(user))
    return [serialize_exam(exam) for exam in exams]


@router.get("/notifications")
async def get_notifications(
    user: dict = Depends(get_current_user),
) -> list[dict[str, Any]]:
    """Notifications for the current user, latest scheduled date first."""
    notifications = await user_service.get_notifications(get_user_id(user))
    return [serialize_notification(n) for n in notifications]


@router.get("/notifications/{notification_id}")
async def get_notification(
    notification_id: int,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """One of the current user's notifications, with every channel attempt."""
    notification = await user_service.get_notification_detail(
        get_user_id(user), notification_id
    )
    return serialize_notification_detail(notification)


@router.post("/updatePreferences")
async def update_preferences(
    body: PreferencesUpdate,
    user: dict = Depends(get_current_user),
) -> dict[str, Any]:
    """
    Replace the channel set and reminder cadence.

    Unknown channels or cadences are rejected with 400.
    """
    updated = await user_service.update_preferences(
        get_user_id(user),
        body.notification_preferences,
        body.reminder_frequency,
    )
    return serialize_user(updated)
