"""JSON shapes returned to the client (camelCase keys)."""

from .enums import enabled_channels
from .timezone import to_iso


def _value(enum_or_str) -> str | None:
    if enum_or_str is None:
        return None
    return getattr(enum_or_str, "value", enum_or_str)


def serialize_exam(exam: dict) -> dict:
    return {
        "id": exam["exam_id"],
        "name": exam["name"],
        "date": to_iso(exam["exam_date"]),
        "venue": exam.get("venue"),
        "preparationMaterials": list(exam.get("materials", [])),
        "announcements": list(exam.get("announcements", [])),
    }


def serialize_notification(notification: dict) -> dict:
    return {
        "id": notification["notification_id"],
        "userId": notification["user_id"],
        "examId": notification["exam_id"],
        "message": notification["message"],
        "type": _value(notification["notification_type"]),
        "date": to_iso(notification["scheduled_at"]),
        "delivered": bool(notification["delivered"]),
        "deliveredAt": to_iso(notification.get("delivered_at")),
    }


def serialize_delivery_attempt(entry: dict) -> dict:
    return {
        "channel": _value(entry["channel"]),
        "status": _value(entry["status"]),
        "error": entry.get("error_message"),
        "attemptedAt": to_iso(entry.get("created_at")),
    }


def serialize_notification_detail(notification: dict) -> dict:
    data = serialize_notification(notification)
    data["deliveryLog"] = [
        serialize_delivery_attempt(entry)
        for entry in notification.get("delivery_log", [])
    ]
    return data


def serialize_user(user: dict, registered_exam_ids: list[int] | None = None) -> dict:
    """User profile. The calendar credential itself never leaves the server."""
    data = {
        "id": user["user_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "phoneNumber": user.get("phone_number"),
        "notificationPreferences": [c.value for c in enabled_channels(user)],
        "reminderFrequency": _value(user.get("reminder_frequency")),
        "calendarConnected": bool(user.get("calendar_refresh_token")),
    }
    if registered_exam_ids is not None:
        data["examRegistrations"] = registered_exam_ids
    return data
