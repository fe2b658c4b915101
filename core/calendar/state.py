"""
Signed OAuth `state` for the calendar authorization round trip.

The state is the only context that survives the browser redirect, so it
carries the user and the exam being added, signed and with an expiry.
"""

import os
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from core.config import get_oauth_state_ttl_minutes
from core.exceptions import CalendarAuthFailure

JWT_SECRET = os.environ.get("JWT_SECRET")
JWT_ALGORITHM = "HS256"
STATE_PURPOSE = "calendar_sync"


def encode_state(user_id: int, exam_id: int | None = None) -> str:
    """
    Create a signed state token for the calendar OAuth flow.

    Args:
        user_id: User starting the authorization
        exam_id: Exam to add once authorization completes

    Returns:
        Signed JWT string

    Raises:
        CalendarAuthFailure: No signing key configured
    """
    if not JWT_SECRET:
        raise CalendarAuthFailure("not_configured", "JWT_SECRET environment variable not set")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "exam_id": exam_id,
        "purpose": STATE_PURPOSE,
        "nonce": secrets.token_urlsafe(8),
        "iat": now,
        "exp": now + timedelta(minutes=get_oauth_state_ttl_minutes()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_state(state: str | None) -> tuple[int, int | None]:
    """
    Verify a state token and recover (user_id, exam_id).

    Raises:
        CalendarAuthFailure: Missing, tampered, expired or foreign state, or
            no signing key configured
    """
    if not state:
        raise CalendarAuthFailure("invalid_state", "Missing state")
    if not JWT_SECRET:
        raise CalendarAuthFailure("not_configured", "JWT_SECRET environment variable not set")

    try:
        payload = jwt.decode(state, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise CalendarAuthFailure("expired_state", str(e)) from e
    except jwt.InvalidTokenError as e:
        raise CalendarAuthFailure("invalid_state", str(e)) from e

    if payload.get("purpose") != STATE_PURPOSE:
        raise CalendarAuthFailure("invalid_state", "State was not issued for calendar sync")

    try:
        user_id = int(payload["sub"])
        exam_id = payload.get("exam_id")
        exam_id = int(exam_id) if exam_id is not None else None
    except (KeyError, TypeError, ValueError) as e:
        raise CalendarAuthFailure("invalid_state", "Malformed state payload") from e

    return user_id, exam_id
