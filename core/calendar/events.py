"""Google Calendar event operations."""

import asyncio
import logging
from datetime import timedelta

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from core.config import get_calendar_timeout
from core.exceptions import CalendarCredentialsExpired
from core.timezone import ensure_utc

from .client import get_calendar_service, log_calendar_error

logger = logging.getLogger(__name__)

EXAM_DURATION = timedelta(hours=2)


def build_exam_event(exam: dict) -> dict:
    """Calendar event body for an exam."""
    start = ensure_utc(exam["exam_date"])
    end = start + EXAM_DURATION
    return {
        "summary": exam["name"],
        "location": exam.get("venue") or "",
        "description": "Exam Date",
        "start": {"dateTime": start.isoformat(), "timeZone": "UTC"},
        "end": {"dateTime": end.isoformat(), "timeZone": "UTC"},
    }


async def insert_exam_event(refresh_token: str, exam: dict) -> str | None:
    """
    Insert an exam into the user's primary calendar.

    Returns:
        Google Calendar event ID, or None if the API call failed or timed out

    Raises:
        CalendarCredentialsExpired: If Google rejected the refresh token
    """
    event = build_exam_event(exam)

    def _sync_insert():
        service = get_calendar_service(refresh_token)
        return (
            service.events()
            .insert(calendarId="primary", body=event)
            .execute()
        )

    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(_sync_insert), timeout=get_calendar_timeout()
        )
    except RefreshError as e:
        raise CalendarCredentialsExpired(str(e)) from e
    except HttpError as e:
        if e.resp.status == 401:
            raise CalendarCredentialsExpired(str(e)) from e
        log_calendar_error(e, "insert_exam_event", {"exam_id": exam.get("exam_id")})
        return None
    except asyncio.TimeoutError:
        logger.warning(f"Calendar insert timed out for exam {exam.get('exam_id')}")
        return None
    except Exception as e:
        log_calendar_error(e, "insert_exam_event", {"exam_id": exam.get("exam_id")})
        return None

    logger.info(f"Created calendar event {result['id']} for exam {exam.get('exam_id')}")
    return result["id"]
