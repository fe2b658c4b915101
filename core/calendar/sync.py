"""
Calendar sync: the two halves of the OAuth authorization-code grant.

Phase 1 runs inside the registration (or add-to-calendar) request and only
returns a consent URL. Phase 2 runs later, when Google redirects the browser
to /oauth2callback; everything it needs comes from the signed state.
"""

import logging

from core.database import get_connection, get_transaction
from core.exceptions import CalendarAuthFailure, CalendarCredentialsExpired
from core.queries.exams import get_exam_by_id, get_latest_registered_exam_id
from core.queries.users import get_user_by_id, set_calendar_token

from .client import build_auth_url, exchange_code
from .events import insert_exam_event
from .state import decode_state, encode_state

logger = logging.getLogger(__name__)


def start_calendar_sync(user_id: int, exam_id: int | None = None) -> str:
    """
    Phase 1: mint the consent URL for a user. Nothing is persisted.

    Returns:
        Authorization URL the browser must be redirected to
    """
    return build_auth_url(encode_state(user_id, exam_id))


async def complete_calendar_sync(code: str | None, state: str | None) -> dict:
    """
    Phase 2: handle the provider callback.

    Decodes the state, exchanges the code, stores the refresh token
    (overwriting any previous one) and inserts the event for the exam the
    flow was started for. State and exchange failures happen before any write.

    Returns:
        {"user_id", "exam_id", "event_id"}; event_id is None when the event
        could not be inserted

    Raises:
        CalendarAuthFailure: Bad state, missing code, unknown user, or a
            failed token exchange
    """
    user_id, exam_id = decode_state(state)
    if not code:
        raise CalendarAuthFailure("missing_code", "Callback had no authorization code")

    async with get_connection() as conn:
        user = await get_user_by_id(conn, user_id)
    if user is None:
        raise CalendarAuthFailure("unknown_user", f"User {user_id} not found")

    refresh_token = await exchange_code(code)

    async with get_transaction() as conn:
        await set_calendar_token(conn, user_id, refresh_token)
        if exam_id is None:
            # States minted without an exam fall back to the latest registration
            exam_id = await get_latest_registered_exam_id(conn, user_id)
        exam = await get_exam_by_id(conn, exam_id) if exam_id is not None else None
    logger.info(f"Stored calendar credentials for user {user_id}")

    if exam is None:
        logger.info(f"No exam to add to calendar for user {user_id}")
        return {"user_id": user_id, "exam_id": exam_id, "event_id": None}

    try:
        event_id = await insert_exam_event(refresh_token, exam)
    except CalendarCredentialsExpired as e:
        logger.error(f"Fresh calendar token rejected for user {user_id}: {e}")
        event_id = None

    return {"user_id": user_id, "exam_id": exam_id, "event_id": event_id}
