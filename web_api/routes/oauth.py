"""
Calendar OAuth callback.

Endpoints:
- GET /oauth2callback - Google redirects here after the user grants access

Not a JSON endpoint: it always ends in a redirect to the frontend, with
?calendar=connected on success or ?calendar=error&reason=... on failure.
"""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from core.calendar.sync import complete_calendar_sync
from core.config import get_frontend_url
from core.exceptions import CalendarAuthFailure, PersistenceFailure

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])


def _redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(url=f"{get_frontend_url()}/?{urlencode(params)}")


@router.get("/oauth2callback")
async def oauth2_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
):
    """
    Finish calendar authorization.

    Exchanges the code, stores the credential and adds the exam the flow was
    started for.
    """
    # User declined on the consent screen
    if error:
        logger.info(f"Calendar authorization declined: {error}")
        return _redirect(calendar="error", reason=error)

    try:
        result = await complete_calendar_sync(code, state)
    except CalendarAuthFailure as e:
        logger.warning(f"Calendar authorization failed ({e.reason}): {e.detail}")
        return _redirect(calendar="error", reason=e.reason)
    except PersistenceFailure as e:
        logger.error(f"Calendar authorization could not be saved: {e}")
        return _redirect(calendar="error", reason="server_error")

    if result["event_id"] is None:
        return _redirect(calendar="connected", event="failed")
    return _redirect(calendar="connected")
