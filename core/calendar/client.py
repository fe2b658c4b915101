"""Google Calendar OAuth client: consent URL, code exchange, API service."""

import logging
import os
from urllib.parse import urlencode

import httpx
import sentry_sdk
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from core.config import get_calendar_timeout, get_google_redirect_uri
from core.exceptions import CalendarAuthFailure

logger = logging.getLogger(__name__)

GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET")
AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _is_rate_limit_error(exception: Exception) -> bool:
    """Check if exception is a Google API rate limit error."""
    if isinstance(exception, HttpError):
        return exception.resp.status == 429
    return False


def log_calendar_error(
    exception: Exception,
    operation: str,
    context: dict | None = None,
) -> None:
    """
    Log calendar API errors with appropriate severity.

    Rate limits get warning level + specific Sentry event.
    Other errors get error level.
    """
    context = context or {}

    if _is_rate_limit_error(exception):
        logger.warning(
            f"Google Calendar rate limit hit during {operation}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_message(
            f"Google Calendar rate limit: {operation}",
            level="warning",
        )
    else:
        logger.error(
            f"Google Calendar API error during {operation}: {exception}",
            extra={"operation": operation, **context},
        )
        sentry_sdk.capture_exception(exception)


def is_calendar_configured() -> bool:
    """Check if Google OAuth client credentials are configured."""
    return bool(GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET)


def build_auth_url(state: str) -> str:
    """
    Build the Google consent URL for the calendar scope.

    access_type=offline + prompt=consent make Google return a refresh token
    even when the user has authorized before.

    Raises:
        CalendarAuthFailure: If the OAuth client is not configured
    """
    if not is_calendar_configured():
        raise CalendarAuthFailure("not_configured", "Google OAuth not configured")

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": get_google_redirect_uri(),
        "response_type": "code",
        "scope": " ".join(SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "include_granted_scopes": "true",
        "state": state,
    }
    return f"{AUTH_URI}?{urlencode(params)}"


async def exchange_code(code: str) -> str:
    """
    Exchange an authorization code for a refresh token.

    Returns:
        The refresh token

    Raises:
        CalendarAuthFailure: Transport error, timeout, rejected code, or a
            response without a refresh token
    """
    if not is_calendar_configured():
        raise CalendarAuthFailure("not_configured", "Google OAuth not configured")

    try:
        async with httpx.AsyncClient(timeout=get_calendar_timeout()) as client:
            token_response = await client.post(
                TOKEN_URI,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": get_google_redirect_uri(),
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.HTTPError as e:
        raise CalendarAuthFailure("token_exchange", str(e)) from e

    if token_response.status_code != 200:
        raise CalendarAuthFailure(
            "token_exchange",
            f"Token endpoint returned {token_response.status_code}: {token_response.text}",
        )

    token_data = token_response.json()
    refresh_token = token_data.get("refresh_token")
    if not refresh_token:
        raise CalendarAuthFailure("no_refresh_token", "Token response had no refresh token")

    return refresh_token


def get_calendar_service(refresh_token: str) -> Resource:
    """Build a Calendar API service acting as the user who owns the token."""
    creds = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=GOOGLE_CLIENT_ID,
        client_secret=GOOGLE_CLIENT_SECRET,
        scopes=SCOPES,
    )
    return build("calendar", "v3", credentials=creds, cache_discovery=False)
