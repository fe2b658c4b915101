"""Twilio SMS delivery channel."""

import logging
import os

from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)

TWILIO_ACCOUNT_SID = os.environ.get("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.environ.get("TWILIO_AUTH_TOKEN")
TWILIO_FROM_NUMBER = os.environ.get("TWILIO_FROM_NUMBER")

# Twilio rejects bodies longer than this
MAX_SMS_LENGTH = 1600

_client: TwilioClient | None = None


def is_sms_configured() -> bool:
    return bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER)


def _get_twilio_client() -> TwilioClient | None:
    """Get or create Twilio client singleton."""
    global _client
    if _client is None and is_sms_configured():
        _client = TwilioClient(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN)
    return _client


def format_sms(subject: str, body: str) -> str:
    """SMS has no subject line, so prefix it and trim to the carrier limit."""
    text = f"{subject}: {body}" if subject else body
    if len(text) > MAX_SMS_LENGTH:
        text = text[: MAX_SMS_LENGTH - 3] + "..."
    return text


def send_sms(to_number: str, subject: str, body: str) -> bool:
    """
    Send a text message via Twilio.

    Returns:
        True if Twilio accepted the message, False otherwise
    """
    client = _get_twilio_client()
    if not client:
        logger.warning("Twilio not configured (TWILIO_* env vars not set)")
        return False

    try:
        message = client.messages.create(
            to=to_number,
            from_=TWILIO_FROM_NUMBER,
            body=format_sms(subject, body),
        )
        return message.error_code is None
    except Exception as e:
        logger.error(f"Failed to send SMS to {to_number}: {e}")
        return False
