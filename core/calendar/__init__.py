"""Google Calendar integration: OAuth consent, code exchange, exam events."""

from .client import build_auth_url, exchange_code, is_calendar_configured
from .events import build_exam_event, insert_exam_event
from .state import decode_state, encode_state
from .sync import complete_calendar_sync, start_calendar_sync

__all__ = [
    "build_auth_url",
    "exchange_code",
    "is_calendar_configured",
    "build_exam_event",
    "insert_exam_event",
    "encode_state",
    "decode_state",
    "start_calendar_sync",
    "complete_calendar_sync",
]
