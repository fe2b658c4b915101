"""
Notification delivery routes.

Endpoints:
- POST /notifications/send - Run the batch sweep over undelivered notifications

The sweep is meant to be called on a schedule by an external trigger (cron,
uptime pinger). When SWEEP_TOKEN is set, callers must send it in the
X-Sweep-Token header.
"""

import hmac
import os
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Query

from core.notifications.dispatcher import send_pending_notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])

SWEEP_TOKEN = os.environ.get("SWEEP_TOKEN")


def _check_sweep_token(token: str | None) -> None:
    if not SWEEP_TOKEN:
        return
    if not token or not hmac.compare_digest(token, SWEEP_TOKEN):
        raise HTTPException(status_code=403, detail="Invalid sweep token")


@router.post("/send")
async def send_notifications(
    due_only: bool = Query(False, alias="dueOnly"),
    x_sweep_token: str | None = Header(None),
) -> dict[str, Any]:
    """
    Deliver every notification not yet marked delivered.

    Args:
        due_only: Only deliver notifications whose scheduled date has passed
    """
    _check_sweep_token(x_sweep_token)
    summary = await send_pending_notifications(due_only=due_only)
    return {"message": "Notifications sent", **summary}
