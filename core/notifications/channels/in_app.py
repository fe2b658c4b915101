"""In-app delivery channel.

The notification row itself is the user's inbox entry (served by
GET /users/notifications), so delivery only needs to be recorded.
"""

import logging

logger = logging.getLogger(__name__)


async def send_in_app(user_ref: str, subject: str, body: str) -> bool:
    logger.info(f"In-app notification for user {user_ref}: {subject}: {body}")
    return True
