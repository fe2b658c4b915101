"""
Delivery channels.

Each channel kind has one ChannelSender: where to deliver for a given user,
and how to send. The dispatcher invokes them uniformly.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from core.enums import NotificationChannel

from . import email, in_app, sms


@dataclass(frozen=True)
class ChannelSender:
    channel: NotificationChannel
    destination: Callable[[dict], str | None]
    send: Callable[[str, str, str], Awaitable[bool]]


async def _send_email(destination: str, subject: str, body: str) -> bool:
    # SendGrid client is blocking
    return await asyncio.to_thread(email.send_email, destination, subject, body)


async def _send_sms(destination: str, subject: str, body: str) -> bool:
    return await asyncio.to_thread(sms.send_sms, destination, subject, body)


async def _send_in_app(destination: str, subject: str, body: str) -> bool:
    return await in_app.send_in_app(destination, subject, body)


def _user_ref(user: dict) -> str | None:
    user_id = user.get("user_id")
    return str(user_id) if user_id is not None else None


SENDERS: dict[NotificationChannel, ChannelSender] = {
    NotificationChannel.email: ChannelSender(
        channel=NotificationChannel.email,
        destination=lambda user: user.get("email") or None,
        send=_send_email,
    ),
    NotificationChannel.sms: ChannelSender(
        channel=NotificationChannel.sms,
        destination=lambda user: user.get("phone_number") or None,
        send=_send_sms,
    ),
    NotificationChannel.in_app: ChannelSender(
        channel=NotificationChannel.in_app,
        destination=_user_ref,
        send=_send_in_app,
    ),
}


def get_sender(channel: NotificationChannel) -> ChannelSender:
    return SENDERS[channel]


__all__ = ["ChannelSender", "SENDERS", "get_sender"]
