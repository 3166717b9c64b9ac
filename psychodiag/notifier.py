"""Outcome notifier — tells a fixed recipient that someone finished a test.

The recipient is configuration (``NOTIFY_CHAT_ID``), handed in at
construction.  Delivery is fire-and-forget: failures are logged and never
reach the interview flow.
"""

from __future__ import annotations

import logging

from psychodiag.channel.base import Channel, ChannelError
from psychodiag.models.state import UserInfo

logger = logging.getLogger(__name__)

ANONYMOUS = "Аноним"


def display_name(user_info: UserInfo | None) -> str:
    """First and last name of the user, or ``Аноним`` without a snapshot."""
    if not user_info:
        return ANONYMOUS
    first = user_info.get("first_name") or ""
    last = user_info.get("last_name")
    name = f"{first} {last}" if last else first
    return name.strip() or ANONYMOUS


def format_summary(template: str, user_info: UserInfo | None, total: int) -> str:
    return template.format(name=display_name(user_info), total=total)


class OutcomeNotifier:
    def __init__(self, channel: Channel, recipient_id: int | str | None):
        self.channel = channel
        self.recipient_id = recipient_id

    def notify(self, text: str) -> None:
        if self.recipient_id is None:
            logger.warning("NOTIFY_CHAT_ID not configured; dropping notification %r", text)
            return
        try:
            self.channel.send_message(self.recipient_id, text)
        except ChannelError as e:
            logger.warning("Notification to %s failed: %s", self.recipient_id, e)
