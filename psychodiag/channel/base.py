"""Outbound chat channel interface.

The interview engine renders through this protocol only: plain text
messages (optionally HTML), one message carrying an inline keyboard
that is edited in place between turns, and deletion of that message.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol


class ChannelError(RuntimeError):
    """Delivery to the chat platform failed."""


@dataclass(frozen=True)
class Button:
    text: str
    data: str


# Rows of buttons, top to bottom.
Keyboard = Sequence[Sequence[Button]]


class Channel(Protocol):
    def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        html: bool = False,
        keyboard: Keyboard | None = None,
    ) -> int:
        """Send a message and return its id."""
        ...

    def edit_keyboard(self, chat_id: int | str, message_id: int, keyboard: Keyboard) -> None:
        """Replace the inline keyboard of a sent message (empty removes it)."""
        ...

    def delete_message(self, chat_id: int | str, message_id: int) -> None: ...

    def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        """Acknowledge a button press so the client stops its spinner."""
        ...

    def set_commands(self, commands: Sequence[tuple[str, str]]) -> None: ...

    def close(self) -> None:
        """Release network resources; the channel is unusable afterwards."""
        ...
