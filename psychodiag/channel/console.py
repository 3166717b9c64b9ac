"""Terminal channel for running an interview from the CLI.

Messages are printed; a keyboard is shown as a numbered list and the
last one shown is remembered so typed numbers can be mapped back to the
button's callback data.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from html import unescape
from typing import TextIO

from psychodiag.channel.base import Button, Keyboard

_TAG = re.compile(r"<[^>]+>")


def _plain(text: str) -> str:
    return unescape(_TAG.sub("", text))


class ConsoleChannel:
    def __init__(self, out: TextIO | None = None):
        self.out = out or sys.stdout
        self._next_id = 1
        self._buttons: list[Button] = []

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def _show_keyboard(self, keyboard: Keyboard) -> None:
        self._buttons = [button for row in keyboard for button in row]
        for number, button in enumerate(self._buttons, start=1):
            self._print(f"  {number}. {button.text}")

    def button_data(self, choice: str) -> str | None:
        """Callback data of the numbered button typed by the user, if any."""
        if not choice.isdigit():
            return None
        number = int(choice)
        if 1 <= number <= len(self._buttons):
            return self._buttons[number - 1].data
        return None

    # ── Channel protocol ──────────────────────────────────────────────────

    def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        html: bool = False,
        keyboard: Keyboard | None = None,
    ) -> int:
        message_id = self._next_id
        self._next_id += 1
        self._print()
        self._print(_plain(text) if html else text)
        if keyboard:
            self._show_keyboard(keyboard)
        return message_id

    def edit_keyboard(self, chat_id: int | str, message_id: int, keyboard: Keyboard) -> None:
        self._print()
        self._show_keyboard(keyboard)

    def delete_message(self, chat_id: int | str, message_id: int) -> None:
        self._buttons = []

    def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        pass

    def set_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        pass

    def close(self) -> None:
        self.out.flush()
