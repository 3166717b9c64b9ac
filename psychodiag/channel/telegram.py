"""Telegram Bot API channel over httpx.

Only the handful of methods the bot needs are wrapped.  Every call goes
through ``_call`` which turns transport errors and ``"ok": false``
replies into ``ChannelError``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from psychodiag import settings
from psychodiag.channel.base import ChannelError, Keyboard

logger = logging.getLogger(__name__)


def keyboard_markup(keyboard: Keyboard) -> dict[str, Any]:
    """Serialize a keyboard as Telegram ``InlineKeyboardMarkup``."""
    return {
        "inline_keyboard": [
            [{"text": b.text, "callback_data": b.data} for b in row] for row in keyboard
        ]
    }


class TelegramChannel:
    """Lightweight client for the Telegram Bot API."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        base_url = f"{(api_url or settings.TELEGRAM_API_URL).rstrip('/')}/bot{token}/"
        self.client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
        )

    def close(self) -> None:
        self.client.close()

    def _call(self, method: str, payload: dict[str, Any]) -> Any:
        try:
            response = self.client.post(method, json=payload)
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ChannelError(f"Telegram {method} failed: {e}") from e
        if not body.get("ok"):
            raise ChannelError(
                f"Telegram {method} rejected ({response.status_code}): "
                f"{body.get('description', 'no description')}"
            )
        return body.get("result")

    # ── Channel protocol ──────────────────────────────────────────────────

    def send_message(
        self,
        chat_id: int | str,
        text: str,
        *,
        html: bool = False,
        keyboard: Keyboard | None = None,
    ) -> int:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if html:
            payload["parse_mode"] = "HTML"
        if keyboard is not None:
            payload["reply_markup"] = keyboard_markup(keyboard)
        result = self._call("sendMessage", payload)
        return int(result["message_id"])

    def edit_keyboard(self, chat_id: int | str, message_id: int, keyboard: Keyboard) -> None:
        self._call(
            "editMessageReplyMarkup",
            {
                "chat_id": chat_id,
                "message_id": message_id,
                "reply_markup": keyboard_markup(keyboard),
            },
        )

    def delete_message(self, chat_id: int | str, message_id: int) -> None:
        self._call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        payload: dict[str, Any] = {"callback_query_id": callback_id}
        if text:
            payload["text"] = text
        self._call("answerCallbackQuery", payload)

    def set_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        self._call(
            "setMyCommands",
            {"commands": [{"command": c, "description": d} for c, d in commands]},
        )
        logger.info("Registered bot commands: %s", ", ".join(c for c, _ in commands))
