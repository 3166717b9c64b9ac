"""Screening bot — turns Telegram updates into interview actions.

Routing, in order:
  1. Remember the sender's identity snapshot (once per session).
  2. While the sender has an interview running, every update belongs to
     it: button presses are selections, anything else is re-prompted.
  3. ``/start`` greets the user and shows the instructions with the
     "start test" button.
  4. The "start test" button closes its menu and starts an interview.
"""

from __future__ import annotations

import logging

from psychodiag import settings
from psychodiag.channel.base import Channel, ChannelError
from psychodiag.channel.keyboards import start_menu
from psychodiag.dispatcher import InterviewDispatcher
from psychodiag.instrument.loader import Instrument
from psychodiag.models.selection import start_data
from psychodiag.models.updates import CallbackQuery, Message, Update, User
from psychodiag.session.store import SessionStore

logger = logging.getLogger(__name__)

COMMANDS = [(settings.START_COMMAND, "Запустить бота")]
BOT_TITLE = "Психодиагност-бот"


def greeting(first_name: str | None) -> str:
    name = f", <strong>{first_name}</strong>" if first_name else ""
    return f"Привет{name}!\nЯ {BOT_TITLE}"


class ScreeningBot:
    def __init__(
        self,
        instrument: Instrument,
        channel: Channel,
        store: SessionStore,
        dispatcher: InterviewDispatcher,
    ):
        self.instrument = instrument
        self.channel = channel
        self.store = store
        self.dispatcher = dispatcher

    def register_commands(self) -> None:
        self.channel.set_commands(COMMANDS)

    def close(self) -> None:
        self.channel.close()

    def handle_update(self, update: Update) -> None:
        user = update.sender
        if user is None:
            logger.debug("Ignoring update %d without a sender", update.update_id)
            return

        session_key = str(user.id)
        try:
            self.store.remember_user(session_key, user.snapshot())
        except (OSError, ValueError) as e:
            logger.error("Could not store identity of session %s: %s", session_key, e)

        if update.callback_query is not None:
            self._on_callback(session_key, update.callback_query)
        elif update.message is not None:
            self._on_message(session_key, user, update.message)

    def _on_message(self, session_key: str, user: User, message: Message) -> None:
        if self.dispatcher.is_active(session_key):
            self.dispatcher.message(session_key, message.text)
            return

        text = (message.text or "").strip()
        command = text.split(maxsplit=1)[0].split("@", 1)[0] if text else ""
        if command == f"/{settings.START_COMMAND}":
            self.send_welcome(message.chat.id, user.first_name)
        else:
            logger.debug("Ignoring message outside an interview: %s", text)

    def _on_callback(self, session_key: str, query: CallbackQuery) -> None:
        try:
            self.channel.answer_callback(query.id)
        except ChannelError as e:
            logger.warning("Could not acknowledge callback %s: %s", query.id, e)

        if self.dispatcher.is_active(session_key):
            self.dispatcher.select(session_key, query.data)
            return

        if query.data == start_data(self.instrument.kind) and query.message is not None:
            chat_id = query.message.chat.id
            started = self.dispatcher.start(
                session_key, chat_id, query.from_.snapshot(), replace=False
            )
            if started is None:
                # Another delivery started the interview first.
                self.dispatcher.select(session_key, query.data)
                return
            self.channel.edit_keyboard(chat_id, query.message.message_id, [])
            return

        logger.info("Ignoring outdated button %s from session %s", query.data, session_key)

    def send_welcome(self, chat_id: int | str, first_name: str | None) -> None:
        self.channel.send_message(chat_id, greeting(first_name), html=True)
        self.channel.send_message(
            chat_id,
            self.instrument.instructions,
            html=True,
            keyboard=start_menu(self.instrument.kind),
        )
