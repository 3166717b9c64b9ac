"""Wiring — builds the bot and its collaborators from settings.

Both entrypoints go through ``build_bot()``; only the channel differs
(Telegram for the webhook, the console for the CLI).
"""

from __future__ import annotations

from psychodiag import settings
from psychodiag.bot import ScreeningBot
from psychodiag.channel.base import Channel
from psychodiag.channel.telegram import TelegramChannel
from psychodiag.dispatcher import InterviewDispatcher
from psychodiag.instrument.loader import load_instrument
from psychodiag.notifier import OutcomeNotifier
from psychodiag.session.recorder import SessionRecorder
from psychodiag.session.store import SessionStore
from psychodiag.workflow import InterviewEngine


def build_bot(
    channel: Channel | None = None,
    *,
    store: SessionStore | None = None,
    notify_chat_id: int | str | None = None,
) -> ScreeningBot:
    """Assemble a ``ScreeningBot``.

    Without an explicit channel a Telegram channel is created, which
    requires ``TELEGRAM_BOT_TOKEN``; a missing token raises here, before
    any interview can start.
    """
    if channel is None:
        channel = TelegramChannel(settings.require_bot_token())
    instrument = load_instrument()
    store = store or SessionStore()
    recipient = notify_chat_id if notify_chat_id is not None else settings.NOTIFY_CHAT_ID

    engine = InterviewEngine(
        instrument,
        channel,
        SessionRecorder(store),
        OutcomeNotifier(channel, recipient),
    )
    return ScreeningBot(
        instrument,
        channel,
        store,
        InterviewDispatcher(engine, max_idle=settings.INTERVIEW_MAX_IDLE),
    )
