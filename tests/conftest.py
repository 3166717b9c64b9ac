"""Shared fixtures: a recording fake channel and a two-question instrument."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from psychodiag.channel.base import ChannelError, Keyboard
from psychodiag.dispatcher import InterviewDispatcher
from psychodiag.instrument.loader import parse_instrument
from psychodiag.notifier import OutcomeNotifier
from psychodiag.session.recorder import SessionRecorder
from psychodiag.session.store import SessionStore
from psychodiag.workflow import InterviewEngine

NOTIFY_CHAT = 999


@dataclass
class FakeChannel:
    """Records every outbound call; ``fail`` names methods that raise."""

    fail: set[str] = field(default_factory=set)
    sent: list[dict[str, Any]] = field(default_factory=list)
    edits: list[tuple[Any, int, Keyboard]] = field(default_factory=list)
    deleted: list[tuple[Any, int]] = field(default_factory=list)
    answered: list[str] = field(default_factory=list)
    commands: list[tuple[str, str]] = field(default_factory=list)
    closed: bool = False
    _next_id: int = 100

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise ChannelError(f"{method} failed")

    def send_message(self, chat_id, text, *, html=False, keyboard=None) -> int:
        self._maybe_fail("send_message")
        self._next_id += 1
        self.sent.append(
            {
                "chat_id": chat_id,
                "text": text,
                "html": html,
                "keyboard": keyboard,
                "message_id": self._next_id,
            }
        )
        return self._next_id

    def edit_keyboard(self, chat_id, message_id, keyboard) -> None:
        self._maybe_fail("edit_keyboard")
        self.edits.append((chat_id, message_id, keyboard))

    def delete_message(self, chat_id, message_id) -> None:
        self._maybe_fail("delete_message")
        self.deleted.append((chat_id, message_id))

    def answer_callback(self, callback_id, text=None) -> None:
        self._maybe_fail("answer_callback")
        self.answered.append(callback_id)

    def set_commands(self, commands: Sequence[tuple[str, str]]) -> None:
        self._maybe_fail("set_commands")
        self.commands.extend(commands)

    def close(self) -> None:
        self.closed = True

    def texts_to(self, chat_id) -> list[str]:
        return [m["text"] for m in self.sent if m["chat_id"] == chat_id]


SMALL_INSTRUMENT = {
    "type": "mood",
    "prompt": "How was your week?",
    "instructions": "<strong>Pick one statement per block.</strong>",
    "disclaimer": "This is not a diagnosis.",
    "recommendation": "Talk to a specialist.",
    "notification": "{name} finished the mood test\nTotal: {total}",
    "questions": [
        ["q0 a", "q0 b", "q0 c", "q0 d"],
        ["q1 a", "q1 b", "q1 c", "q1 d"],
    ],
    "results": [
        {"upper_bound": 3, "text": "<b>mild</b>"},
        {"upper_bound": 6, "text": "<b>severe</b>", "extra_text": "Please seek help."},
    ],
}


@pytest.fixture
def instrument():
    return parse_instrument(SMALL_INSTRUMENT)


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "sessions")


@pytest.fixture
def engine(instrument, channel, store):
    return InterviewEngine(
        instrument,
        channel,
        SessionRecorder(store),
        OutcomeNotifier(channel, NOTIFY_CHAT),
        pacing_delay=0,
        short_pacing_delay=0,
        sleep=lambda _seconds: None,
    )


@pytest.fixture
def dispatcher(engine):
    return InterviewDispatcher(engine)
