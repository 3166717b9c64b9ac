"""Tests for the interview graph nodes (present, capture, complete).

These tests exercise each node in isolation on hand-built state dicts,
without compiling the graph.
"""

from __future__ import annotations

import pytest

from psychodiag.models.initial_state import new_interview_state
from psychodiag.models.selection import SelectionEvent
from psychodiag.notifier import OutcomeNotifier
from psychodiag.session.recorder import SessionRecorder
from psychodiag.workflow import (
    REPROMPT_TEXT,
    InterviewEngine,
    Verdict,
    classify_event,
    score,
)

from conftest import NOTIFY_CHAT

IID = "abcdef01"


def make_state(current: int = 0, answers=None, message_id=None) -> dict:
    state = new_interview_state(
        interview_id=IID,
        session_key="42",
        chat_id=7,
        question_count=2,
        user_info={"id": 42, "first_name": "Ada", "is_bot": False},
    )
    state["current"] = current
    state["message_id"] = message_id
    if answers is not None:
        state["answers"] = answers
    return state


def press(question: int, option: int, kind: str = "mood", iid: str = IID) -> str:
    return SelectionEvent(kind, iid, question, option).encode()


class TestClassifyEvent:
    counts = [4, 4]

    def test_accepts_current_question(self):
        verdict, event = classify_event(make_state(), press(0, 3), "mood", self.counts)
        assert verdict is Verdict.ACCEPT
        assert event.option == 3

    def test_answered_question_is_duplicate(self):
        state = make_state(current=1, answers=[2, None])
        verdict, _ = classify_event(state, press(0, 1), "mood", self.counts)
        assert verdict is Verdict.DUPLICATE

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "",
            "not a button",
            "mood-test",
            press(1, 0),  # not the current question
            press(0, 4),  # option out of range
            press(0, 0, kind="anxiety"),
            press(0, 0, iid="00000000"),
        ],
    )
    def test_everything_else_is_stale(self, data):
        verdict, _ = classify_event(make_state(), data, "mood", self.counts)
        assert verdict is Verdict.STALE


class TestScore:
    def test_sums_answers(self):
        assert score([1, 3, 0]) == 4

    def test_rejects_unanswered(self):
        with pytest.raises(ValueError):
            score([1, None])


class TestPresent:
    def test_first_question_is_new_message(self, engine, channel):
        update = engine.present(make_state())
        assert update["message_id"] == channel.sent[0]["message_id"]
        assert channel.sent[0]["text"] == "How was your week?"
        assert channel.edits == []

    def test_later_question_replaces_keyboard(self, engine, channel):
        update = engine.present(make_state(current=1, answers=[0, None], message_id=55))
        assert update["message_id"] == 55
        assert channel.sent == []
        assert channel.edits[0][1] == 55
        assert channel.edits[0][2][0][0].data == press(1, 0)


class TestCapture:
    def test_accept_moves_to_next_question(self, engine):
        state = make_state()
        state["event"] = press(0, 2)
        cmd = engine.capture(state)
        assert cmd.goto == "present"
        assert cmd.update["answers"] == [2, None]
        assert cmd.update["current"] == 1

    def test_last_answer_moves_to_complete(self, engine):
        state = make_state(current=1, answers=[2, None])
        state["event"] = press(1, 1)
        cmd = engine.capture(state)
        assert cmd.goto == "complete"
        assert cmd.update["answers"] == [2, 1]

    def test_stale_sends_one_reprompt(self, engine, channel):
        state = make_state()
        state["event"] = press(1, 1)
        cmd = engine.capture(state)
        assert cmd.goto == "await_selection"
        assert cmd.update["reprompts"] == 1
        assert channel.texts_to(7) == [REPROMPT_TEXT]

    def test_duplicate_is_silent(self, engine, channel):
        state = make_state(current=1, answers=[2, None])
        state["event"] = press(0, 0)
        cmd = engine.capture(state)
        assert cmd.goto == "await_selection"
        assert "answers" not in cmd.update
        assert channel.sent == []


class TestComplete:
    def test_low_total_without_extra_text(self, engine, channel, store):
        update = engine.complete(make_state(current=1, answers=[1, 1], message_id=55))

        assert update == {
            "status": "completed",
            "total": 2,
            "result": {"upper_bound": 3, "text": "<b>mild</b>", "extra_text": None},
        }
        assert channel.deleted == [(7, 55)]
        assert channel.texts_to(7) == [
            "This is not a diagnosis.",
            "<b>mild</b>",
            "Talk to a specialist.",
        ]
        assert channel.texts_to(NOTIFY_CHAT) == ["Ada finished the mood test\nTotal: 2"]
        assert store.tests("42") == [{"type": "mood", "answers": [1, 1], "total": 2}]

    def test_result_messages_are_html(self, engine, channel):
        engine.complete(make_state(current=1, answers=[3, 3], message_id=55))
        flags = [(m["text"], m["html"]) for m in channel.sent if m["chat_id"] == 7]
        assert flags == [
            ("This is not a diagnosis.", False),
            ("<b>severe</b>", True),
            ("Talk to a specialist.", True),
            ("Please seek help.", True),
        ]

    def test_pacing_delays_between_result_messages(self, instrument, channel, store):
        slept: list[float] = []
        engine = InterviewEngine(
            instrument,
            channel,
            SessionRecorder(store),
            OutcomeNotifier(channel, None),
            pacing_delay=2.0,
            short_pacing_delay=0.5,
            sleep=slept.append,
        )
        engine.complete(make_state(current=1, answers=[0, 0], message_id=55))
        assert slept == [2.0, 0.5, 2.0]
