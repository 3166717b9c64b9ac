"""LangGraph workflow — the interview state machine.

Flow:
    START → present → await_selection → capture ─┬→ present      (next question)
                         ↑                      ├→ complete → END
                         └──────────────────────┘ (stale / duplicate event)

``await_selection`` uses LangGraph's ``interrupt()`` to park the thread
until the dispatcher resumes it with ``Command(resume=callback_data)``.
The graph state *is* the interview: answer slots, the question on
screen and the id of the one message whose keyboard is swapped between
turns.  The in-memory checkpointer keeps one thread per interview.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable
from typing import Any

from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, START, StateGraph
from langgraph.types import Command, interrupt

from psychodiag import settings
from psychodiag.channel.base import Channel, ChannelError
from psychodiag.channel.keyboards import MenuTable
from psychodiag.instrument.loader import Instrument
from psychodiag.models.selection import SelectionEvent
from psychodiag.models.state import InterviewState, TestRecord
from psychodiag.notifier import OutcomeNotifier, format_summary
from psychodiag.session.recorder import SessionRecorder

logger = logging.getLogger(__name__)

REPROMPT_TEXT = "Пожалуйста, используйте меню выше!"


class Verdict(enum.Enum):
    ACCEPT = "accept"
    DUPLICATE = "duplicate"
    STALE = "stale"


def classify_event(
    state: InterviewState,
    data: str | None,
    kind: str,
    option_counts: list[int],
) -> tuple[Verdict, SelectionEvent | None]:
    """Decide what an inbound event means for the question on screen.

    Only a button of this interview for the current question, with an
    option that exists, is accepted.  A button for a question that
    already has an answer is a duplicate delivery.  Everything else is
    stale.
    """
    event = SelectionEvent.parse(data)
    if event is None or event.kind != kind or event.interview_id != state["interview_id"]:
        return Verdict.STALE, event

    answers = state["answers"]
    if event.question < len(answers) and answers[event.question] is not None:
        return Verdict.DUPLICATE, event

    current = state["current"]
    if event.question != current or not 0 <= event.option < option_counts[current]:
        return Verdict.STALE, event
    return Verdict.ACCEPT, event


def score(answers: list[int | None]) -> int:
    """Sum of the recorded option indices of a finished interview."""
    if any(a is None for a in answers):
        raise ValueError("cannot score an interview with unanswered questions")
    return sum(answers)  # type: ignore[arg-type]


class InterviewEngine:
    """Graph nodes bound to one instrument and its collaborators."""

    def __init__(
        self,
        instrument: Instrument,
        channel: Channel,
        recorder: SessionRecorder,
        notifier: OutcomeNotifier,
        *,
        pacing_delay: float | None = None,
        short_pacing_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.instrument = instrument
        self.channel = channel
        self.recorder = recorder
        self.notifier = notifier
        self.menus = MenuTable(instrument.kind, instrument.questions)
        self._option_counts = [len(q.options) for q in instrument.questions]
        self.pacing_delay = settings.PACING_DELAY if pacing_delay is None else pacing_delay
        self.short_pacing_delay = (
            settings.SHORT_PACING_DELAY if short_pacing_delay is None else short_pacing_delay
        )
        self._sleep = sleep

    # ── Graph nodes ───────────────────────────────────────────────────────

    def present(self, state: InterviewState) -> dict:
        """Show the current question's options.

        The first question goes out as a new message with the prompt;
        later ones replace that message's keyboard in place.
        """
        index = state["current"]
        keyboard = self.menus.render(state["interview_id"], index)
        message_id = state.get("message_id")

        if message_id is None:
            message_id = self.channel.send_message(
                state["chat_id"], self.instrument.questions.prompt or "", keyboard=keyboard
            )
        else:
            self.channel.edit_keyboard(state["chat_id"], message_id, keyboard)

        logger.debug("[%s] presenting question %d", state["interview_id"], index)
        return {"message_id": message_id, "status": "presenting"}

    def await_selection(self, state: InterviewState) -> dict:
        """Pause execution until the next inbound event via interrupt()."""
        data = interrupt(
            {"interview_id": state["interview_id"], "question": state["current"]}
        )
        return {"event": data}

    def capture(self, state: InterviewState) -> Command:
        """Record a matching answer, ignore duplicates, re-prompt on stale input."""
        verdict, event = classify_event(
            state, state.get("event"), self.instrument.kind, self._option_counts
        )
        interview_id = state["interview_id"]

        if verdict is Verdict.DUPLICATE:
            logger.debug("[%s] duplicate selection %s ignored", interview_id, event)
            return Command(update={"event": None}, goto="await_selection")

        if verdict is Verdict.STALE:
            logger.info(
                "[%s] stale input on question %d: %r",
                interview_id,
                state["current"],
                state.get("event"),
            )
            self.channel.send_message(state["chat_id"], REPROMPT_TEXT)
            return Command(
                update={"event": None, "reprompts": state.get("reprompts", 0) + 1},
                goto="await_selection",
            )

        answers = list(state["answers"])
        answers[event.question] = event.option  # type: ignore[union-attr]
        update: dict[str, Any] = {"answers": answers, "event": None}

        if all(a is not None for a in answers):
            return Command(update=update, goto="complete")
        update["current"] = state["current"] + 1
        return Command(update=update, goto="present")

    def complete(self, state: InterviewState) -> dict:
        """Score, resolve the result bucket, record, report and notify."""
        chat_id = state["chat_id"]
        instrument = self.instrument

        message_id = state.get("message_id")
        if message_id is not None:
            try:
                self.channel.delete_message(chat_id, message_id)
            except ChannelError as e:
                logger.warning("[%s] could not delete question message: %s", state["interview_id"], e)

        answers = [int(a) for a in state["answers"]]  # type: ignore[arg-type]
        total = score(answers)
        bucket = instrument.results.resolve(total)

        record: TestRecord = {"type": instrument.kind, "answers": answers, "total": total}
        self.recorder.append(state["session_key"], record)

        self._sleep(self.pacing_delay)
        if bucket is not None:
            self.channel.send_message(chat_id, instrument.disclaimer)
            self._sleep(self.short_pacing_delay)
            self.channel.send_message(chat_id, bucket.text, html=True)
            self._sleep(self.pacing_delay)
            self.channel.send_message(chat_id, instrument.recommendation, html=True)
            if bucket.extra_text:
                self.channel.send_message(chat_id, bucket.extra_text, html=True)

        self.notifier.notify(
            format_summary(instrument.notification, state.get("user_info"), total)
        )
        logger.info(
            "[%s] completed %s test: total=%d bucket<=%s",
            state["interview_id"],
            instrument.kind,
            total,
            bucket.upper_bound if bucket else None,
        )
        return {
            "status": "completed",
            "total": total,
            "result": bucket.to_dict() if bucket else {},
        }

    # ── Build the graph ───────────────────────────────────────────────────

    def build_graph(self, checkpointer: MemorySaver | None = None):
        """Construct and compile the interview StateGraph."""
        graph = StateGraph(InterviewState)

        graph.add_node("present", self.present)
        graph.add_node("await_selection", self.await_selection)
        graph.add_node("capture", self.capture)
        graph.add_node("complete", self.complete)

        graph.add_edge(START, "present")
        graph.add_edge("present", "await_selection")
        graph.add_edge("await_selection", "capture")
        # capture uses Command to go to "present", "await_selection" or "complete"
        graph.add_edge("complete", END)

        return graph.compile(checkpointer=checkpointer or MemorySaver())
