"""Interview dispatcher — routes inbound chat events to running interviews.

Each user has at most one active interview.  The dispatcher maps the
user's session key to the interview id, which doubles as the LangGraph
thread id, and resumes that thread with the raw event.  A finished or
abandoned thread is deleted from the checkpointer so the arena only
holds live interviews.  With ``max_idle`` set, interviews nobody touched
for that many seconds are dropped whenever a new one starts.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from langgraph.checkpoint.memory import MemorySaver
from langgraph.types import Command

from psychodiag.models.initial_state import new_interview_state
from psychodiag.models.selection import INTERVIEW_ID_LENGTH
from psychodiag.models.state import UserInfo
from psychodiag.workflow import InterviewEngine

logger = logging.getLogger(__name__)

# Resume value for input that is not a button press (text, commands).
NON_SELECTION = "<message>"


@dataclass
class InterviewStatus:
    """Where an interview stands after an event was fed to it."""

    interview_id: str
    status: str  # "presenting" or "completed"
    current: int
    answers: list[int | None]
    reprompts: int = 0
    total: int | None = None
    result: dict[str, Any] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status == "completed"


class _KeyLock:
    """A per-session lock plus the number of callers holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class InterviewDispatcher:
    def __init__(
        self,
        engine: InterviewEngine,
        *,
        max_idle: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.engine = engine
        self.checkpointer = MemorySaver()
        self.graph = engine.build_graph(self.checkpointer)
        self.max_idle = max_idle
        self._clock = clock
        self._active: dict[str, str] = {}
        self._touched: dict[str, float] = {}
        self._guard = threading.Lock()
        self._locks: dict[str, _KeyLock] = {}

    @contextmanager
    def _serialized(self, session_key: str) -> Iterator[None]:
        # Entries live only while some caller needs them.
        with self._guard:
            entry = self._locks.setdefault(session_key, _KeyLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[session_key]

    @staticmethod
    def _config(interview_id: str) -> dict:
        return {"configurable": {"thread_id": interview_id}}

    def _snapshot(self, interview_id: str) -> InterviewStatus:
        values = self.graph.get_state(self._config(interview_id)).values
        return InterviewStatus(
            interview_id=interview_id,
            status=values.get("status", "presenting"),
            current=values.get("current", 0),
            answers=list(values.get("answers", [])),
            reprompts=values.get("reprompts", 0),
            total=values.get("total"),
            result=values.get("result", {}),
        )

    def _discard(self, session_key: str) -> None:
        self._touched.pop(session_key, None)
        interview_id = self._active.pop(session_key, None)
        if interview_id is not None:
            self.checkpointer.delete_thread(interview_id)

    def _run(self, session_key: str, interview_id: str, payload: Any) -> InterviewStatus:
        self._touched[session_key] = self._clock()
        self.graph.invoke(payload, self._config(interview_id))
        status = self._snapshot(interview_id)
        if status.completed:
            self._discard(session_key)
        return status

    def _expire_idle(self) -> None:
        if self.max_idle is None:
            return
        cutoff = self._clock() - self.max_idle
        for session_key, touched in list(self._touched.items()):
            if touched > cutoff:
                continue
            with self._serialized(session_key):
                if self._touched.get(session_key, cutoff + 1) <= cutoff:
                    logger.info("Dropping idle interview of session %s", session_key)
                    self._discard(session_key)

    # ── Public API ────────────────────────────────────────────────────────

    def is_active(self, session_key: str) -> bool:
        return session_key in self._active

    def status(self, session_key: str) -> InterviewStatus | None:
        interview_id = self._active.get(session_key)
        return self._snapshot(interview_id) if interview_id else None

    def start(
        self,
        session_key: str,
        chat_id: int | str,
        user_info: UserInfo | None = None,
        *,
        replace: bool = True,
    ) -> InterviewStatus | None:
        """Begin a new interview and run it up to the first question.

        With ``replace=False`` a running interview is kept and None is
        returned instead; the check and the start happen under the same
        per-session lock.
        """
        self._expire_idle()
        with self._serialized(session_key):
            if session_key in self._active:
                if not replace:
                    return None
                logger.info("Discarding abandoned interview of session %s", session_key)
                self._discard(session_key)

            interview_id = uuid.uuid4().hex[:INTERVIEW_ID_LENGTH]
            self._active[session_key] = interview_id
            state = new_interview_state(
                interview_id=interview_id,
                session_key=session_key,
                chat_id=chat_id,
                question_count=self.engine.instrument.questions.question_count(),
                user_info=user_info,
            )
            logger.info("Started interview %s for session %s", interview_id, session_key)
            try:
                return self._run(session_key, interview_id, state)
            except Exception:
                self._discard(session_key)
                raise

    def select(self, session_key: str, data: str | None) -> InterviewStatus | None:
        """Feed a button press to the user's interview; None if none is active."""
        with self._serialized(session_key):
            interview_id = self._active.get(session_key)
            if interview_id is None:
                return None
            return self._run(
                session_key, interview_id, Command(resume=data or NON_SELECTION)
            )

    def message(self, session_key: str, text: str | None = None) -> InterviewStatus | None:
        """Feed non-button input to the user's interview (always a re-prompt)."""
        logger.debug("Non-selection input during interview: %s", text)
        return self.select(session_key, NON_SELECTION)
