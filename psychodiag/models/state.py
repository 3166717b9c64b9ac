"""Shared state definitions for the LangGraph interview workflow.

One graph thread is one interview.  The state is deliberately flat:
the answer slots, the index of the question on screen, the id of the
single message whose keyboard is swapped between turns, and the last
raw event handed in through ``Command(resume=...)``.
"""

from __future__ import annotations

from typing import Any, Literal, NotRequired, TypedDict


class UserInfo(TypedDict):
    """Identity snapshot of the chat user, captured once per session."""

    id: int
    first_name: str
    is_bot: bool
    last_name: NotRequired[str | None]
    username: NotRequired[str | None]


class TestRecord(TypedDict):
    """Outcome of one finished interview, appended to the session history."""

    type: str
    answers: list[int]
    total: int


class SessionData(TypedDict):
    """Per-user session document kept by the session store."""

    user_info: NotRequired[UserInfo]
    tests: list[TestRecord]


class InterviewState(TypedDict, total=False):
    """Full state of one interview thread."""

    # --- Identity ---
    interview_id: str  # also the LangGraph thread id
    session_key: str  # whose session history receives the record
    chat_id: int | str  # where questions and results are sent
    user_info: UserInfo | None

    # --- Turn tracking ---
    current: int  # index of the question on screen
    answers: list[int | None]  # one slot per question, set at most once
    message_id: int | None  # the message whose keyboard is replaced each turn
    event: str | None  # raw callback data (None for plain text) from resume
    reprompts: int  # "use the menu above" notices sent so far

    # --- Outcome ---
    status: Literal["presenting", "completed"]
    total: int
    result: dict[str, Any]
