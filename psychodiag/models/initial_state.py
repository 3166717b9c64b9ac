"""Factory helpers for creating workflow state payloads."""

from __future__ import annotations

from typing import Any

from psychodiag.models.state import UserInfo


def new_interview_state(
    interview_id: str,
    session_key: str,
    chat_id: int | str,
    question_count: int,
    user_info: UserInfo | None = None,
) -> dict[str, Any]:
    """Return a fresh interview state dict used by the dispatcher."""
    return {
        "interview_id": interview_id,
        "session_key": session_key,
        "chat_id": chat_id,
        "user_info": user_info,
        "current": 0,
        "answers": [None] * question_count,
        "message_id": None,
        "event": None,
        "reprompts": 0,
        "status": "presenting",
    }
