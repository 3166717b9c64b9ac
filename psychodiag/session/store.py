"""Session store — one JSON document of ``SessionData`` per chat user.

Output directory: ``settings.SESSIONS_DIR`` (``data/sessions/`` by default)
File format: ``{session_key}.json``

The store keeps the identity snapshot taken on the user's first update
and the append-only list of finished test records.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path

from psychodiag import settings
from psychodiag.models.state import SessionData, TestRecord, UserInfo

logger = logging.getLogger(__name__)

SESSION_KEY_PATTERN = re.compile(r"^-?[A-Za-z0-9_]{1,64}$")


def initial_session() -> SessionData:
    return {"tests": []}


class SessionStore:
    """File-backed session documents keyed by session key."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory is not None else settings.SESSIONS_DIR
        self._lock = threading.Lock()

    def _path(self, session_key: str) -> Path:
        if not SESSION_KEY_PATTERN.fullmatch(session_key):
            raise ValueError(f"invalid session key {session_key!r}")
        return self.directory / f"{session_key}.json"

    def load(self, session_key: str) -> SessionData:
        """Return the stored session, or a fresh one when none exists."""
        path = self._path(session_key)
        if not path.exists():
            return initial_session()
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def save(self, session_key: str, data: SessionData) -> Path:
        path = self._path(session_key)
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)
        return path

    def remember_user(self, session_key: str, user_info: UserInfo) -> bool:
        """Store the identity snapshot unless one is already kept.

        Returns True when the snapshot was written.
        """
        with self._lock:
            data = self.load(session_key)
            if data.get("user_info"):
                return False
            data["user_info"] = user_info
            self.save(session_key, data)
        logger.debug("Stored identity snapshot for session %s", session_key)
        return True

    def append_test(self, session_key: str, record: TestRecord) -> None:
        with self._lock:
            data = self.load(session_key)
            data.setdefault("tests", []).append(record)
            self.save(session_key, data)

    def tests(self, session_key: str) -> list[TestRecord]:
        return list(self.load(session_key).get("tests", []))
