"""Session recorder — appends a finished interview to the user's history.

Recording is fire-and-forget from the interview's point of view: the
result is shown to the user whether or not the append succeeded, so
storage errors are logged and reported as ``False`` rather than raised.
"""

from __future__ import annotations

import logging

from psychodiag.models.state import TestRecord
from psychodiag.session.store import SessionStore

logger = logging.getLogger(__name__)


class SessionRecorder:
    def __init__(self, store: SessionStore):
        self.store = store

    def append(self, session_key: str, record: TestRecord) -> bool:
        try:
            self.store.append_test(session_key, record)
        except (OSError, ValueError) as e:
            logger.error(
                "Failed to record %s test (total=%s) for session %s: %s",
                record["type"],
                record["total"],
                session_key,
                e,
            )
            return False
        logger.info(
            "Recorded %s test for session %s: total=%d",
            record["type"],
            session_key,
            record["total"],
        )
        return True
