"""Selection events — the callback data carried by answer buttons.

Every button encodes which interview, which question and which option
it stands for, so an inbound click can be checked against the question
currently on screen:

    depression-test-1f3a9c0b-4-2
    └─kind──┘      └─interview┘ │ └ option index
                                └ question index
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Telegram rejects callback data longer than this many bytes.
MAX_CALLBACK_DATA = 64
INTERVIEW_ID_LENGTH = 8

KIND_PATTERN = re.compile(r"[a-z]+")

_PATTERN = re.compile(
    rf"^(?P<kind>{KIND_PATTERN.pattern})-test-(?P<interview_id>[0-9a-f]+)-(?P<question>\d+)-(?P<option>\d+)$"
)


def start_data(kind: str) -> str:
    """Callback data of the "start test" button for an instrument kind."""
    return f"{kind}-test"


@dataclass(frozen=True)
class SelectionEvent:
    kind: str
    interview_id: str
    question: int
    option: int

    def encode(self) -> str:
        return f"{self.kind}-test-{self.interview_id}-{self.question}-{self.option}"

    @classmethod
    def parse(cls, data: str | None) -> SelectionEvent | None:
        """Decode callback data; None when it is not an answer button."""
        if not data:
            return None
        m = _PATTERN.match(data)
        if m is None:
            return None
        return cls(
            kind=m["kind"],
            interview_id=m["interview_id"],
            question=int(m["question"]),
            option=int(m["option"]),
        )
