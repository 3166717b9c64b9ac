"""Inline keyboards for the instrument's questions and the start menu.

The option labels per question index are taken from the Question Bank
once; rendering a turn only stamps the interview id into each button's
callback data.
"""

from __future__ import annotations

from psychodiag.channel.base import Button, Keyboard
from psychodiag.instrument.question_bank import QuestionBank
from psychodiag.models.selection import SelectionEvent, start_data

START_BUTTON_TEXT = "Начать тест"


class MenuTable:
    """Question index → option labels, one button per row."""

    def __init__(self, kind: str, questions: QuestionBank):
        self.kind = kind
        self._labels = [q.options for q in questions]

    def __len__(self) -> int:
        return len(self._labels)

    def render(self, interview_id: str, index: int) -> Keyboard:
        return [
            [Button(label, SelectionEvent(self.kind, interview_id, index, option).encode())]
            for option, label in enumerate(self._labels[index])
        ]


def start_menu(kind: str) -> Keyboard:
    return [[Button(START_BUTTON_TEXT, start_data(kind))]]
