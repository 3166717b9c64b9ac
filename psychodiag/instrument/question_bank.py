"""Question Bank — the fixed, ordered questions of a screening instrument.

Each question is a block of statements; the respondent picks the one
that fits best and the statement's position is its score.  Only the
first question carries the displayed prompt: later questions replace
the keyboard of the same message, so the prompt stays on screen.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Question:
    """One multiple-choice block of the instrument."""

    index: int
    options: tuple[str, ...]
    prompt: str | None = None

    @property
    def max_score(self) -> int:
        return len(self.options) - 1


class QuestionBank:
    """Immutable ordered collection of questions."""

    def __init__(self, option_lists: Sequence[Sequence[str]], prompt: str | None = None):
        self._questions = tuple(
            Question(
                index=i,
                options=tuple(options),
                prompt=prompt if i == 0 else None,
            )
            for i, options in enumerate(option_lists)
        )

    @property
    def prompt(self) -> str | None:
        return self._questions[0].prompt if self._questions else None

    def question_count(self) -> int:
        return len(self._questions)

    def question(self, index: int) -> Question:
        return self._questions[index]

    def options_for(self, index: int) -> tuple[str, ...]:
        return self._questions[index].options

    def max_total(self) -> int:
        """Highest total a respondent can reach."""
        return sum(q.max_score for q in self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)
