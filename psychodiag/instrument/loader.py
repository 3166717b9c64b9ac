"""Instrument loader — reads a screening instrument from its JSON file.

The file bundles everything one interview kind needs: its type tag, the
texts shown around the questions, the option lists and the result
scale.  It is parsed and validated once per path, then cached; a
malformed file fails loudly at startup rather than mid-interview.
"""

from __future__ import annotations

import functools
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from psychodiag import settings
from psychodiag.instrument.question_bank import QuestionBank
from psychodiag.instrument.result_scale import ResultBucket, ResultScale
from psychodiag.models.selection import (
    INTERVIEW_ID_LENGTH,
    KIND_PATTERN,
    MAX_CALLBACK_DATA,
    SelectionEvent,
)

logger = logging.getLogger(__name__)

_REQUIRED_TEXTS = ("prompt", "instructions", "disclaimer", "recommendation", "notification")


class InstrumentError(ValueError):
    """The instrument data file is missing fields or inconsistent."""


@dataclass(frozen=True)
class Instrument:
    """A loaded screening instrument."""

    kind: str
    prompt: str
    instructions: str
    disclaimer: str
    recommendation: str
    notification: str  # format string with ``{name}`` and ``{total}``
    questions: QuestionBank
    results: ResultScale


def _parse_results(raw: list[dict[str, Any]]) -> list[ResultBucket]:
    buckets = []
    for entry in raw:
        try:
            buckets.append(
                ResultBucket(
                    upper_bound=int(entry["upper_bound"]),
                    text=entry["text"],
                    extra_text=entry.get("extra_text") or None,
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InstrumentError(f"invalid result bucket {entry!r}: {e}") from e
    if not buckets:
        raise InstrumentError("instrument defines no result buckets")
    bounds = [b.upper_bound for b in buckets]
    if bounds != sorted(bounds) or len(set(bounds)) != len(bounds):
        raise InstrumentError(f"result bounds must be strictly ascending, got {bounds}")
    return buckets


def _check_kind(kind: Any, questions: QuestionBank) -> str:
    kind = str(kind or "").lower()
    if not KIND_PATTERN.fullmatch(kind):
        raise InstrumentError(f"instrument type must be a lowercase latin word, got {kind!r}")
    # The widest answer button must still fit into Telegram's callback data.
    widest = SelectionEvent(
        kind=kind,
        interview_id="f" * INTERVIEW_ID_LENGTH,
        question=questions.question_count() - 1,
        option=max(len(q.options) for q in questions) - 1,
    ).encode()
    if len(widest.encode("utf-8")) > MAX_CALLBACK_DATA:
        raise InstrumentError(
            f"instrument type {kind!r} is too long for {MAX_CALLBACK_DATA}-byte button data"
        )
    return kind


def parse_instrument(data: dict[str, Any]) -> Instrument:
    """Build an ``Instrument`` from its decoded JSON document."""
    missing = [key for key in _REQUIRED_TEXTS if not data.get(key)]
    if missing:
        raise InstrumentError(f"instrument is missing texts: {', '.join(missing)}")

    raw_questions = data.get("questions") or []
    if not raw_questions:
        raise InstrumentError("instrument defines no questions")
    for i, options in enumerate(raw_questions):
        if not options or not all(isinstance(o, str) and o for o in options):
            raise InstrumentError(f"question {i} must have non-empty string options")
    questions = QuestionBank(raw_questions, prompt=data["prompt"])
    kind = _check_kind(data.get("type"), questions)

    buckets = _parse_results(data.get("results") or [])
    if buckets[-1].upper_bound < questions.max_total():
        logger.warning(
            "Result scale of %s ends at %d, below the maximum total %d; "
            "higher totals resolve to the last bucket",
            kind,
            buckets[-1].upper_bound,
            questions.max_total(),
        )

    return Instrument(
        kind=kind,
        prompt=data["prompt"],
        instructions=data["instructions"],
        disclaimer=data["disclaimer"],
        recommendation=data["recommendation"],
        notification=data["notification"],
        questions=questions,
        results=ResultScale(buckets),
    )


@functools.lru_cache(maxsize=4)
def _load(path: Path) -> Instrument:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InstrumentError(f"cannot read instrument {path}: {e}") from e
    instrument = parse_instrument(data)
    logger.info(
        "Loaded instrument %r: %d questions, %d result buckets",
        instrument.kind,
        instrument.questions.question_count(),
        len(instrument.results),
    )
    return instrument


def load_instrument(path: str | Path | None = None) -> Instrument:
    """Return the instrument at ``path`` (default: ``settings.INSTRUMENT_PATH``)."""
    return _load(Path(path) if path is not None else settings.INSTRUMENT_PATH)


def reset() -> None:
    """Clear the instrument cache — call from tests."""
    _load.cache_clear()
