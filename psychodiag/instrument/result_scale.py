"""Result Scale — maps a total score onto a severity bucket.

Buckets are kept in ascending ``upper_bound`` order.  Resolution is a
linear scan that stops at the first bucket covering the total; a total
above every bound clamps to the last (most severe) bucket instead of
producing no result.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResultBucket:
    """A severity classification with its inclusive upper score bound."""

    upper_bound: int
    text: str
    extra_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "upper_bound": self.upper_bound,
            "text": self.text,
            "extra_text": self.extra_text,
        }


def resolve_bucket(total: int, buckets: Iterable[ResultBucket]) -> ResultBucket | None:
    """Return the first bucket with ``total <= upper_bound``, else the last one.

    Returns None only for an empty scale.
    """
    current: ResultBucket | None = None
    for bucket in buckets:
        current = bucket
        if total <= bucket.upper_bound:
            break
    return current


class ResultScale:
    """Ordered, read-only sequence of result buckets."""

    def __init__(self, buckets: Sequence[ResultBucket]):
        self._buckets = tuple(buckets)

    def resolve(self, total: int) -> ResultBucket | None:
        return resolve_bucket(total, self._buckets)

    def __iter__(self) -> Iterator[ResultBucket]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)
