# Copyright (c) Syntropy Systems
"""Per-object outcomes and their aggregation into a batch result."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from megaverse.domain import ObjectKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from megaverse.domain import Position


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of submitting one placement object."""

    position: Position
    kind: ObjectKind
    success: bool
    error: str | None = None


def _zero_counts() -> Mapping[ObjectKind, int]:
    return MappingProxyType(dict.fromkeys(ObjectKind, 0))


def _bump(counts: Mapping[ObjectKind, int], kind: ObjectKind) -> Mapping[ObjectKind, int]:
    updated = dict(counts)
    updated[kind] += 1
    return MappingProxyType(updated)


@dataclass(frozen=True)
class BatchResult:
    """Aggregate over a sequence of submission outcomes."""

    total: int = 0
    # Per-kind views are left out of the hash; they are derived from results.
    counts: Mapping[ObjectKind, int] = field(default_factory=_zero_counts, hash=False)
    succeeded: Mapping[ObjectKind, int] = field(
        default_factory=_zero_counts, hash=False
    )
    success_count: int = 0
    failure_count: int = 0
    results: tuple[SubmissionOutcome, ...] = ()
    cancelled: bool = False

    @classmethod
    def empty(cls) -> BatchResult:
        return cls()

    @property
    def failures(self) -> tuple[SubmissionOutcome, ...]:
        """Failed outcomes in submission order."""
        return tuple(outcome for outcome in self.results if not outcome.success)

    @property
    def is_fully_successful(self) -> bool:
        return self.failure_count == 0

    def count_of(self, kind: ObjectKind) -> int:
        return self.counts[kind]

    def mark_cancelled(self) -> BatchResult:
        """Copy of this result flagged as interrupted."""
        return replace(self, cancelled=True)


def fold(result: BatchResult, outcome: SubmissionOutcome) -> BatchResult:
    """Add one outcome to a batch result, returning a new result."""
    return replace(
        result,
        total=result.total + 1,
        counts=_bump(result.counts, outcome.kind),
        succeeded=(
            _bump(result.succeeded, outcome.kind)
            if outcome.success
            else result.succeeded
        ),
        success_count=result.success_count + (1 if outcome.success else 0),
        failure_count=result.failure_count + (0 if outcome.success else 1),
        results=(*result.results, outcome),
    )


def aggregate(outcomes: Iterable[SubmissionOutcome]) -> BatchResult:
    """Build a batch result from a sequence of outcomes in one pass.

    Equal to folding the outcomes one at a time, without copying the
    partial result for every outcome.
    """
    results = tuple(outcomes)
    counts = dict.fromkeys(ObjectKind, 0)
    succeeded = dict.fromkeys(ObjectKind, 0)
    for outcome in results:
        counts[outcome.kind] += 1
        if outcome.success:
            succeeded[outcome.kind] += 1

    success_count = sum(succeeded.values())
    return BatchResult(
        total=len(results),
        counts=MappingProxyType(counts),
        succeeded=MappingProxyType(succeeded),
        success_count=success_count,
        failure_count=len(results) - success_count,
        results=results,
    )
