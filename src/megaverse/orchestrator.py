# Copyright (c) Syntropy Systems
"""Drive submissions for a whole target object set."""
from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING

from megaverse.domain import ObjectKind, describe
from megaverse.pacing import Pacer, RateLimiter
from megaverse.results import SubmissionOutcome, aggregate

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from megaverse.domain import PlacementObject, TargetObjectSet
    from megaverse.results import BatchResult
    from megaverse.submitter import ObjectSubmitter

    OutcomeCallback = Callable[[SubmissionOutcome], None]
    Operation = Callable[[PlacementObject, RateLimiter | None], SubmissionOutcome]

logger = logging.getLogger(__name__)

DEFAULT_INTER_CALL_DELAY = 1.0


class CreationOrchestrator:
    """Submit every object of a target set, kind by kind.

    Kinds are processed as barriers (POLYanets, then SOLoons, then comETHs):
    nothing of the next kind is dispatched until every submission of the
    current kind has returned. Individual failures never stop the run.
    """

    def __init__(
        self,
        submitter: ObjectSubmitter,
        inter_call_delay: float = DEFAULT_INTER_CALL_DELAY,
        concurrency: int = 1,
        pacer: Pacer | None = None,
    ) -> None:
        if concurrency < 1:
            msg = f"concurrency must be >= 1, got {concurrency}"
            raise ValueError(msg)
        self.submitter = submitter
        self.inter_call_delay = inter_call_delay
        self.concurrency = concurrency
        self.pacer = pacer or submitter.pacer

    # --- Public API ---

    def run(
        self,
        target: TargetObjectSet,
        on_outcome: OutcomeCallback | None = None,
    ) -> BatchResult:
        """Create every object in ``target`` and aggregate the outcomes."""
        logger.info("Creating %d objects", target.total_objects)
        return self._collect(self.iter_outcomes(target), on_outcome)

    def teardown(
        self,
        target: TargetObjectSet,
        on_outcome: OutcomeCallback | None = None,
    ) -> BatchResult:
        """Delete every object in ``target``, dependents first."""
        logger.info("Deleting %d objects", target.total_objects)
        order = tuple(reversed(ObjectKind.creation_order()))
        outcomes = self._iter_phases(target, order, self.submitter.retract)
        return self._collect(outcomes, on_outcome)

    def iter_outcomes(self, target: TargetObjectSet) -> Iterator[SubmissionOutcome]:
        """Yield creation outcomes in submission order."""
        return self._iter_phases(
            target,
            ObjectKind.creation_order(),
            self.submitter.submit,
        )

    # --- Internals ---

    def _collect(
        self,
        outcomes: Iterator[SubmissionOutcome],
        on_outcome: OutcomeCallback | None,
    ) -> BatchResult:
        collected: list[SubmissionOutcome] = []
        for outcome in outcomes:
            collected.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)
        result = aggregate(collected)

        if self.pacer.cancelled:
            logger.warning(
                "Run cancelled after %d submissions (%d failed)",
                result.total,
                result.failure_count,
            )
            return result.mark_cancelled()

        logger.info(
            "Run completed. Success: %d, Failures: %d",
            result.success_count,
            result.failure_count,
        )
        return result

    def _iter_phases(
        self,
        target: TargetObjectSet,
        kinds: Sequence[ObjectKind],
        operation: Operation,
    ) -> Iterator[SubmissionOutcome]:
        # One limiter for the whole run keeps the rate steady across phases.
        limiter = RateLimiter(self.inter_call_delay, self.pacer)
        first = True
        for kind in kinds:
            objects = target.objects_of(kind)
            if not objects:
                continue
            if self.pacer.cancelled:
                return

            logger.info("Processing %d %s objects", len(objects), kind.value)
            if self.concurrency == 1:
                # Pacing between consecutive calls spans phase boundaries.
                if not first and self.pacer.wait(self.inter_call_delay):
                    return
                yield from self._run_sequential(objects, operation)
            else:
                yield from self._run_pool(objects, operation, limiter)
            first = False

    def _run_sequential(
        self,
        objects: Sequence[PlacementObject],
        operation: Operation,
    ) -> Iterator[SubmissionOutcome]:
        for index, obj in enumerate(objects):
            if index > 0 and self.pacer.wait(self.inter_call_delay):
                return
            yield _perform(operation, obj, None)

    def _run_pool(
        self,
        objects: Sequence[PlacementObject],
        operation: Operation,
        limiter: RateLimiter,
    ) -> Iterator[SubmissionOutcome]:
        """Run one phase on a fixed-size worker pool and wait for all of it.

        Every attempt, retries included, takes a slot from ``limiter`` so the
        pool never calls faster than the sequential model.
        """
        work: queue.Queue[tuple[int, PlacementObject]] = queue.Queue()
        for item in enumerate(objects):
            work.put(item)

        slots: list[SubmissionOutcome | None] = [None] * len(objects)
        lock = threading.Lock()

        def worker_loop() -> None:
            while not self.pacer.cancelled:
                try:
                    index, obj = work.get_nowait()
                except queue.Empty:
                    return
                outcome = _perform(operation, obj, limiter)
                with lock:
                    slots[index] = outcome

        workers = min(self.concurrency, len(objects))
        threads: list[threading.Thread] = []
        for i in range(workers):
            t = threading.Thread(target=worker_loop, name=f"submitter-{i}", daemon=True)
            threads.append(t)
            t.start()

        for t in threads:
            t.join()

        # Objects never dequeued (cancellation) have no outcome.
        for outcome in slots:
            if outcome is not None:
                yield outcome


def _perform(
    operation: Operation,
    obj: PlacementObject,
    limiter: RateLimiter | None,
) -> SubmissionOutcome:
    """Run one operation; anything it raises becomes a failed outcome."""
    try:
        outcome = operation(obj, limiter)
    except Exception as e:
        logger.exception("Submission of %s raised", describe(obj))
        outcome = SubmissionOutcome(
            obj.position,
            obj.kind,
            success=False,
            error=f"Exception: {e}",
        )
    _log_outcome(outcome)
    return outcome


def _log_outcome(outcome: SubmissionOutcome) -> None:
    if outcome.success:
        logger.debug("Processed %s at %s", outcome.kind.value, outcome.position)
    else:
        logger.warning(
            "Failed %s at %s: %s",
            outcome.kind.value,
            outcome.position,
            outcome.error,
        )
