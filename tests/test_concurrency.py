# Copyright (c) Syntropy Systems
"""Concurrency tests for pooled submission."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import pytest

from megaverse.domain import ObjectKind, Position
from megaverse.models.api import ApiResponse
from megaverse.orchestrator import CreationOrchestrator
from megaverse.pacing import Pacer, RateLimiter
from megaverse.patterns import x_pattern
from megaverse.submitter import ObjectSubmitter
from megaverse.translator import translate

if TYPE_CHECKING:
    from collections.abc import Mapping

BARRIER_GRID = [
    ["POLYANET", "BLUE_SOLOON", "POLYANET", "UP_COMETH", "POLYANET"],
    ["RED_SOLOON", "POLYANET", "LEFT_COMETH", "POLYANET", "WHITE_SOLOON"],
    ["POLYANET", "DOWN_COMETH", "POLYANET", "PURPLE_SOLOON", "RIGHT_COMETH"],
]


class TimelineEndpoint:
    """Endpoint that records when each call starts and ends."""

    def __init__(self, latency: float = 0.005) -> None:
        self.latency = latency
        self.events: list[tuple[str, ObjectKind, Position]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        with self._lock:
            self.events.append(("start", kind, position))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        time.sleep(self.latency)
        with self._lock:
            self.in_flight -= 1
            self.events.append(("end", kind, position))
        return ApiResponse(success=True)

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        return self.create_object(kind, position, {})


def run_pooled(endpoint: TimelineEndpoint, grid, concurrency: int):
    pacer = Pacer()
    submitter = ObjectSubmitter(endpoint, pacer=pacer)
    orchestrator = CreationOrchestrator(
        submitter,
        inter_call_delay=0.0,
        concurrency=concurrency,
    )
    return orchestrator.run(translate(grid))


class TestOrderingBarrier:
    """No dependent kind starts before the previous kind has finished."""

    @pytest.mark.parametrize("concurrency", [1, 2, 4])
    def test_kinds_never_overlap(self, concurrency: int) -> None:
        """Every start of kind k+1 follows every end of kind k."""
        endpoint = TimelineEndpoint()
        result = run_pooled(endpoint, BARRIER_GRID, concurrency)

        assert result.success_count == 15
        order = ObjectKind.creation_order()
        for earlier, later in zip(order, order[1:]):
            last_end = max(
                i
                for i, (event, kind, _) in enumerate(endpoint.events)
                if event == "end" and kind is earlier
            )
            first_start = min(
                i
                for i, (event, kind, _) in enumerate(endpoint.events)
                if event == "start" and kind is later
            )
            assert last_end < first_start

    @pytest.mark.parametrize("concurrency", [1, 2, 4])
    def test_in_flight_bounded(self, concurrency: int) -> None:
        """Never more than ``concurrency`` calls outstanding."""
        endpoint = TimelineEndpoint()
        run_pooled(endpoint, x_pattern(11), concurrency)

        assert endpoint.max_in_flight <= concurrency

    def test_results_in_submission_order(self) -> None:
        """Pooled outcomes come back in row-major order within a kind."""
        endpoint = TimelineEndpoint(latency=0.0)
        result = run_pooled(endpoint, x_pattern(11), 4)

        positions = [outcome.position for outcome in result.results]
        assert positions == sorted(positions)
        assert result.total == 13


class StartRecorder:
    """Endpoint that records call start times, failing first calls if asked."""

    def __init__(self, fail_first: bool = False) -> None:
        self.fail_first = fail_first
        self.starts: list[float] = []
        self._seen: set[Position] = set()
        self._lock = threading.Lock()

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        with self._lock:
            self.starts.append(time.monotonic())
            first = position not in self._seen
            self._seen.add(position)
        if self.fail_first and first:
            return ApiResponse(success=False, status_code=500, error="HTTP 500: busy")
        return ApiResponse(success=True)

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        return self.create_object(kind, position, {})


class TestPooledCallRate:
    """Tests for the aggregate call rate of a worker pool."""

    interval = 0.02

    def run_pool(self, endpoint: StartRecorder):
        pacer = Pacer()
        submitter = ObjectSubmitter(endpoint, retry_delay=0.0, pacer=pacer)
        orchestrator = CreationOrchestrator(
            submitter,
            inter_call_delay=self.interval,
            concurrency=4,
        )
        return orchestrator.run(translate([["POLYANET"] * 8]))

    def assert_spaced(self, starts: list[float]) -> None:
        starts = sorted(starts)
        span = starts[-1] - starts[0]
        assert span >= (len(starts) - 1) * self.interval - 0.02

    def test_pool_keeps_sequential_rate(self) -> None:
        """Four workers together start calls no faster than one per interval."""
        endpoint = StartRecorder()
        result = self.run_pool(endpoint)

        assert result.success_count == 8
        assert len(endpoint.starts) == 8
        self.assert_spaced(endpoint.starts)

    def test_retries_take_call_slots(self) -> None:
        """Retries in the pool wait for a slot like first attempts do."""
        endpoint = StartRecorder(fail_first=True)
        result = self.run_pool(endpoint)

        assert result.is_fully_successful
        assert len(endpoint.starts) == 16
        self.assert_spaced(endpoint.starts)

class TestRateLimiter:
    """Tests for the shared call-rate limiter."""

    def test_slots_are_spaced(self) -> None:
        """Back-to-back acquires are at least one interval apart."""
        limiter = RateLimiter(0.02, Pacer())
        starts = []
        for _ in range(3):
            assert limiter.acquire()
            starts.append(time.monotonic())

        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= 0.015 for gap in gaps)

    def test_cancelled_acquire(self) -> None:
        """A cancelled pacer refuses new slots."""
        pacer = Pacer()
        pacer.cancel()

        assert not RateLimiter(0.0, pacer).acquire()

    def test_cancel_wakes_waiter(self) -> None:
        """Cancelling from another thread interrupts a long wait."""
        pacer = Pacer()
        timer = threading.Timer(0.05, pacer.cancel)
        timer.start()
        began = time.monotonic()

        assert pacer.wait(10.0)
        assert time.monotonic() - began < 5.0
        timer.join()
