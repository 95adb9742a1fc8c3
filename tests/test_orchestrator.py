# Copyright (c) Syntropy Systems
"""Tests for whole-set orchestration."""

from __future__ import annotations

import pytest
from helpers import SCENARIO_GRID, RecordingPacer, StubEndpoint

from megaverse.domain import ObjectKind, Position
from megaverse.endpoint import DryRunEndpoint
from megaverse.models.api import ApiResponse
from megaverse.orchestrator import CreationOrchestrator
from megaverse.submitter import ObjectSubmitter
from megaverse.translator import translate

MIXED_GRID = [
    ["RIGHT_COMETH", "BLUE_SOLOON", "POLYANET"],
    ["POLYANET", "SPACE", "UP_COMETH"],
    ["WHITE_SOLOON", "POLYANET", "SPACE"],
]


def make_orchestrator(
    endpoint,
    pacer: RecordingPacer,
    inter_call_delay: float = 0.0,
    concurrency: int = 1,
    max_retries: int = 3,
) -> CreationOrchestrator:
    submitter = ObjectSubmitter(endpoint, max_retries=max_retries, pacer=pacer)
    return CreationOrchestrator(
        submitter,
        inter_call_delay=inter_call_delay,
        concurrency=concurrency,
    )


class TestRun:
    """Tests for CreationOrchestrator.run()."""

    def test_scenario_all_succeed(self, pacer: RecordingPacer):
        """One POLYanet and one comETH, both created."""
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer).run(translate(SCENARIO_GRID))

        assert result.total == 2
        assert result.success_count == 2
        assert result.failure_count == 0
        assert result.is_fully_successful
        assert not result.cancelled
        assert result.count_of(ObjectKind.POLYANET) == 1
        assert result.count_of(ObjectKind.COMETH) == 1

    def test_scenario_all_fail(self, pacer: RecordingPacer):
        """Persistent failures are reported per object with the last error."""
        endpoint = StubEndpoint(
            lambda _n: ApiResponse(success=False, status_code=500, error="HTTP 500: down")
        )
        result = make_orchestrator(endpoint, pacer).run(translate(SCENARIO_GRID))

        assert result.total == 2
        assert result.failure_count == 2
        assert len(endpoint.calls) == 6
        for failure in result.failures:
            assert failure.error is not None
            assert failure.error.endswith("Last error: HTTP 500: down")

    def test_failure_does_not_abort(self, pacer: RecordingPacer):
        """A failing POLYanet still lets the later kinds run."""

        def respond(call_number: int) -> ApiResponse:
            if call_number == 1:
                return ApiResponse(success=False, error="HTTP 400: bad")
            return ApiResponse(success=True)

        endpoint = StubEndpoint(respond)
        result = make_orchestrator(endpoint, pacer, max_retries=1).run(
            translate(SCENARIO_GRID)
        )

        assert result.failure_count == 1
        assert result.success_count == 1
        assert result.failures[0].position == Position(0, 0)
        assert endpoint.calls[-1][1] is ObjectKind.COMETH

    def test_kind_order(self, pacer: RecordingPacer):
        """POLYanets first, then SOLoons, then comETHs, row-major inside."""
        endpoint = StubEndpoint()
        make_orchestrator(endpoint, pacer).run(translate(MIXED_GRID))

        assert [(kind, pos) for _, kind, pos, _ in endpoint.calls] == [
            (ObjectKind.POLYANET, Position(0, 2)),
            (ObjectKind.POLYANET, Position(1, 0)),
            (ObjectKind.POLYANET, Position(2, 1)),
            (ObjectKind.SOLOON, Position(0, 1)),
            (ObjectKind.SOLOON, Position(2, 0)),
            (ObjectKind.COMETH, Position(0, 0)),
            (ObjectKind.COMETH, Position(1, 2)),
        ]

    def test_inter_call_pacing(self, pacer: RecordingPacer):
        """One wait between each pair of consecutive calls, none before the first."""
        endpoint = StubEndpoint()
        make_orchestrator(endpoint, pacer, inter_call_delay=0.25).run(
            translate(MIXED_GRID)
        )

        assert pacer.waits == [0.25] * 6

    def test_outcome_callback(self, pacer: RecordingPacer):
        """Every outcome is reported as it is produced."""
        seen = []
        make_orchestrator(StubEndpoint(), pacer).run(
            translate(MIXED_GRID), on_outcome=seen.append
        )

        assert len(seen) == 7
        assert all(outcome.success for outcome in seen)

    def test_empty_target(self, pacer: RecordingPacer):
        """A grid with nothing to place produces an empty, successful result."""
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer).run(translate([["SPACE"]]))

        assert result.total == 0
        assert result.is_fully_successful
        assert endpoint.calls == []

    def test_dry_run_endpoint_places_goal(self, pacer: RecordingPacer):
        """Running against a dry-run endpoint reproduces the goal."""
        endpoint = DryRunEndpoint()
        result = make_orchestrator(endpoint, pacer).run(translate(MIXED_GRID))

        assert result.success_count == 7
        assert endpoint.calls == 7
        assert endpoint.placed[Position(0, 1)] == (ObjectKind.SOLOON, {"color": "blue"})

    def test_invalid_concurrency(self, pacer: RecordingPacer):
        """Concurrency must be at least one."""
        with pytest.raises(ValueError, match="concurrency"):
            make_orchestrator(StubEndpoint(), pacer, concurrency=0)


class TestCancellation:
    """Tests for cancelling a run."""

    def test_cancel_between_calls(self):
        """Cancellation stops new submissions and flags the result."""
        pacer = RecordingPacer(cancel_after=2)
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer, inter_call_delay=1.0).run(
            translate(MIXED_GRID)
        )

        assert result.cancelled
        assert result.total == 2
        assert len(endpoint.calls) == 2

    def test_cancel_before_run(self, pacer: RecordingPacer):
        """A pre-cancelled pacer submits nothing."""
        pacer.cancel()
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer).run(translate(MIXED_GRID))

        assert result.cancelled
        assert result.total == 0
        assert endpoint.calls == []

    def test_cancel_in_pool(self, pacer: RecordingPacer):
        """Pool mode dispatches nothing once cancelled."""
        pacer.cancel()
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer, concurrency=3).run(
            translate(MIXED_GRID)
        )

        assert result.cancelled
        assert endpoint.calls == []


class RaisingSubmitter(ObjectSubmitter):
    """Submitter whose create call raises for one position."""

    def submit(self, obj, limiter=None):
        if obj.position == Position(0, 1):
            msg = "submitter bug"
            raise RuntimeError(msg)
        return super().submit(obj, limiter)


class TestUnexpectedErrors:
    """Tests for exceptions that escape a single submission."""

    @pytest.mark.parametrize("concurrency", [1, 2])
    def test_transport_exception_is_recorded(
        self, pacer: RecordingPacer, concurrency: int
    ):
        """An endpoint exception becomes one failed outcome in either mode."""

        def respond(call_number: int) -> ApiResponse:
            if call_number == 2:
                raise ConnectionResetError("peer reset")
            return ApiResponse(success=True)

        endpoint = StubEndpoint(respond)
        result = make_orchestrator(
            endpoint, pacer, concurrency=concurrency, max_retries=1
        ).run(translate([["POLYANET"] * 3]))

        assert result.total == 3
        assert result.success_count == 2
        assert result.failure_count == 1
        assert not result.is_fully_successful
        failed = [outcome for outcome in result.results if not outcome.success]
        assert failed[0].error == (
            "Failed after 1 attempts. Last error: Exception: peer reset"
        )

    @pytest.mark.parametrize("concurrency", [1, 3])
    def test_raising_submitter_keeps_every_outcome(
        self, pacer: RecordingPacer, concurrency: int
    ):
        """An exception from the submission itself is recorded, not lost."""
        submitter = RaisingSubmitter(StubEndpoint(), pacer=pacer)
        orchestrator = CreationOrchestrator(
            submitter, inter_call_delay=0.0, concurrency=concurrency
        )

        result = orchestrator.run(translate([["POLYANET"] * 3]))

        assert result.total == 3
        assert result.failure_count == 1
        failed = [outcome for outcome in result.results if not outcome.success]
        assert failed[0].position == Position(0, 1)
        assert failed[0].error == "Exception: submitter bug"

class TestTeardown:
    """Tests for CreationOrchestrator.teardown()."""

    def test_reverse_kind_order(self, pacer: RecordingPacer):
        """Dependents are deleted before the POLYanets they sit beside."""
        endpoint = StubEndpoint()
        result = make_orchestrator(endpoint, pacer).teardown(translate(MIXED_GRID))

        kinds = [kind for _, kind, _, _ in endpoint.calls]
        assert kinds == [ObjectKind.COMETH] * 2 + [ObjectKind.SOLOON] * 2 + [
            ObjectKind.POLYANET
        ] * 3
        assert {action for action, *_ in endpoint.calls} == {"delete"}
        assert result.success_count == 7

    def test_build_then_clear(self, pacer: RecordingPacer):
        """Tearing down a dry-run build leaves an empty world."""
        endpoint = DryRunEndpoint()
        orchestrator = make_orchestrator(endpoint, pacer)
        target = translate(MIXED_GRID)

        orchestrator.run(target)
        orchestrator.teardown(target)

        assert endpoint.placed == {}
