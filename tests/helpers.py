# Copyright (c) Syntropy Systems
"""Test doubles shared across the megaverse test modules."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping

from megaverse.domain import ObjectKind, Position
from megaverse.models.api import ApiResponse, GoalResponse
from megaverse.pacing import Pacer

SCENARIO_GRID = [["POLYANET", "SPACE"], ["SPACE", "RIGHT_COMETH"]]


class RecordingPacer(Pacer):
    """Pacer that records requested waits instead of sleeping."""

    def __init__(self, cancel_after: int | None = None) -> None:
        super().__init__()
        self.waits: list[float] = []
        self._cancel_after = cancel_after

    def wait(self, seconds: float) -> bool:
        if seconds > 0:
            self.waits.append(seconds)
            if self._cancel_after is not None and len(self.waits) >= self._cancel_after:
                self.cancel()
        return self.cancelled


class StubEndpoint:
    """Endpoint whose responses are scripted per call.

    ``respond`` receives the 1-based call number and may raise to simulate
    a transport fault.
    """

    def __init__(
        self,
        respond: Callable[[int], ApiResponse] | None = None,
        goal: list[list[str]] | None = None,
    ) -> None:
        self.respond = respond or (lambda _n: ApiResponse(success=True))
        self.goal = goal
        self.calls: list[tuple[str, ObjectKind, Position, dict[str, str]]] = []
        self._lock = threading.Lock()

    def _record(
        self,
        action: str,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        with self._lock:
            self.calls.append((action, kind, position, dict(attrs)))
            number = len(self.calls)
        return self.respond(number)

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        return self._record("create", kind, position, attrs)

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        return self._record("delete", kind, position, {})

    def fetch_goal(self) -> GoalResponse:
        if self.goal is None:
            return GoalResponse(error="HTTP 404: Not Found")
        return GoalResponse(goal=self.goal)
