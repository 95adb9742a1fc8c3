# Copyright (c) Syntropy Systems
"""The remote endpoint capability and an in-memory stand-in for dry runs."""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol

from megaverse.models.api import ApiResponse, GoalResponse

if TYPE_CHECKING:
    from collections.abc import Mapping

    from megaverse.domain import ObjectKind, Position
    from megaverse.translator import GoalGrid


class PlacementEndpoint(Protocol):
    """Operations the pipeline needs from the megaverse API."""

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        ...

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        ...

    def fetch_goal(self) -> GoalResponse:
        ...


class DryRunEndpoint:
    """Endpoint that never touches the network.

    Every create and delete succeeds; the resulting world is kept in
    ``placed`` so a dry run can be inspected afterwards.
    """

    def __init__(
        self,
        goal: GoalGrid | None = None,
        goal_error: str | None = None,
    ) -> None:
        self.goal = goal
        self.goal_error = goal_error
        self.placed: dict[Position, tuple[ObjectKind, dict[str, str]]] = {}
        self.calls = 0
        self._lock = threading.Lock()

    def create_object(
        self,
        kind: ObjectKind,
        position: Position,
        attrs: Mapping[str, str],
    ) -> ApiResponse:
        with self._lock:
            self.calls += 1
            self.placed[position] = (kind, dict(attrs))
        return ApiResponse(success=True)

    def delete_object(self, kind: ObjectKind, position: Position) -> ApiResponse:
        with self._lock:
            self.calls += 1
            existing = self.placed.get(position)
            if existing is not None and existing[0] is kind:
                del self.placed[position]
        return ApiResponse(success=True)

    @classmethod
    def from_goal(cls, response: GoalResponse) -> DryRunEndpoint:
        """Serve an already loaded goal response."""
        return cls(goal=response.goal, goal_error=response.error)

    def fetch_goal(self) -> GoalResponse:
        if self.goal_error is not None:
            return GoalResponse(error=self.goal_error)
        if self.goal is None:
            return GoalResponse(error="No goal loaded for dry run")
        return GoalResponse(goal=[list(row) for row in self.goal])
