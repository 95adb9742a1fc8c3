# Copyright (c) Syntropy Systems
"""Translate a goal grid of cell labels into a target object set."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from typing_extensions import TypeAlias

from megaverse.domain import (
    Cometh,
    ComethDirection,
    ObjectKind,
    PlacementObject,
    Polyanet,
    Position,
    Soloon,
    SoloonColor,
    TargetObjectSet,
)
from megaverse.errors import InvalidGoalError, UnknownCellWarning

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from megaverse.models.api import GoalResponse

logger = logging.getLogger(__name__)

GoalGrid: TypeAlias = Sequence[Sequence[str]]

SPACE = "SPACE"

# Label -> factory building the object for a position.
CELL_FACTORIES: dict[str, Callable[[Position], PlacementObject]] = {
    "POLYANET": Polyanet,
    **{
        f"{color.name}_SOLOON": (lambda p, c=color: Soloon(p, c))
        for color in SoloonColor
    },
    **{
        f"{direction.name}_COMETH": (lambda p, d=direction: Cometh(p, d))
        for direction in ComethDirection
    },
}

CELL_KINDS: dict[str, ObjectKind] = {
    "POLYANET": ObjectKind.POLYANET,
    **{f"{color.name}_SOLOON": ObjectKind.SOLOON for color in SoloonColor},
    **{f"{d.name}_COMETH": ObjectKind.COMETH for d in ComethDirection},
}


@dataclass(frozen=True)
class GoalAnalysis:
    """Statistics about a goal grid."""

    rows: int = 0
    columns: int = 0
    polyanet_count: int = 0
    soloon_count: int = 0
    cometh_count: int = 0
    space_count: int = 0
    unknown_count: int = 0

    @property
    def total_objects(self) -> int:
        return self.polyanet_count + self.soloon_count + self.cometh_count

    @property
    def total_positions(self) -> int:
        return self.total_objects + self.space_count + self.unknown_count

    def count_of(self, kind: ObjectKind) -> int:
        """Number of cells holding an object of the given kind."""
        return {
            ObjectKind.POLYANET: self.polyanet_count,
            ObjectKind.SOLOON: self.soloon_count,
            ObjectKind.COMETH: self.cometh_count,
        }[kind]


def check_grid(grid: Optional[GoalGrid]) -> tuple[int, int]:
    """Validate grid shape and return (rows, columns).

    Raises InvalidGoalError for a missing, empty or jagged grid.
    """
    if not grid:
        msg = "Goal carries no grid"
        raise InvalidGoalError(msg)

    columns = len(grid[0])
    for index, row in enumerate(grid):
        if len(row) != columns:
            msg = (
                f"Goal grid is not rectangular: row {index} has {len(row)} "
                f"cells, expected {columns}"
            )
            raise InvalidGoalError(msg)
    return len(grid), columns


def scan(grid: GoalGrid) -> Iterator[tuple[Position, str]]:
    """Yield (position, label) for every cell, left to right, top to bottom."""
    for row_index, row in enumerate(grid):
        for col_index, label in enumerate(row):
            yield Position(row_index, col_index), label


def translate(grid: GoalGrid) -> TargetObjectSet:
    """Turn a goal grid into the set of objects that must exist.

    Unknown labels are logged and recorded in ``diagnostics``; their
    positions are treated as empty. The whole grid is always consumed.
    """
    rows, columns = check_grid(grid)

    objects: list[PlacementObject] = []
    empties: list[Position] = []
    diagnostics: list[UnknownCellWarning] = []

    for position, label in scan(grid):
        factory = CELL_FACTORIES.get(label)
        if factory is not None:
            objects.append(factory(position))
            continue

        if label != SPACE:
            diagnostic = UnknownCellWarning(position, label)
            logger.warning("%s", diagnostic)
            diagnostics.append(diagnostic)
        empties.append(position)

    return TargetObjectSet.from_objects(
        objects,
        empties=empties,
        diagnostics=diagnostics,
        rows=rows,
        columns=columns,
    )


def translate_goal(response: GoalResponse) -> TargetObjectSet:
    """Translate a fetched goal, failing if the fetch itself failed."""
    if response.error is not None:
        msg = f"Failed to retrieve goal map: {response.error}"
        raise InvalidGoalError(msg)
    if response.goal is None:
        msg = "Goal map is missing from the response"
        raise InvalidGoalError(msg)
    return translate(response.goal)


def analyze_goal(grid: GoalGrid) -> GoalAnalysis:
    """Count cells per kind without building objects."""
    rows, columns = check_grid(grid)

    counts = dict.fromkeys(ObjectKind, 0)
    space_count = 0
    unknown_count = 0
    for _, label in scan(grid):
        kind = CELL_KINDS.get(label)
        if kind is not None:
            counts[kind] += 1
        elif label == SPACE:
            space_count += 1
        else:
            unknown_count += 1

    return GoalAnalysis(
        rows=rows,
        columns=columns,
        polyanet_count=counts[ObjectKind.POLYANET],
        soloon_count=counts[ObjectKind.SOLOON],
        cometh_count=counts[ObjectKind.COMETH],
        space_count=space_count,
        unknown_count=unknown_count,
    )
