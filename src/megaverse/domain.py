# Copyright (c) Syntropy Systems
"""Placement objects and the target object set built from a goal grid."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from typing_extensions import TypeAlias, assert_never

if TYPE_CHECKING:
    from collections.abc import Iterator

    from megaverse.errors import UnknownCellWarning


@dataclass(frozen=True, order=True)
class Position:
    """A cell of the megaverse grid (0-indexed)."""

    row: int
    column: int

    def __post_init__(self) -> None:
        if self.row < 0:
            msg = f"Row must be non-negative, got {self.row}"
            raise ValueError(msg)
        if self.column < 0:
            msg = f"Column must be non-negative, got {self.column}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"({self.row}, {self.column})"


class SoloonColor(str, Enum):
    """Valid colors for SOLoons."""

    BLUE = "blue"
    RED = "red"
    PURPLE = "purple"
    WHITE = "white"


class ComethDirection(str, Enum):
    """Valid directions for comETHs."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class ObjectKind(str, Enum):
    """The three creatable kinds of astral object."""

    POLYANET = "polyanet"
    SOLOON = "soloon"
    COMETH = "cometh"

    @property
    def resource(self) -> str:
        """REST collection name for this kind."""
        return f"{self.value}s"

    @classmethod
    def creation_order(cls) -> tuple[ObjectKind, ...]:
        """Kinds in the order they must be created.

        SOLoons and comETHs may need an adjacent POLYanet to exist first.
        """
        return (cls.POLYANET, cls.SOLOON, cls.COMETH)


@dataclass(frozen=True)
class Polyanet:
    """A POLYanet (planet)."""

    position: Position

    @property
    def kind(self) -> ObjectKind:
        return ObjectKind.POLYANET


@dataclass(frozen=True)
class Soloon:
    """A SOLoon (moon) of a given color."""

    position: Position
    color: SoloonColor

    @property
    def kind(self) -> ObjectKind:
        return ObjectKind.SOLOON


@dataclass(frozen=True)
class Cometh:
    """A comETH (comet) heading in a given direction."""

    position: Position
    direction: ComethDirection

    @property
    def kind(self) -> ObjectKind:
        return ObjectKind.COMETH


PlacementObject: TypeAlias = Union[Polyanet, Soloon, Cometh]


def object_attrs(obj: PlacementObject) -> dict[str, str]:
    """Kind-specific attributes sent alongside the position on create."""
    if isinstance(obj, Polyanet):
        return {}
    if isinstance(obj, Soloon):
        return {"color": obj.color.value}
    if isinstance(obj, Cometh):
        return {"direction": obj.direction.value}
    assert_never(obj)


def describe(obj: PlacementObject) -> str:
    """Short label for logs, e.g. ``blue soloon at (2, 3)``."""
    attrs = object_attrs(obj)
    prefix = " ".join(attrs.values())
    label = f"{prefix} {obj.kind.value}" if prefix else obj.kind.value
    return f"{label} at {obj.position}"


@dataclass(frozen=True)
class TargetObjectSet:
    """Objects to place, bucketed by kind in grid-scan order."""

    polyanets: tuple[Polyanet, ...] = ()
    soloons: tuple[Soloon, ...] = ()
    comeths: tuple[Cometh, ...] = ()
    empties: tuple[Position, ...] = ()
    diagnostics: tuple[UnknownCellWarning, ...] = field(default=(), compare=False)
    rows: int = 0
    columns: int = 0

    @classmethod
    def from_objects(
        cls,
        objects: list[PlacementObject],
        empties: list[Position] | None = None,
        diagnostics: list[UnknownCellWarning] | None = None,
        rows: int = 0,
        columns: int = 0,
    ) -> TargetObjectSet:
        """Bucket a flat object list by kind, keeping relative order."""
        polyanets: list[Polyanet] = []
        soloons: list[Soloon] = []
        comeths: list[Cometh] = []
        for obj in objects:
            if isinstance(obj, Polyanet):
                polyanets.append(obj)
            elif isinstance(obj, Soloon):
                soloons.append(obj)
            elif isinstance(obj, Cometh):
                comeths.append(obj)
            else:
                assert_never(obj)
        return cls(
            polyanets=tuple(polyanets),
            soloons=tuple(soloons),
            comeths=tuple(comeths),
            empties=tuple(empties or ()),
            diagnostics=tuple(diagnostics or ()),
            rows=rows,
            columns=columns,
        )

    @property
    def total_objects(self) -> int:
        return len(self.polyanets) + len(self.soloons) + len(self.comeths)

    @property
    def total_positions(self) -> int:
        return self.total_objects + len(self.empties)

    def objects_of(self, kind: ObjectKind) -> tuple[PlacementObject, ...]:
        """All objects of one kind, in insertion order."""
        if kind is ObjectKind.POLYANET:
            return self.polyanets
        if kind is ObjectKind.SOLOON:
            return self.soloons
        return self.comeths

    def in_creation_order(self) -> Iterator[PlacementObject]:
        """Yield every object kind by kind, in creation order."""
        for kind in ObjectKind.creation_order():
            yield from self.objects_of(kind)
