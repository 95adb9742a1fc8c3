# Copyright (c) Syntropy Systems
"""Static goal grids for the single-pattern mode."""
from __future__ import annotations

from megaverse.translator import SPACE

PHASE_ONE_SIZE = 11
X_MARGIN = 2
MIN_X_SIZE = 5


def x_pattern(size: int = PHASE_ONE_SIZE) -> list[list[str]]:
    """Goal grid with an X of POLYanets, two cells clear of every edge.

    Grids too small to hold a margin get only the centre cell.
    """
    if size < 1:
        msg = f"Grid size must be positive, got {size}"
        raise ValueError(msg)

    grid = [[SPACE] * size for _ in range(size)]
    if size < MIN_X_SIZE:
        grid[size // 2][size // 2] = "POLYANET"
        return grid

    for i in range(X_MARGIN, size - X_MARGIN):
        grid[i][i] = "POLYANET"
        grid[i][size - 1 - i] = "POLYANET"
    return grid


def render(grid: list[list[str]]) -> str:
    """Plain-text preview of a goal grid, one character per cell."""
    symbols = {"POLYANET": "P", SPACE: "."}
    lines = []
    for row in grid:
        cells = []
        for label in row:
            if label in symbols:
                cells.append(symbols[label])
            elif label.endswith("_SOLOON"):
                cells.append("S")
            elif label.endswith("_COMETH"):
                cells.append("C")
            else:
                cells.append("?")
        lines.append(" ".join(cells))
    return "\n".join(lines)
