"""
Shared type definitions for the patrol route solver.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(Enum):
    """Unit move on the city grid, named by its output letter."""

    U = "U"  # Up (decreasing row)
    D = "D"  # Down (increasing row)
    L = "L"  # Left (decreasing col)
    R = "R"  # Right (increasing col)

    @property
    def delta(self) -> tuple[int, int]:
        """(row_delta, col_delta) for one step."""
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]


class Axis(Enum):
    """Axis along which an intersection can be observed."""

    H = "H"  # Horizontal (along a row)
    V = "V"  # Vertical (along a column)


_DELTAS = {
    Direction.U: (-1, 0),
    Direction.D: (1, 0),
    Direction.L: (0, -1),
    Direction.R: (0, 1),
}

_OPPOSITES = {
    Direction.U: Direction.D,
    Direction.D: Direction.U,
    Direction.L: Direction.R,
    Direction.R: Direction.L,
}


class IntersectionKind(Enum):
    """Observation class of an intersection, fixed at classification time."""

    CORNER = "corner"  # Two perpendicular open sides
    T_JUNCTION_MISSING_VERTICAL = "t_missing_vertical"  # Left, right and one vertical side
    T_JUNCTION_MISSING_HORIZONTAL = "t_missing_horizontal"  # Up, down and one horizontal side
    FULL_CROSS = "full_cross"  # All four sides


# =============================================================================
# Grid Definition Types
# =============================================================================


@dataclass(frozen=True)
class Block:
    """An impassable cell."""

    pass


@dataclass(frozen=True)
class Road:
    """A traversable cell; entering it costs `cost`."""

    cost: int


Cell = Block | Road


@dataclass(frozen=True)
class Position:
    """A cell position within the city."""

    row: int
    col: int

    def step(self, direction: Direction) -> Position:
        dr, dc = direction.delta
        return Position(self.row + dr, self.col + dc)


@dataclass(frozen=True)
class CityGrid:
    """A 2D grid of cells."""

    cells: tuple[tuple[Cell, ...], ...]

    @property
    def rows(self) -> int:
        return len(self.cells)

    @property
    def cols(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def cell(self, pos: Position) -> Cell:
        return self.cells[pos.row][pos.col]

    def is_road(self, pos: Position) -> bool:
        """True if pos is inside the grid and not a block."""
        return self.in_bounds(pos) and isinstance(self.cell(pos), Road)

    def cost(self, pos: Position) -> int:
        """Cost of entering pos. Raises ValueError for blocks."""
        match self.cell(pos):
            case Road(cost=cost):
                return cost
            case Block():
                raise ValueError(f"Cell ({pos.row}, {pos.col}) is a block and has no cost")
            case other:
                raise ValueError(f"Unknown cell type: {other}")
