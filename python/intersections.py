"""
Intersection classification and the straight-line view graph.

An intersection is a road cell whose open neighbours force the patrol to
observe it. Each intersection gets a horizontal and a vertical view: the
other intersections reachable along its row or column without crossing a
block, with the travel cost accumulated on the way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from city_types import CityGrid, Direction, IntersectionKind, Position

logger = logging.getLogger(__name__)

# Openness flag bits
OPEN_LEFT = 1
OPEN_RIGHT = 2
OPEN_UP = 4
OPEN_DOWN = 8

_KIND_BY_FLAG: dict[int, IntersectionKind | None] = {
    OPEN_LEFT | OPEN_UP: IntersectionKind.CORNER,
    OPEN_LEFT | OPEN_DOWN: IntersectionKind.CORNER,
    OPEN_RIGHT | OPEN_UP: IntersectionKind.CORNER,
    OPEN_RIGHT | OPEN_DOWN: IntersectionKind.CORNER,
    OPEN_LEFT | OPEN_RIGHT | OPEN_UP: IntersectionKind.T_JUNCTION_MISSING_VERTICAL,
    OPEN_LEFT | OPEN_RIGHT | OPEN_DOWN: IntersectionKind.T_JUNCTION_MISSING_VERTICAL,
    OPEN_LEFT | OPEN_UP | OPEN_DOWN: IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL,
    OPEN_RIGHT | OPEN_UP | OPEN_DOWN: IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL,
    OPEN_LEFT | OPEN_RIGHT | OPEN_UP | OPEN_DOWN: IntersectionKind.FULL_CROSS,
    # Isolated cells, dead ends and straight segments
    0: None,
    OPEN_LEFT: None,
    OPEN_RIGHT: None,
    OPEN_UP: None,
    OPEN_DOWN: None,
    OPEN_LEFT | OPEN_RIGHT: None,
    OPEN_UP | OPEN_DOWN: None,
}

# View entry: (intersection index, cumulative cost from the origin)
ViewEntry = tuple[int, int]


@dataclass(frozen=True)
class View:
    """Intersections visible along a straight road from one cell."""

    horizontal: tuple[ViewEntry, ...]  # Scanned right, then left
    vertical: tuple[ViewEntry, ...]  # Scanned down, then up


@dataclass(frozen=True)
class IntersectionGraph:
    """All intersections of a city, indexed in row-major order, with their views."""

    positions: tuple[Position, ...]
    kinds: tuple[IntersectionKind, ...]
    views: tuple[View, ...]
    index_of: dict[Position, int]

    def __len__(self) -> int:
        return len(self.positions)

    def neighbours(self, index: int) -> tuple[ViewEntry, ...]:
        """Horizontal entries followed by vertical entries."""
        view = self.views[index]
        return view.horizontal + view.vertical


def openness_flag(grid: CityGrid, pos: Position) -> int:
    """4-bit flag of which neighbours of pos are roads. Grid edges count as closed."""
    flag = 0
    if grid.is_road(pos.step(Direction.L)):
        flag |= OPEN_LEFT
    if grid.is_road(pos.step(Direction.R)):
        flag |= OPEN_RIGHT
    if grid.is_road(pos.step(Direction.U)):
        flag |= OPEN_UP
    if grid.is_road(pos.step(Direction.D)):
        flag |= OPEN_DOWN
    return flag


def classify_flag(flag: int) -> IntersectionKind | None:
    """
    Map an openness flag to an intersection kind.

    Returns None for cells that are not intersections.

    Raises:
        ValueError: If flag is outside the 4-bit range
    """
    if flag not in _KIND_BY_FLAG:
        raise ValueError(f"Openness flag out of range: {flag}")
    return _KIND_BY_FLAG[flag]


def classify_cell(grid: CityGrid, pos: Position) -> IntersectionKind | None:
    """Kind of the road cell at pos, or None if it is a block or not an intersection."""
    if not grid.is_road(pos):
        return None
    return classify_flag(openness_flag(grid, pos))


def _scan(
    grid: CityGrid,
    index_of: dict[Position, int],
    origin: Position,
    direction: Direction,
) -> list[ViewEntry]:
    """Walk from origin until a block or the edge, recording intersections passed."""
    entries: list[ViewEntry] = []
    cost = 0
    current = origin.step(direction)
    while grid.is_road(current):
        cost += grid.cost(current)
        index = index_of.get(current)
        if index is not None:
            entries.append((index, cost))
        current = current.step(direction)
    return entries


def make_view(grid: CityGrid, index_of: dict[Position, int], origin: Position) -> View:
    """
    Build the view from any road cell (intersection or not).

    Raises:
        ValueError: If origin is not a road cell
    """
    if not grid.is_road(origin):
        raise ValueError(f"Cannot build a view from ({origin.row}, {origin.col}): not a road")
    horizontal = _scan(grid, index_of, origin, Direction.R) + _scan(grid, index_of, origin, Direction.L)
    vertical = _scan(grid, index_of, origin, Direction.D) + _scan(grid, index_of, origin, Direction.U)
    return View(tuple(horizontal), tuple(vertical))


def build_intersections(grid: CityGrid) -> IntersectionGraph:
    """Classify every road cell and build the view graph."""
    positions: list[Position] = []
    kinds: list[IntersectionKind] = []
    for r in range(grid.rows):
        for c in range(grid.cols):
            pos = Position(r, c)
            kind = classify_cell(grid, pos)
            if kind is not None:
                positions.append(pos)
                kinds.append(kind)

    index_of = {pos: i for i, pos in enumerate(positions)}
    views = tuple(make_view(grid, index_of, pos) for pos in positions)

    logger.info("build_intersections: %d intersections in %dx%d city", len(positions), grid.rows, grid.cols)
    return IntersectionGraph(tuple(positions), tuple(kinds), views, index_of)
