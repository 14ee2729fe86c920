"""
ASCII rendering of a city with a patrol route overlaid.

Each cell is drawn as one character:
- '#' block
- digit: road cost
- 'S' the start cell
- '@' the highlighted position (e.g. the patrol's current cell)
Colors mark cells on the route and intersections off the route.
"""

from __future__ import annotations

import logging
from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from city_types import Block, CityGrid, IntersectionKind, Position, Road
from intersections import IntersectionGraph
from route_serializer import replay_moves

logger = logging.getLogger(__name__)

KIND_COLORS: dict[IntersectionKind, Callable[[str], str]] = {
    IntersectionKind.CORNER: chalk.cyan,
    IntersectionKind.T_JUNCTION_MISSING_VERTICAL: chalk.yellow,
    IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL: chalk.yellowBright,
    IntersectionKind.FULL_CROSS: chalk.magenta,
}


def render(
    grid: CityGrid,
    start: Position,
    graph: IntersectionGraph | None = None,
    moves: str = "",
    highlight_pos: Position | None = None,
) -> str:
    """
    Render a city to an ASCII string with colors.

    Args:
        grid: The city
        start: Start cell, drawn as 'S'
        graph: Intersections to color by kind (off-route only); None to skip
        moves: Patrol moves from start; visited cells are drawn green
        highlight_pos: Optional cell drawn as '@' in white

    Returns:
        Rendered string with ANSI color codes, one line per row
    """
    visited: set[Position] = set(replay_moves(grid, start, moves).positions) if moves else set()
    kinds: dict[Position, IntersectionKind] = {}
    if graph is not None:
        kinds = dict(zip(graph.positions, graph.kinds))

    lines: list[str] = []
    for r, row in enumerate(grid.cells):
        chars: list[str] = []
        for c, cell in enumerate(row):
            pos = Position(r, c)
            match cell:
                case Block():
                    chars.append(chalk.blue("#"))
                case Road(cost=cost):
                    if pos == highlight_pos:
                        chars.append(chalk.white("@"))
                    elif pos == start:
                        chars.append(chalk.redBright("S"))
                    elif pos in visited:
                        chars.append(chalk.green(str(cost)))
                    elif pos in kinds:
                        chars.append(KIND_COLORS[kinds[pos]](str(cost)))
                    else:
                        chars.append(str(cost))
                case _:
                    raise ValueError(f"Unknown cell type: {cell}")
        lines.append("".join(chars))

    logger.debug("render: %dx%d city, %d cells on route", grid.rows, grid.cols, len(visited))
    return "\n".join(lines)
