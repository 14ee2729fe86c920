"""
Shortest paths from the start cell to every intersection.

Dijkstra over the raw grid where entering a road cell costs its weight. For
each intersection the oracle records its distance from the start (used as the
lower bound of the return leg) and the moves that lead from the intersection
back to the start.
"""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass

from city_types import CityGrid, Direction, Position
from intersections import IntersectionGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReturnPath:
    """Distance of an intersection from the start and the moves back to the start."""

    distance: int
    moves: str  # Forward order: intersection -> start


DistanceOracle = dict[int, ReturnPath]

# Expansion order of neighbours
_EXPAND_ORDER = (Direction.L, Direction.R, Direction.U, Direction.D)


def shortest_distances(grid: CityGrid, start: Position) -> tuple[dict[Position, int], dict[Position, tuple[Position, Direction]]]:
    """
    Single-source shortest paths over every road cell.

    Ties between equal-cost paths go to whichever was pushed first.

    Returns:
        (distance per settled cell, parent link per cell except start)
    """
    if not grid.is_road(start):
        raise ValueError(f"Start ({start.row}, {start.col}) is not a road cell")

    dist: dict[Position, int] = {start: 0}
    parent: dict[Position, tuple[Position, Direction]] = {}
    settled: set[Position] = set()
    heap: list[tuple[int, int, Position]] = [(0, 0, start)]
    tie = 1

    while heap:
        d, _, pos = heapq.heappop(heap)
        if pos in settled:
            continue
        settled.add(pos)

        for direction in _EXPAND_ORDER:
            nxt = pos.step(direction)
            if not grid.is_road(nxt) or nxt in settled:
                continue
            nd = d + grid.cost(nxt)
            old = dist.get(nxt)
            if old is not None and nd >= old:
                continue
            dist[nxt] = nd
            parent[nxt] = (pos, direction)
            heapq.heappush(heap, (nd, tie, nxt))
            tie += 1

    return dist, parent


def _return_moves(parent: dict[Position, tuple[Position, Direction]], target: Position) -> str:
    """Moves from target back to the start, inverting the start -> target path."""
    moves: list[str] = []
    current = target
    while current in parent:
        prev, direction = parent[current]
        moves.append(direction.opposite.value)
        current = prev
    return "".join(moves)


def build_distance_oracle(grid: CityGrid, graph: IntersectionGraph, start: Position) -> DistanceOracle:
    """
    Record distance and return moves for every intersection reachable from start.

    Unreachable intersections have no entry.
    """
    dist, parent = shortest_distances(grid, start)
    oracle: DistanceOracle = {}
    for index, pos in enumerate(graph.positions):
        if pos in dist:
            oracle[index] = ReturnPath(dist[pos], _return_moves(parent, pos))

    unreachable = len(graph) - len(oracle)
    if unreachable:
        logger.info("build_distance_oracle: %d intersections unreachable from start", unreachable)
    return oracle
