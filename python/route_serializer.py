"""
Turning a tour of intersections into unit moves, and replaying moves.
"""

from __future__ import annotations

from dataclasses import dataclass

from city_types import CityGrid, Direction, Position
from distance_oracle import DistanceOracle
from intersections import IntersectionGraph

__all__ = ["Replay", "replay_moves", "segment_moves", "serialize_route", "tour_positions"]


def segment_moves(a: Position, b: Position) -> str:
    """
    Moves along one straight segment from a to b.

    Raises:
        ValueError: If a and b share neither a row nor a column
    """
    if a.row == b.row:
        delta = b.col - a.col
        return (Direction.R.value if delta > 0 else Direction.L.value) * abs(delta)
    if a.col == b.col:
        delta = b.row - a.row
        return (Direction.D.value if delta > 0 else Direction.U.value) * abs(delta)
    raise ValueError(
        f"Tour segment is not straight\n"
        f"  From: ({a.row}, {a.col})\n"
        f"  To: ({b.row}, {b.col})"
    )


def tour_positions(graph: IntersectionGraph, tour: tuple[int, ...] | list[int]) -> list[Position]:
    return [graph.positions[i] for i in tour]


def serialize_route(
    graph: IntersectionGraph,
    oracle: DistanceOracle,
    start: Position,
    tour: tuple[int, ...] | list[int],
) -> str:
    """
    Moves for the whole patrol: straight segments from the start through every
    intersection of the tour, then the stored return path of the last one.

    An empty tour is the empty patrol.
    """
    if not tour:
        return ""
    parts: list[str] = []
    current = start
    for pos in tour_positions(graph, tour):
        parts.append(segment_moves(current, pos))
        current = pos
    parts.append(oracle[tour[-1]].moves)
    return "".join(parts)


@dataclass(frozen=True)
class Replay:
    """Cells visited by a move string, starting with the start cell."""

    positions: tuple[Position, ...]
    cost: int  # Sum of the costs of every cell entered

    @property
    def end(self) -> Position:
        return self.positions[-1]


def replay_moves(grid: CityGrid, start: Position, moves: str) -> Replay:
    """
    Walk moves from start.

    Raises:
        ValueError: On an unknown move letter, leaving the grid or entering a block
    """
    positions = [start]
    cost = 0
    current = start
    for step, letter in enumerate(moves):
        try:
            direction = Direction(letter)
        except ValueError:
            raise ValueError(f"Invalid move '{letter}' at step {step}") from None
        current = current.step(direction)
        if not grid.is_road(current):
            raise ValueError(
                f"Move {step} ('{letter}') leaves the road\n"
                f"  Target: ({current.row}, {current.col})"
            )
        cost += grid.cost(current)
        positions.append(current)
    return Replay(tuple(positions), cost)
