"""
Test rotation framework for systematic directional testing.

Scenarios are written once and run in all 4 rotations (0°, 90°, 180°, 270°)
of the city, so every scan direction and move letter gets exercised.
"""

from dataclasses import dataclass

import pytest

from city_parser import parse_city_concise
from city_types import Cell, CityGrid, IntersectionKind, Position
from intersections import build_intersections
from patrol import solve_city
from route_serializer import replay_moves


# =============================================================================
# Rotation Utilities
# =============================================================================


def rotate_city_90(grid: CityGrid) -> CityGrid:
    """
    Rotate a CityGrid 90° clockwise.

    Position (row, col) → (col, N - 1 - row)
    """
    n = grid.rows
    new_cells: list[list[Cell]] = [[None] * n for _ in range(grid.cols)]  # type: ignore
    for row in range(grid.rows):
        for col in range(grid.cols):
            new_cells[col][n - 1 - row] = grid.cells[row][col]
    return CityGrid(tuple(tuple(row) for row in new_cells))


def rotate_position_90(pos: Position, rows: int) -> Position:
    return Position(pos.col, rows - 1 - pos.row)


def rotate_kind_90(kind: IntersectionKind) -> IntersectionKind:
    """T-junctions swap their missing axis under a quarter turn."""
    if kind is IntersectionKind.T_JUNCTION_MISSING_VERTICAL:
        return IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL
    if kind is IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL:
        return IntersectionKind.T_JUNCTION_MISSING_VERTICAL
    return kind


@dataclass(frozen=True)
class Rotated:
    """A city and start cell turned by `turns` quarter turns clockwise."""

    turns: int
    grid: CityGrid
    start: Position


def rotations(definition: str, start: Position) -> list[Rotated]:
    grid = parse_city_concise(definition)
    result = [Rotated(0, grid, start)]
    for turns in range(1, 4):
        start = rotate_position_90(start, grid.rows)
        grid = rotate_city_90(grid)
        result.append(Rotated(turns, grid, start))
    return result


SCENARIOS = {
    "ring": ("111|1#1|111", Position(0, 1)),
    "big_ring": ("1111111|1#####1|1#####1|1111111|1#####1|1#####1|1111111", Position(0, 3)),
    "lattice": ("11111|1#1#1|11111|1#1#1|11111", Position(0, 1)),
    "weighted": ("1234567|1#9#1#2|1111111|5###3#1|1111111|1#1#4#1|9111111", Position(2, 0)),
    "cross": ("#1#|151|#1#", Position(0, 1)),
}


def all_rotated_scenarios() -> list:
    cases = []
    for name, (definition, start) in SCENARIOS.items():
        for rotated in rotations(definition, start):
            cases.append(pytest.param(rotated, id=f"{name}-{rotated.turns * 90}"))
    return cases


# =============================================================================
# Tests
# =============================================================================


class TestRotationUtilities:
    """Sanity checks for the helpers themselves."""

    def test_four_turns_is_identity(self) -> None:
        grid = parse_city_concise("1234|5#6#|7890|1#2#")
        rotated = grid
        for _ in range(4):
            rotated = rotate_city_90(rotated)
        assert rotated == grid

    def test_classification_rotates(self) -> None:
        """Kinds turn with the city; T-junctions swap their missing axis."""
        grid = parse_city_concise("1111111|1#9#1#2|1111111|5###3#1|1111111|1#1#4#1|9111111")
        graph = build_intersections(grid)
        turned = build_intersections(rotate_city_90(grid))

        for pos, kind in zip(graph.positions, graph.kinds):
            turned_pos = rotate_position_90(pos, grid.rows)
            assert turned.kinds[turned.index_of[turned_pos]] is rotate_kind_90(kind)


class TestRotatedPatrols:
    """Every scenario produces a valid patrol in every orientation."""

    @pytest.mark.parametrize("case", all_rotated_scenarios())
    def test_patrol_is_closed_and_on_road(self, case: Rotated) -> None:
        route = solve_city(case.grid, case.start)

        replay = replay_moves(case.grid, case.start, route.moves)
        assert replay.end == case.start
        assert set(route.positions) <= set(replay.positions)
        assert route.stats.improvements[-1] == route.cost

    @pytest.mark.parametrize("case", [c for c in all_rotated_scenarios() if c.id.startswith("ring-")])
    def test_ring_cost(self, case: Rotated) -> None:
        """The small ring costs its perimeter from any side."""
        assert solve_city(case.grid, case.start).cost == 8

    @pytest.mark.parametrize("case", [c for c in all_rotated_scenarios() if c.id.startswith("cross-")])
    def test_cross_cost(self, case: Rotated) -> None:
        route = solve_city(case.grid, case.start)
        assert route.cost == 10
        assert len(route.moves) == 2
