"""
Shortest closed patrol route that observes every intersection of a city.

Pipeline: classify intersections and build the view graph -> shortest paths
from the start -> branch-and-bound search over the view graph -> moves.

Usage:
    python patrol.py [INPUT_FILE] [--render] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass

from city_parser import parse_city
from city_types import CityGrid, Position
from distance_oracle import DistanceOracle, build_distance_oracle
from intersections import IntersectionGraph, build_intersections, make_view
from route_search import SearchRules, SearchStats, find_best_tour
from route_serializer import serialize_route, tour_positions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatrolRoute:
    """Result of solving one city."""

    cost: int
    tour: tuple[int, ...]  # Intersection indices in visiting order
    moves: str
    positions: tuple[Position, ...]  # Positions of the tour's intersections
    stats: SearchStats
    graph: IntersectionGraph
    oracle: DistanceOracle


def _ensure_recursion_limit(intersections: int) -> None:
    # Two frames per search level (search and _expand_axis); every level
    # watches at least one more intersection, so depth is at most intersections
    needed = 2 * intersections + 1000
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)


def solve_city(grid: CityGrid, start: Position, rules: SearchRules = SearchRules()) -> PatrolRoute:
    """
    Find the shortest patrol from start that observes every intersection.

    Raises:
        ValueError: If start is not a road cell or an intersection cannot be
            reached from start
        RuntimeError: If the search finds no tour
    """
    if not grid.is_road(start):
        raise ValueError(f"Start ({start.row}, {start.col}) is not a road cell")

    graph = build_intersections(grid)
    oracle = build_distance_oracle(grid, graph, start)
    unreachable = [graph.positions[i] for i in range(len(graph)) if i not in oracle]
    if unreachable:
        raise ValueError(
            f"{len(unreachable)} intersections cannot be reached from start "
            f"({start.row}, {start.col})\n"
            f"  First: ({unreachable[0].row}, {unreachable[0].col})"
        )

    _ensure_recursion_limit(len(graph))
    start_view = make_view(grid, graph.index_of, start)
    best, stats = find_best_tour(graph, oracle, start_view, rules)

    moves = serialize_route(graph, oracle, start, best.tour)
    logger.info("solve_city: cost=%d, %d intersections on tour, %d moves", best.cost, len(best.tour), len(moves))
    return PatrolRoute(
        cost=int(best.cost),
        tour=best.tour,
        moves=moves,
        positions=tuple(tour_positions(graph, best.tour)),
        stats=stats,
        graph=graph,
        oracle=oracle,
    )


def solve_text(text: str, rules: SearchRules = SearchRules()) -> str:
    """Parse the plain-text problem and return the patrol moves."""
    grid, start = parse_city(text)
    return solve_city(grid, start, rules).moves


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point: read a problem, print the moves."""
    parser = argparse.ArgumentParser(description="Shortest patrol route through a city grid.")
    parser.add_argument("input", nargs="?", help="problem file (default: stdin)")
    parser.add_argument("--render", action="store_true", help="draw the route on stderr")
    parser.add_argument("--verbose", action="store_true", help="log search progress")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.input:
        with open(args.input, encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    grid, start = parse_city(text)
    route = solve_city(grid, start)
    print(route.moves)

    if args.render:
        from ascii_render import render

        print(render(grid, start, route.graph, route.moves), file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
