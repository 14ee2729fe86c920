"""
Demonstration scripts for the patrol route solver.
"""

import logging
import sys

from ascii_render import render
from city_parser import parse_city, parse_city_concise
from city_types import Position
from intersections import build_intersections
from patrol import solve_city
from route_search import SearchRules

CITIES = dict(
    ring=(
        "111|1#1|111",
        Position(0, 1),
    ),
    lattice=(
        "11111|1#1#1|11111|1#1#1|11111",
        Position(0, 1),
    ),
    weighted=(
        "1234567|1#9#1#2|1111111|5###3#1|1111111|1#1#4#1|9111111",
        Position(2, 0),
    ),
    cross=(
        "#1#|151|#1#",
        Position(0, 1),
    ),
)

PROBLEM_TEXT = """\
5
0 2
11111
1#1#1
11911
1#1#1
11111
"""


def demo(name: str) -> None:
    """Solve one sample city and draw the route."""
    definition, start = CITIES[name]
    grid = parse_city_concise(definition)

    print("=" * 40)
    print(f"City '{name}' ({grid.rows}x{grid.cols}), start ({start.row}, {start.col}):")
    print("=" * 40)
    print(render(grid, start, build_intersections(grid)))
    print()

    route = solve_city(grid, start)
    print(f"Moves: {route.moves}")
    print(f"Cost: {route.cost}  (calls={route.stats.calls}, rescues={route.stats.rescues})")
    print(render(grid, start, route.graph, route.moves))
    print()


def rules_demo() -> None:
    """Compare the single-branch commit rule with a wider search."""
    definition, start = CITIES["weighted"]
    grid = parse_city_concise(definition)

    print("=" * 40)
    print("Branches per axis:")
    print("=" * 40)
    for branches in (1, 2, 3):
        route = solve_city(grid, start, SearchRules(branches_per_axis=branches))
        print(f"  {branches}: cost={route.cost}, calls={route.stats.calls}, moves={route.moves}")
    print()


def text_demo() -> None:
    """Solve a problem given in the plain-text input format."""
    grid, start = parse_city(PROBLEM_TEXT)
    route = solve_city(grid, start)

    print("=" * 40)
    print("Plain-text problem:")
    print("=" * 40)
    print(PROBLEM_TEXT)
    print(f"Moves: {route.moves}")
    print(render(grid, start, route.graph, route.moves))


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "verbose":
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

    for name in CITIES:
        demo(name)
    rules_demo()
    text_demo()
