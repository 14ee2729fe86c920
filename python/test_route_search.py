"""Tests for the branch-and-bound search and the rescue search."""

import math

import pytest

import route_search
from city_parser import parse_city_concise
from city_types import Axis, CityGrid, IntersectionKind, Position
from distance_oracle import build_distance_oracle
from intersections import IntersectionGraph, build_intersections, make_view
from route_search import (
    NO_TOUR,
    Bound,
    SearchContext,
    SearchRules,
    extended,
    find_best_tour,
    rescue_search,
    search,
    seed_watch_state,
)
from watch_state import CrossCount, WatchState

RING = "111|1#1|111"
# Three intersections on one straight road: a tee, a full cross, a tee
ROW_OF_THREE = "1#1#1|11111|1#1#1|#####|#####"
COLUMN_OF_THREE = "111##|#1###|111##|#1###|111##"
LATTICE = "11111|1#1#1|11111|1#1#1|11111"
WEIGHTED = "1234567|1#9#1#2|1111111|5###3#1|1111111|1#1#4#1|9111111"


def setup(definition: str, start: Position) -> tuple[CityGrid, IntersectionGraph, SearchContext]:
    grid = parse_city_concise(definition)
    graph = build_intersections(grid)
    oracle = build_distance_oracle(grid, graph, start)
    start_view = make_view(grid, graph.index_of, start)
    ctx = SearchContext(graph, oracle, seed_watch_state(graph, start_view))
    return grid, graph, ctx


def reference_nearest_unwatched(graph: IntersectionGraph, watch: WatchState, origin: int) -> int:
    """Cheapest view-graph distance to any unwatched node, by exhaustive relaxation."""
    dist = {origin: 0}
    changed = True
    while changed:
        changed = False
        for node, d in list(dist.items()):
            for i, edge in graph.neighbours(node):
                if d + edge < dist.get(i, math.inf):
                    dist[i] = d + edge
                    changed = True
    return min(d for node, d in dist.items() if not watch.is_watched(node))


class TestExtended:
    """Tests for the scoped path extension."""

    def test_restores_path(self) -> None:
        path = [1, 2]
        with extended(path, [3, 4]):
            assert path == [1, 2, 3, 4]
        assert path == [1, 2]

    def test_restores_on_error(self) -> None:
        path = [1]
        with pytest.raises(KeyError):
            with extended(path, [2]):
                raise KeyError("x")
        assert path == [1]


class TestSeedWatchState:
    """Tests for crediting intersections visible from the start."""

    def test_ring_start_watches_top_corners(self) -> None:
        grid = parse_city_concise(RING)
        graph = build_intersections(grid)

        watch = seed_watch_state(graph, make_view(grid, graph.index_of, Position(0, 1)))

        assert watch.unwatched() == [2, 3]

    def test_start_credits_axis_of_view(self) -> None:
        """A cross seen only vertically from the start still needs a horizontal pass."""
        grid = parse_city_concise("#1#|111|#1#")
        graph = build_intersections(grid)

        watch = seed_watch_state(graph, make_view(grid, graph.index_of, Position(0, 1)))

        assert watch[0].v == 1
        assert watch[0].h == 0
        assert watch.unwatched() == [0]


class TestRescueSearch:
    """Tests for the fallback search to the nearest unwatched intersection."""

    def test_finds_nearest_unwatched(self) -> None:
        graph = build_intersections(parse_city_concise(RING))
        watch = WatchState(graph.kinds)
        for i in (0, 1, 2):
            watch.increment(i, Axis.H)

        d, path = rescue_search(graph, watch, 0)

        assert d == 4
        assert path[0] == 0
        assert path[-1] == 3
        assert len(path) == 3

    def test_unwatched_origin(self) -> None:
        """An unwatched origin is its own nearest target."""
        graph = build_intersections(parse_city_concise(RING))
        watch = WatchState(graph.kinds)

        assert rescue_search(graph, watch, 2) == (0, [2])

    def test_path_follows_view_edges(self) -> None:
        """Consecutive nodes of the rescue path see each other."""
        graph = build_intersections(parse_city_concise(LATTICE))
        watch = WatchState(graph.kinds)
        for i in range(len(graph) - 1):
            watch.increment(i, Axis.H)
            watch.increment(i, Axis.V)

        d, path = rescue_search(graph, watch, 0)

        total = 0
        for a, b in zip(path, path[1:]):
            edges = dict(graph.neighbours(a))
            assert b in edges
            total += edges[b]
        assert total == d
        assert path[-1] == len(graph) - 1

    @pytest.mark.parametrize("origin", [0, 3, 5, 8])
    def test_minimal_against_reference(self, origin: int) -> None:
        """The returned distance is the cheapest over all unwatched targets."""
        graph = build_intersections(parse_city_concise(WEIGHTED))
        watch = WatchState(graph.kinds)
        for i in range(0, len(graph), 2):
            watch.increment(i, Axis.H)
            watch.increment(i, Axis.V)
        watch.increment(origin, Axis.H)
        watch.increment(origin, Axis.V)

        d, path = rescue_search(graph, watch, origin)

        assert not watch.is_watched(path[-1])
        assert d == reference_nearest_unwatched(graph, watch, origin)

    def test_nothing_unwatched(self) -> None:
        graph = build_intersections(parse_city_concise(RING))
        watch = WatchState(graph.kinds)
        for i in range(len(graph)):
            watch.increment(i, Axis.H)

        with pytest.raises(RuntimeError, match="no unwatched intersection"):
            rescue_search(graph, watch, 0)


class TestSearch:
    """Tests for the recursive branch-and-bound search."""

    def test_ring_tour(self) -> None:
        """From the top edge the patrol sweeps the two bottom corners."""
        _, graph, ctx = setup(RING, Position(0, 1))

        best = search(ctx, [1], 1, NO_TOUR)

        assert best == Bound(8, (1, 3, 2))
        assert ctx.stats.improvements == [8]

    def test_watch_state_restored(self) -> None:
        """After a search call returns the watch state equals its state at entry."""
        _, graph, ctx = setup(LATTICE, Position(0, 1))
        before = ctx.watch.snapshot()

        search(ctx, [graph.index_of[Position(0, 2)]], 1, NO_TOUR)

        assert ctx.watch.snapshot() == before

    def test_path_restored(self) -> None:
        _, graph, ctx = setup(WEIGHTED, Position(2, 0))
        path = [graph.index_of[Position(2, 2)]]

        search(ctx, path, 1, NO_TOUR)

        assert path == [graph.index_of[Position(2, 2)]]

    def test_terminal_returns_candidate_unconditionally(self) -> None:
        """A complete tour is handed back even when it does not beat best."""
        _, graph, ctx = setup(RING, Position(0, 1))
        for i in (2, 3):
            ctx.watch.increment(i, Axis.H)

        found = search(ctx, [0], 1, Bound(1, (1,)))

        assert found == Bound(2, (0,))
        assert ctx.stats.improvements == []

    def test_prune_against_best(self) -> None:
        """Nothing is explored when every move is already too expensive."""
        _, graph, ctx = setup(RING, Position(0, 1))

        best = search(ctx, [1], 1, Bound(6, (0,)))

        assert best == Bound(6, (0,))
        assert ctx.stats.improvements == []

    def test_rescue_disabled(self) -> None:
        """Without rescue a dead end yields no tour."""
        _, graph, ctx = setup("#1#|111|#1#", Position(0, 1))
        ctx = SearchContext(ctx.graph, ctx.oracle, ctx.watch, SearchRules(rescue=False))

        assert search(ctx, [0], 1, NO_TOUR) == NO_TOUR
        assert ctx.stats.rescues == 0

    @pytest.mark.parametrize(
        "definition, axis, middle_credit",
        [
            (ROW_OF_THREE, Axis.H, CrossCount(h=1, v=2)),
            (COLUMN_OF_THREE, Axis.V, CrossCount(h=2, v=1)),
        ],
    )
    def test_passed_over_credited_on_perpendicular_axis(
        self, monkeypatch, definition: str, axis: Axis, middle_credit: CrossCount
    ) -> None:
        """
        Moving past a cross to the tee beyond it sees the cross across the road.

        The cross is already watched, so the move targets the far tee. While
        that branch runs the cross carries one extra credit on the axis
        perpendicular to the move, and it is removed again afterwards.
        """
        grid = parse_city_concise(definition)
        graph = build_intersections(grid)
        assert graph.kinds[1] is IntersectionKind.FULL_CROSS
        oracle = build_distance_oracle(grid, graph, Position(1, 1))
        watch = WatchState(graph.kinds)
        watch.increment(1, Axis.H)
        watch.increment(1, Axis.V)
        ctx = SearchContext(graph, oracle, watch)
        before = watch.snapshot()

        seen: list[tuple[list[int], CrossCount]] = []

        def record(ctx: SearchContext, path: list[int], dist: int, best: Bound) -> Bound:
            seen.append((list(path), ctx.watch[1]))
            return NO_TOUR

        monkeypatch.setattr(route_search, "search", record)

        best, taken = route_search._expand_axis(ctx, [0], 0, NO_TOUR, axis)

        assert taken == 1
        assert best == NO_TOUR
        assert seen == [([0, 2], middle_credit)]
        assert watch.snapshot() == before


class TestFindBestTour:
    """Tests for root seeding."""

    def test_ring(self) -> None:
        grid = parse_city_concise(RING)
        graph = build_intersections(grid)
        start = Position(0, 1)
        oracle = build_distance_oracle(grid, graph, start)

        best, stats = find_best_tour(graph, oracle, make_view(grid, graph.index_of, start))

        assert best.cost == 8
        assert best.tour == (1, 3, 2)
        assert stats.improvements == [8]

    def test_improvements_decrease(self) -> None:
        """best never increases and ends at the returned cost."""
        grid = parse_city_concise(WEIGHTED)
        graph = build_intersections(grid)
        start = Position(2, 0)
        oracle = build_distance_oracle(grid, graph, start)

        best, stats = find_best_tour(graph, oracle, make_view(grid, graph.index_of, start))

        assert stats.improvements
        assert all(a > b for a, b in zip(stats.improvements, stats.improvements[1:]))
        assert stats.improvements[-1] == best.cost

    def test_start_sees_nothing_to_do(self) -> None:
        """A city without intersections has the empty tour."""
        grid = parse_city_concise("111|###|###")
        graph = build_intersections(grid)
        start = Position(0, 0)
        oracle = build_distance_oracle(grid, graph, start)

        best, stats = find_best_tour(graph, oracle, make_view(grid, graph.index_of, start))

        assert best == Bound(0, ())
        assert stats.calls == 0

    def test_no_roots(self) -> None:
        """An intersection the start cannot see from itself is fatal."""
        grid = parse_city_concise("#1#|111|#1#")
        graph = build_intersections(grid)
        start = Position(1, 1)
        oracle = build_distance_oracle(grid, graph, start)

        with pytest.raises(RuntimeError, match="No patrol tour found"):
            find_best_tour(graph, oracle, make_view(grid, graph.index_of, start))
