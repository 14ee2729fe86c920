"""
Branch-and-bound search for the shortest patrol tour.

The search walks the intersection view graph depth-first. At each node it
commits to the first unwatched intersection along the row (or, failing
that, the column) whose optimistic completion can still beat the best tour
found so far. When neither axis offers such a move, a rescue search jumps to
the nearest intersection that is still unwatched.

The best bound is threaded through parameters and return values; the watch
state is the only mutable structure and every change to it is scoped by a
context manager so it is restored on every exit path.
"""

from __future__ import annotations

import heapq
import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from city_types import Axis
from distance_oracle import DistanceOracle
from intersections import IntersectionGraph, View, ViewEntry
from watch_state import Credit, WatchState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchRules:
    """Rules governing search behavior."""

    branches_per_axis: int = 1  # Successful expansions per axis per call; 1 commits to a single branch
    rescue: bool = True  # Fall back to rescue search at dead ends


@dataclass(frozen=True)
class Bound:
    """Cost of a complete tour and the intersections it visits, in order."""

    cost: float
    tour: tuple[int, ...]


NO_TOUR = Bound(math.inf, ())


@dataclass
class SearchStats:
    """Counters collected during one search."""

    calls: int = 0
    rescues: int = 0
    improvements: list[int] = field(default_factory=list)  # Every value the best cost took


@dataclass(frozen=True)
class SearchContext:
    """Everything a search call reads besides its own arguments."""

    graph: IntersectionGraph
    oracle: DistanceOracle
    watch: WatchState
    rules: SearchRules = SearchRules()
    stats: SearchStats = field(default_factory=SearchStats)


@contextmanager
def extended(path: list[int], nodes: list[int]) -> Iterator[None]:
    """Append nodes to path for the duration of a with-block."""
    size = len(path)
    path.extend(nodes)
    try:
        yield
    finally:
        del path[size:]


def _fold(best: Bound, found: Bound) -> Bound:
    return found if found.cost < best.cost else best


# =============================================================================
# Rescue Search
# =============================================================================


def rescue_search(graph: IntersectionGraph, watch: WatchState, origin: int) -> tuple[int, list[int]]:
    """
    Cheapest path over the view graph from origin to any unwatched intersection.

    Nodes are popped in increasing distance; the first unwatched one ends the
    search. Intermediate nodes may already be watched.

    Returns:
        (distance, path) where path starts with origin and ends at the target

    Raises:
        RuntimeError: If no unwatched intersection is reachable
    """
    best: dict[int, int] = {origin: 0}
    heap: list[tuple[int, int, list[int]]] = [(0, 0, [origin])]
    tie = 1

    while heap:
        d, _, path = heapq.heappop(heap)
        node = path[-1]
        if d > best[node]:
            continue
        if not watch.is_watched(node):
            return d, path
        for i, edge in graph.neighbours(node):
            nd = d + edge
            if nd < best.get(i, math.inf):
                best[i] = nd
                heapq.heappush(heap, (nd, tie, path + [i]))
                tie += 1

    raise RuntimeError(
        f"Rescue search from intersection {origin} found no unwatched intersection\n"
        f"  Unwatched: {watch.unwatched()}\n"
        f"  Explored: {len(best)} intersections"
    )


# =============================================================================
# Branch and Bound
# =============================================================================


def _passed_over(graph: IntersectionGraph, entries: tuple[ViewEntry, ...], u: int, i: int, axis: Axis) -> list[int]:
    """Intersections of u's view strictly between u and i along axis."""
    if axis is Axis.H:
        coord = lambda index: graph.positions[index].col
    else:
        coord = lambda index: graph.positions[index].row
    lo, hi = sorted((coord(u), coord(i)))
    return [j for j, _ in entries if lo < coord(j) < hi]


def _expand_axis(ctx: SearchContext, path: list[int], dist: int, best: Bound, axis: Axis) -> tuple[Bound, int]:
    """
    Try straight moves from the tail of path along one axis.

    The target is credited on both axes; intersections passed over on the way
    are credited on the perpendicular axis.

    Returns:
        (tightened best, number of expansions taken)
    """
    u = path[-1]
    view = ctx.graph.views[u]
    entries = view.horizontal if axis is Axis.H else view.vertical
    perpendicular = Axis.V if axis is Axis.H else Axis.H

    taken = 0
    for i, edge in entries:
        if taken >= ctx.rules.branches_per_axis:
            break
        if ctx.watch.is_watched(i) or dist + edge + ctx.oracle[i].distance >= best.cost:
            continue

        credits: list[Credit] = [(i, Axis.H), (i, Axis.V)]
        credits += [(j, perpendicular) for j in _passed_over(ctx.graph, entries, u, i, axis)]
        with ctx.watch.credited(credits), extended(path, [i]):
            best = _fold(best, search(ctx, path, dist + edge, best))
        taken += 1

    return best, taken


def search(ctx: SearchContext, path: list[int], dist: int, best: Bound) -> Bound:
    """
    Extend path (ending at the current intersection) into complete tours.

    Args:
        ctx: Graph, oracle, watch state, rules and stats
        path: Intersections visited so far; restored before returning
        dist: Cost travelled so far
        best: Best complete tour known to the caller

    Returns:
        The best tour known after exploring this subtree. When every
        intersection is already watched, the tour closing at the current node
        is returned even if it does not beat best; the caller folds it.
    """
    ctx.stats.calls += 1
    u = path[-1]

    if ctx.watch.all_watched():
        candidate = dist + ctx.oracle[u].distance
        if candidate < best.cost:
            ctx.stats.improvements.append(candidate)
            logger.debug("search: new best %d via %d intersections", candidate, len(path))
        return Bound(candidate, tuple(path))

    best, taken = _expand_axis(ctx, path, dist, best, Axis.H)
    if taken == 0:
        best, taken = _expand_axis(ctx, path, dist, best, Axis.V)

    if taken == 0 and ctx.rules.rescue:
        ctx.stats.rescues += 1
        d, rescue_path = rescue_search(ctx.graph, ctx.watch, u)
        end = rescue_path[-1]
        if dist + d + ctx.oracle[end].distance < best.cost:
            with ctx.watch.credited([(end, Axis.H), (end, Axis.V)]), extended(path, rescue_path[1:]):
                best = _fold(best, search(ctx, path, dist + d, best))

    return best


# =============================================================================
# Entry Points
# =============================================================================


def seed_watch_state(graph: IntersectionGraph, start_view: View) -> WatchState:
    """Fresh watch state with the intersections visible from the start pre-credited."""
    watch = WatchState(graph.kinds)
    for i, _ in start_view.horizontal:
        watch.increment(i, Axis.H)
    for i, _ in start_view.vertical:
        watch.increment(i, Axis.V)
    return watch


def find_best_tour(
    graph: IntersectionGraph,
    oracle: DistanceOracle,
    start_view: View,
    rules: SearchRules = SearchRules(),
) -> tuple[Bound, SearchStats]:
    """
    Run the search from every intersection visible from the start.

    Roots are tried horizontal view first, then vertical; the best bound
    carries over so later roots are pruned against earlier results. A city
    whose start sees no intersection and has none left to watch yields the
    empty tour.

    Raises:
        RuntimeError: If intersections remain unwatched and no tour is found
    """
    watch = seed_watch_state(graph, start_view)
    ctx = SearchContext(graph, oracle, watch, rules)
    roots = start_view.horizontal + start_view.vertical

    if not roots and watch.all_watched():
        logger.info("find_best_tour: nothing to patrol (%d intersections)", len(graph))
        ctx.stats.improvements.append(0)
        return Bound(0, ()), ctx.stats

    best = NO_TOUR
    for i, edge in roots:
        best = _fold(best, search(ctx, [i], edge, best))

    if not best.tour:
        raise RuntimeError(
            f"No patrol tour found\n"
            f"  Intersections: {len(graph)}\n"
            f"  Visible from start: {len(start_view.horizontal) + len(start_view.vertical)}\n"
            f"  Unwatched at start: {watch.unwatched()}"
        )

    logger.info(
        "find_best_tour: cost=%d, calls=%d, rescues=%d",
        best.cost,
        ctx.stats.calls,
        ctx.stats.rescues,
    )
    return best, ctx.stats
