"""
Per-intersection observation counters.

Each intersection carries a counter shaped by its kind. Counters are
immutable values; WatchState holds one per intersection and replaces it on
every increment or decrement, so a snapshot taken before a change compares
equal to the state after the matching undo.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterable, Iterator

from city_types import Axis, IntersectionKind


@dataclass(frozen=True)
class CornerCount:
    """Corner: observed from either axis."""

    n: int = 0


@dataclass(frozen=True)
class CrossCount:
    """Full cross: must be observed along both axes."""

    h: int = 0
    v: int = 0


@dataclass(frozen=True)
class HorizontalTeeCount:
    """T-junction missing a vertical side: only horizontal passes count."""

    h: int = 0


@dataclass(frozen=True)
class VerticalTeeCount:
    """T-junction missing a horizontal side: only vertical passes count."""

    v: int = 0


WatchCount = CornerCount | CrossCount | HorizontalTeeCount | VerticalTeeCount

Credit = tuple[int, Axis]


def fresh_count(kind: IntersectionKind) -> WatchCount:
    """Zeroed counter for an intersection kind."""
    match kind:
        case IntersectionKind.CORNER:
            return CornerCount()
        case IntersectionKind.FULL_CROSS:
            return CrossCount()
        case IntersectionKind.T_JUNCTION_MISSING_VERTICAL:
            return HorizontalTeeCount()
        case IntersectionKind.T_JUNCTION_MISSING_HORIZONTAL:
            return VerticalTeeCount()
        case _:
            raise ValueError(f"Unknown intersection kind: {kind}")


def is_watched(count: WatchCount) -> bool:
    match count:
        case CornerCount(n=n):
            return n > 0
        case CrossCount(h=h, v=v):
            return h > 0 and v > 0
        case HorizontalTeeCount(h=h):
            return h > 0
        case VerticalTeeCount(v=v):
            return v > 0
        case _:
            raise ValueError(f"Unknown watch count: {count}")


def adjust(count: WatchCount, axis: Axis, delta: int) -> WatchCount:
    """
    Add delta to the counter observed along axis.

    Axes a kind does not track are left unchanged.

    Raises:
        ValueError: If the counter would become negative
    """
    match count, axis:
        case CornerCount(n=n), _:
            result: WatchCount = replace(count, n=n + delta)
        case CrossCount(h=h), Axis.H:
            result = replace(count, h=h + delta)
        case CrossCount(v=v), Axis.V:
            result = replace(count, v=v + delta)
        case HorizontalTeeCount(h=h), Axis.H:
            result = replace(count, h=h + delta)
        case VerticalTeeCount(v=v), Axis.V:
            result = replace(count, v=v + delta)
        case (HorizontalTeeCount(), Axis.V) | (VerticalTeeCount(), Axis.H):
            return count
        case _:
            raise ValueError(f"Unknown watch count: {count}")

    if any(value < 0 for value in vars(result).values()):
        raise ValueError(f"Watch counter underflow: {count} {axis.value} {delta:+d}")
    return result


class WatchState:
    """Observation counters for every intersection of a city."""

    def __init__(self, kinds: Iterable[IntersectionKind]) -> None:
        self._counts: list[WatchCount] = [fresh_count(kind) for kind in kinds]
        self._unwatched = sum(1 for count in self._counts if not is_watched(count))

    def __len__(self) -> int:
        return len(self._counts)

    def __getitem__(self, index: int) -> WatchCount:
        return self._counts[index]

    def _set(self, index: int, count: WatchCount) -> None:
        # Keep the unwatched tally in step with the counter it replaces
        self._unwatched += is_watched(self._counts[index]) - is_watched(count)
        self._counts[index] = count

    def increment(self, index: int, axis: Axis) -> None:
        self._set(index, adjust(self._counts[index], axis, +1))

    def decrement(self, index: int, axis: Axis) -> None:
        self._set(index, adjust(self._counts[index], axis, -1))

    def is_watched(self, index: int) -> bool:
        return is_watched(self._counts[index])

    def all_watched(self) -> bool:
        return self._unwatched == 0

    def unwatched_count(self) -> int:
        return self._unwatched

    def unwatched(self) -> list[int]:
        """Indices of intersections not yet observed."""
        return [i for i, count in enumerate(self._counts) if not is_watched(count)]

    def snapshot(self) -> tuple[WatchCount, ...]:
        return tuple(self._counts)

    @contextmanager
    def credited(self, credits: Iterable[Credit]) -> Iterator[None]:
        """
        Apply increments for the duration of a with-block.

        Every increment that was applied is reverted on exit, including when
        the block raises or a later increment fails.
        """
        applied: list[Credit] = []
        try:
            for index, axis in credits:
                self.increment(index, axis)
                applied.append((index, axis))
            yield
        finally:
            for index, axis in reversed(applied):
                self.decrement(index, axis)
