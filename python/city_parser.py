"""
City parsing utilities for the patrol solver.

Provides two parsing formats:
1. Plain-text problem format (size line, start line, then the rows)
2. Concise format with rows separated by | (for tests and demos)
"""

from __future__ import annotations

from city_types import Block, Cell, CityGrid, Position, Road

__all__ = ["parse_city", "parse_city_concise", "parse_row"]


def parse_row(row_str: str, row_idx: int = 0) -> tuple[Cell, ...]:
    """
    Parse one row of single-character cells.

    '#' is a Block, a digit 0-9 is a Road with that cost.
    """
    cells: list[Cell] = []
    for col_idx, char in enumerate(row_str):
        if char == "#":
            cells.append(Block())
        elif char in "0123456789":
            cells.append(Road(int(char)))
        else:
            raise ValueError(
                f"Invalid character '{char}' in city\n"
                f"  Row {row_idx}: \"{row_str}\"\n"
                f"  Position: column {col_idx}\n"
                f"  Valid characters: '#' (block), digits 0-9 (road cost)"
            )
    return tuple(cells)


def _check_square(rows: list[tuple[Cell, ...]], row_strings: list[str], size: int) -> None:
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != size]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths in city\n"
            f"  Expected: {size} columns\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} columns - \"{row_strings[row_idx]}\"\n"
        error_msg += "  The city must be a square grid"
        raise ValueError(error_msg)


def _check_start(grid: CityGrid, start: Position) -> None:
    if not grid.in_bounds(start):
        raise ValueError(
            f"Start ({start.row}, {start.col}) is outside the city\n"
            f"  City size: {grid.rows}x{grid.cols}"
        )
    if not grid.is_road(start):
        raise ValueError(f"Start ({start.row}, {start.col}) is a block")


def parse_city(text: str) -> tuple[CityGrid, Position]:
    """
    Parse a city from the plain-text problem format.

    Format:
    - Line 1: grid side length n
    - Line 2: start row and start column, separated by whitespace
    - Next n lines: n characters each, '#' (block) or '0'-'9' (road cost)

    Example:
        \"\"\"
        3
        1 1
        #1#
        111
        #1#
        \"\"\"

    Args:
        text: The whole input

    Returns:
        (grid, start)

    Raises:
        ValueError: If the header is malformed, the grid is not n x n, a cell
            character is invalid, or the start is not a road cell
    """
    lines = [line.strip() for line in text.strip().splitlines()]
    if len(lines) < 2:
        raise ValueError(
            f"Expected at least 2 header lines, got {len(lines)}\n"
            f"  Line 1: grid size\n"
            f"  Line 2: start row and column"
        )

    try:
        size = int(lines[0])
    except ValueError:
        raise ValueError(f"Invalid grid size on line 1: '{lines[0]}'") from None
    if size <= 0:
        raise ValueError(f"Grid size must be positive, got {size}")

    start_parts = lines[1].split()
    if len(start_parts) != 2 or not all(p.lstrip("-").isdigit() for p in start_parts):
        raise ValueError(
            f"Invalid start on line 2: '{lines[1]}'\n"
            f"  Expected format: 'start_row start_col'"
        )
    start = Position(int(start_parts[0]), int(start_parts[1]))

    row_strings = [line for line in lines[2:] if line]
    if len(row_strings) != size:
        raise ValueError(
            f"Expected {size} grid rows after the header, got {len(row_strings)}"
        )

    rows = [parse_row(row_str, row_idx) for row_idx, row_str in enumerate(row_strings)]
    _check_square(rows, row_strings, size)

    grid = CityGrid(tuple(rows))
    _check_start(grid, start)
    return grid, start


def parse_city_concise(definition: str) -> CityGrid:
    """
    Parse a city from a concise single-line format.

    Rows are separated by |, cells are single characters as in parse_city.
    Surrounding whitespace of each row is ignored.

    Example:
        "#1#|111|#1#"  ->  3x3 city with a cross in the middle
    """
    row_strings = [row.strip() for row in definition.strip().split("|")]
    if not row_strings or not row_strings[0]:
        raise ValueError("Empty city definition")
    rows = [parse_row(row_str, row_idx) for row_idx, row_str in enumerate(row_strings)]
    _check_square(rows, row_strings, len(rows))
    return CityGrid(tuple(rows))
