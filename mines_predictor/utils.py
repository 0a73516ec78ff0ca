"""Utility functions for the Mines predictor."""

from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")


def make_matrix(size: int, value: T) -> Tuple[Tuple[T, ...], ...]:
    """
    Build an immutable size x size matrix filled with a single value.

    Args:
        size: Number of rows and columns. Must be positive.
        value: Fill value for every cell.

    Returns:
        A tuple of row tuples.

    Raises:
        ValueError: If size is non-positive.
    """
    if size <= 0:
        raise ValueError("size must be positive.")
    return tuple(tuple(value for _ in range(size)) for _ in range(size))


def replace_cell(
    matrix: Sequence[Sequence[T]], r: int, c: int, value: T
) -> Tuple[Tuple[T, ...], ...]:
    """Return a copy of matrix with cell (r, c) set to value."""
    rows: List[Tuple[T, ...]] = []
    for ri, row in enumerate(matrix):
        if ri == r:
            cells = list(row)
            cells[c] = value
            rows.append(tuple(cells))
        else:
            rows.append(tuple(row))
    return tuple(rows)


def count_cells(
    grid: Sequence[Sequence[str]],
    content: str,
    revealed: Sequence[Sequence[bool]],
    revealed_state: bool,
) -> int:
    """Count cells holding content whose revealed flag equals revealed_state."""
    return sum(
        1
        for r, row in enumerate(grid)
        for c, cell in enumerate(row)
        if cell == content and revealed[r][c] is revealed_state
    )


def cell_label(r: int, c: int) -> str:
    """
    Human-readable label for a cell, column letter then 1-based row.

    (0, 0) -> "A1", (2, 4) -> "E3".
    """
    return f"{chr(ord('A') + c)}{r + 1}"
