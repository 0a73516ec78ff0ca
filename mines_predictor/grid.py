"""Random mine layout generation."""

import random
from typing import Optional, Set, Tuple

MINE = "M"
SAFE = "S"

Grid = Tuple[Tuple[str, ...], ...]


def generate_grid(
    size: int, mines: int, rng: Optional[random.Random] = None
) -> Grid:
    """
    Generate a size x size layout with exactly `mines` mines.

    Mines are sampled uniformly without replacement over all cells, so the
    placement never retries on collisions.

    Args:
        size: Board side length, must be > 0.
        mines: Number of mines, must satisfy 1 <= mines <= size*size - 1.
        rng: Optional random source for reproducible layouts.

    Returns:
        Immutable grid of MINE / SAFE cells indexed as grid[r][c].

    Raises:
        ValueError: If size or mines is out of range.
    """
    if size <= 0:
        raise ValueError("size must be positive.")
    total = size * size
    if mines < 1 or mines > total - 1:
        raise ValueError(
            f"mines must be between 1 and {total - 1} for a {size}x{size} grid."
        )

    rng = rng or random
    mine_indices: Set[int] = set(rng.sample(range(total), mines))

    return tuple(
        tuple(MINE if r * size + c in mine_indices else SAFE for c in range(size))
        for r in range(size)
    )
