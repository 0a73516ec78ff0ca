import random

import pytest

from mines_predictor.grid import MINE, SAFE, generate_grid


def _count(grid, content):
    return sum(1 for row in grid for cell in row if cell == content)


def test_generate_grid_exact_mine_count():
    for size in range(2, 8):
        for mines in (1, size, size * size - 1):
            grid = generate_grid(size, mines)
            assert len(grid) == size
            assert all(len(row) == size for row in grid)
            assert _count(grid, MINE) == mines
            assert _count(grid, SAFE) == size * size - mines


def test_generate_grid_reproducible_with_rng():
    a = generate_grid(5, 3, random.Random(42))
    b = generate_grid(5, 3, random.Random(42))
    assert a == b


def test_generate_grid_rejects_invalid_config():
    with pytest.raises(ValueError):
        generate_grid(0, 1)
    with pytest.raises(ValueError):
        generate_grid(3, 0)
    with pytest.raises(ValueError):
        generate_grid(3, 9)
