"""Running "safe next click" statistic derived from board combinatorics."""

from typing import Optional

from .engine import GameState


def safe_probability(state: Optional[GameState]) -> float:
    """
    Percentage of unrevealed cells that are safe.

    Computed as ((total_safe - revealed_safe) / remaining) * 100 where
    remaining is the number of unrevealed cells. Predictions play no part.

    Args:
        state: Current round, or None before the first round.

    Returns:
        A value in [0, 100]; 0.0 when there is no state or no cell remains.
    """
    if state is None:
        return 0.0

    remaining = state.total_cells - state.revealed_count
    if remaining == 0:
        return 0.0

    total_safe = state.total_cells - state.num_mines
    value = (total_safe - state.revealed_safe_count) / remaining * 100
    return min(100.0, max(0.0, value))


def confidence_level(value: float) -> str:
    """Band a safe_probability value as "high" (> 80), "medium" (> 50) or "low"."""
    if value > 80:
        return "high"
    if value > 50:
        return "medium"
    return "low"
