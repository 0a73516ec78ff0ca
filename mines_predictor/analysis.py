"""Benchmarking and statistics tools for Mines rounds."""

import random
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np

from .engine import MinesGame
from .history import WIN, HistoryLog
from .probability import safe_probability


def run_random_round(
    size: int,
    mines: int,
    *,
    rng: Optional[random.Random] = None,
) -> Dict[str, object]:
    """
    Play one round by revealing unrevealed cells uniformly at random.

    Args:
        size: Board size.
        mines: Number of mines (clamped like any new round).
        rng: Optional random source used for both layout and moves.

    Returns:
        Dict with:
        - status: -1 loss, 1 win
        - reveal_moves_count: number of reveals made
        - confidence_trajectory: safe_probability before each reveal
    """
    rng = rng or random.Random()
    game = MinesGame(rng=rng)
    state = game.new_game(size, mines)

    cells = [(r, c) for r in range(state.grid_size) for c in range(state.grid_size)]
    rng.shuffle(cells)

    trajectory: List[float] = []
    status = 0
    for r, c in cells:
        trajectory.append(safe_probability(game.state))
        status, _ = game.reveal(r, c)
        if status != 0:
            break

    return {
        "status": status,
        "reveal_moves_count": len(trajectory),
        "confidence_trajectory": trajectory,
    }


def run_random_rounds(
    size: int,
    mines: int,
    runs: int,
    *,
    seed: Optional[int] = None,
) -> Dict[str, float]:
    """
    Run many random-play rounds and return averaged metrics plus win rate.

    Args:
        size: Board size.
        mines: Number of mines.
        runs: Number of independent rounds, must be > 0.
        seed: Optional seed for reproducible runs.

    Returns:
        - win_rate
        - avg_reveal_moves_count
        - avg_first_confidence: mean safe_probability before the first reveal
        - avg_last_confidence: mean safe_probability before the final reveal
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    rng = random.Random(seed)
    statuses = np.empty(runs, dtype=np.int8)
    moves = np.empty(runs, dtype=np.int32)
    first = np.empty(runs, dtype=np.float64)
    last = np.empty(runs, dtype=np.float64)

    for i in range(runs):
        result = run_random_round(size, mines, rng=rng)
        trajectory = result["confidence_trajectory"]
        if not isinstance(trajectory, list):  # type: ignore[redundant-expr]
            raise TypeError("Expected confidence_trajectory to be a list.")

        statuses[i] = result["status"]
        moves[i] = result["reveal_moves_count"]
        first[i] = trajectory[0]
        last[i] = trajectory[-1]

    return {
        "win_rate": float(np.mean(statuses == 1)),
        "avg_reveal_moves_count": float(moves.mean()),
        "avg_first_confidence": float(first.mean()),
        "avg_last_confidence": float(last.mean()),
    }


def summarize_history(log: HistoryLog) -> Dict[str, object]:
    """
    Summarize a history log per board configuration.

    Returns:
        The log's overall summary plus "by_config", mapping "NxN/M" labels to
        {"rounds": int, "wins": int}.
    """
    by_config: Dict[str, Dict[str, int]] = {}
    for item in log:
        key = f"{item.grid_size}x{item.grid_size}/{item.num_mines}"
        entry = by_config.setdefault(key, {"rounds": 0, "wins": 0})
        entry["rounds"] += 1
        if item.outcome == WIN:
            entry["wins"] += 1

    out: Dict[str, object] = dict(log.summary())
    out["by_config"] = by_config
    return out


def plot_confidence_trajectory(
    size: int,
    mines: int,
    runs: int,
    *,
    seed: Optional[int] = None,
    show: bool = True,
) -> np.ndarray:
    """
    Plot the mean safe_probability per reveal step over many random rounds.

    Rounds end at different steps; each step is averaged over the rounds
    still running at that point.

    Returns:
        Mean confidence per step (length = longest round).
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    rng = random.Random(seed)
    trajectories = [
        run_random_round(size, mines, rng=rng)["confidence_trajectory"] for _ in range(runs)
    ]
    longest = max(len(t) for t in trajectories)  # type: ignore[arg-type]

    padded = np.full((runs, longest), np.nan)
    for i, t in enumerate(trajectories):
        padded[i, : len(t)] = t  # type: ignore[arg-type]
    means = np.nanmean(padded, axis=0)

    plt.figure()  # type: ignore[misc]
    plt.plot(np.arange(1, longest + 1), means, marker="o")  # type: ignore[misc]
    plt.xlabel("Reveal step")  # type: ignore[misc]
    plt.ylabel("Mean safe probability (%)")  # type: ignore[misc]
    plt.ylim(0.0, 100.0)  # type: ignore[misc]
    plt.title(f"Safe probability by step ({size}x{size}, {mines} mines)")  # type: ignore[misc]
    plt.tight_layout()
    if show:
        plt.show()  # type: ignore[misc]

    return means
