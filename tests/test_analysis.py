import random

import numpy as np
import pytest

from mines_predictor.analysis import (
    plot_confidence_trajectory,
    run_random_round,
    run_random_rounds,
    summarize_history,
)
from mines_predictor.history import LOSS, WIN, HistoryItem, HistoryLog


def test_run_random_round_terminates():
    result = run_random_round(3, 1, rng=random.Random(0))
    assert result["status"] in (-1, 1)
    assert 1 <= result["reveal_moves_count"] <= 9
    assert len(result["confidence_trajectory"]) == result["reveal_moves_count"]
    assert result["confidence_trajectory"][0] == 8 / 9 * 100


def test_run_random_rounds_metrics():
    results = run_random_rounds(3, 1, runs=50, seed=1)
    assert 0.0 <= results["win_rate"] <= 1.0
    assert results["avg_first_confidence"] == pytest.approx(8 / 9 * 100)
    assert 1.0 <= results["avg_reveal_moves_count"] <= 9.0


def test_run_random_rounds_is_reproducible():
    assert run_random_rounds(5, 3, runs=20, seed=4) == run_random_rounds(5, 3, runs=20, seed=4)


def test_summarize_history():
    log = HistoryLog()
    log.append(HistoryItem.record(3, 1, WIN))
    log.append(HistoryItem.record(3, 1, LOSS))
    log.append(HistoryItem.record(5, 3, WIN))

    summary = summarize_history(log)

    assert summary["rounds"] == 3
    assert summary["by_config"] == {
        "3x3/1": {"rounds": 2, "wins": 1},
        "5x5/3": {"rounds": 1, "wins": 1},
    }


def test_plot_confidence_trajectory():
    means = plot_confidence_trajectory(3, 1, runs=10, seed=2, show=False)
    assert isinstance(means, np.ndarray)
    assert np.all((means >= 0.0) & (means <= 100.0))
