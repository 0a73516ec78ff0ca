"""
Quickstart example for the Mines Predictor.

This script demonstrates basic usage of the engine, a fake analyzer and the
benchmarking helpers.
"""

import asyncio
import random

from mines_predictor import (
    AnalysisResult,
    PredictorSession,
    run_random_rounds,
    summarize_history,
)
from mines_predictor.grid import SAFE


class CornerAnalyzer:
    """Offline analyzer that always suggests the four corners."""

    async def analyze(self, image: str, grid_size: int) -> AnalysisResult:
        last = grid_size - 1
        corners = [(0, 0), (0, last), (last, 0), (last, last)]
        return AnalysisResult(
            analysis_text="Corner pattern.",
            predictions=[{"r": r, "c": c, "p": 80, "reason": "corner"} for r, c in corners],
        )


def main():
    print("=" * 60)
    print("Mines Predictor - Quickstart Example")
    print("=" * 60)

    # Example 1: Play a round with predictions
    print("\n1. Playing a 5x5 round with 3 mines...")
    print("-" * 60)

    session = PredictorSession(analyzer=CornerAnalyzer(), rng=random.Random(7))
    asyncio.run(session.request_analysis("data:image/jpeg;base64,"))
    print(f"Analysis: {session.analysis_text}")
    print(f"Predictions: {len(session.predictions)}")
    print(session.game.format_board())

    state = session.state
    for r in range(state.grid_size):
        for c in range(state.grid_size):
            if state.grid[r][c] == SAFE:
                session.reveal_cell(r, c)
                print(f"Revealed ({r}, {c}); confidence now {session.confidence:.1f}%")

    print(f"Result: {session.state.status}")
    print(session.game.format_board(reveal_all=True))

    # Example 2: History summary
    print("\n2. History summary:")
    print("-" * 60)
    print(summarize_history(session.history))

    # Example 3: Random play statistics
    print("\n3. Win rates of random play (200 rounds each)...")
    print("-" * 60)

    for size, mines in [(3, 1), (5, 3), (7, 5)]:
        results = run_random_rounds(size, mines, runs=200, seed=0)
        print(
            f"{size}x{size}, {mines:2d} mines: {results['win_rate']*100:5.1f}% win rate, "
            f"{results['avg_reveal_moves_count']:.1f} reveals on average"
        )

    print("\n" + "=" * 60)
    print("Done!")
    print("=" * 60)


if __name__ == "__main__":
    main()
