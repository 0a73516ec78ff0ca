"""
Mines Predictor

A single-player Mines game with AI-assisted "safe cell" predictions:
- Grid generation: uniform random mine placement
- Game engine: immutable round state, reveal semantics, win/loss detection
- Probability: running share of safe cells among the unrevealed ones
- Predictions: screenshot-analysis results kept in sync with the live board
- History: the 10 most recent finished rounds
"""

from .engine import GameState, MinesGame, normalize_config, play_cli
from .grid import MINE, SAFE, generate_grid
from .history import HistoryItem, HistoryLog
from .predictions import Prediction, PredictionReconciler, normalize_predictions
from .probability import confidence_level, safe_probability
from .config import PredictorConfig
from .session import PredictorSession
from .vision import (
    AnalysisCredentialError,
    AnalysisError,
    AnalysisGenericError,
    AnalysisResult,
    Analyzer,
    OpenAIVisionAnalyzer,
    encode_image,
    load_image,
)
from .analysis import (
    plot_confidence_trajectory,
    run_random_round,
    run_random_rounds,
    summarize_history,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "GameState",
    "MinesGame",
    "PredictorSession",
    "PredictorConfig",
    "Prediction",
    "PredictionReconciler",
    "HistoryItem",
    "HistoryLog",
    # Functions
    "generate_grid",
    "normalize_config",
    "normalize_predictions",
    "safe_probability",
    "confidence_level",
    "MINE",
    "SAFE",
    # AI analysis
    "Analyzer",
    "AnalysisResult",
    "AnalysisError",
    "AnalysisCredentialError",
    "AnalysisGenericError",
    "OpenAIVisionAnalyzer",
    "encode_image",
    "load_image",
    # CLI
    "play_cli",
    # Analysis functions
    "run_random_round",
    "run_random_rounds",
    "summarize_history",
    "plot_confidence_trajectory",
]
