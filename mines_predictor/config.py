"""Session configuration with defaults and environment overrides."""

import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple

from .history import HISTORY_LIMIT

DEFAULT_GRID_SIZE = 5
DEFAULT_NUM_MINES = 3
GRID_SIZE_CHOICES: Tuple[int, ...] = (3, 5, 7)

DEFAULT_MODEL = "gpt-4.1-mini"
API_KEY_ENV = "OPENAI_API_KEY"
MODEL_ENV = "MINES_PREDICTOR_MODEL"

CredentialPicker = Callable[[], Awaitable[None]]


@dataclass
class PredictorConfig:
    """
    Settings resolved once at startup.

    Attributes:
        grid_size: Board size of the first round.
        num_mines: Mine count of the first round.
        grid_sizes: Sizes offered by the front end.
        history_limit: Number of finished rounds kept in memory.
        model: Vision model name used by the default analyzer.
        api_key: Explicit key for the default analyzer; None defers to the
            OPENAI_API_KEY environment variable at call time.
        credential_picker: Host capability that lets the user (re)select a
            key, or None when the host has none.
    """

    grid_size: int = DEFAULT_GRID_SIZE
    num_mines: int = DEFAULT_NUM_MINES
    grid_sizes: Tuple[int, ...] = GRID_SIZE_CHOICES
    history_limit: int = HISTORY_LIMIT
    model: str = DEFAULT_MODEL
    api_key: Optional[str] = field(default=None, repr=False)
    credential_picker: Optional[CredentialPicker] = field(default=None, repr=False)

    @classmethod
    def from_env(cls, **overrides: object) -> "PredictorConfig":
        """Build a config, taking the model name from MINES_PREDICTOR_MODEL if set."""
        values: dict = {"model": os.getenv(MODEL_ENV, DEFAULT_MODEL)}
        values.update(overrides)
        return cls(**values)
