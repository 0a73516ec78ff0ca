"""
User-facing session: ties the engine, predictions, history and analyzer together.

Analysis requests are stamped with a request id and the round id at issue
time. A response is applied only if both are still current when it arrives,
so a slow reply never lands on a newer board or overwrites a newer request.
"""

import logging
import random
from typing import Dict, List, Optional, Tuple

from .config import PredictorConfig
from .engine import GameState, MinesGame, normalize_config
from .history import HistoryItem, HistoryLog
from .predictions import Prediction, PredictionReconciler, normalize_predictions
from .probability import safe_probability
from .vision import AnalysisCredentialError, Analyzer, OpenAIVisionAnalyzer

logger = logging.getLogger(__name__)

# Directives for the presentation layer after a failed analysis.
SELECT_CREDENTIALS = "select_credentials"
RETRY = "retry"

CREDENTIAL_ERROR_MESSAGE = "API key error. Please select a valid key in the settings."
GENERIC_ERROR_MESSAGE = "AI analysis failed. Check your connection and your API key."
PICKER_UNAVAILABLE_MESSAGE = "API key selection is not available in this environment."
PICKER_FAILED_MESSAGE = "API key selection failed. Please try again."


class PredictorSession:
    """One player's session: the current round plus prediction and history views."""

    def __init__(
        self,
        analyzer: Optional[Analyzer] = None,
        config: Optional[PredictorConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize a session and start its first round.

        Args:
            analyzer: Screenshot analyzer; defaults to OpenAIVisionAnalyzer
                built from the config.
            config: Session settings; defaults to PredictorConfig().
            rng: Optional random source for mine placement.
        """
        self.config: PredictorConfig = config if config is not None else PredictorConfig()
        self.analyzer: Analyzer = (
            analyzer
            if analyzer is not None
            else OpenAIVisionAnalyzer(model=self.config.model, api_key=self.config.api_key)
        )

        self.history = HistoryLog(self.config.history_limit)
        self.predictions = PredictionReconciler()
        self.game = MinesGame(self.history, self.predictions, rng)

        self.grid_size, self.num_mines = normalize_config(
            self.config.grid_size, self.config.num_mines
        )

        self.analysis_text: Optional[str] = None
        self.error_message: Optional[str] = None
        self.directive: Optional[str] = None
        self.notification: Optional[str] = None
        self.is_analyzing: bool = False
        self.show_all: bool = False
        self.settings_open: bool = False

        self._request_id: int = 0

        self.start_new_round()

    # -------------------------------------------------------------------------
    # Read-side views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        if self.game.state is None:
            raise RuntimeError("No round has been started.")
        return self.game.state

    @property
    def confidence(self) -> float:
        return safe_probability(self.game.state)

    def prediction_at(self, r: int, c: int) -> Optional[Prediction]:
        return self.predictions.lookup(r, c, self.state.revealed)

    def history_items(self) -> List[HistoryItem]:
        return self.history.items()

    # -------------------------------------------------------------------------
    # Round control
    # -------------------------------------------------------------------------

    def start_new_round(
        self, size: Optional[int] = None, mines: Optional[int] = None
    ) -> GameState:
        """Start a round with the given (or current) settings, clamped to fit."""
        size = self.grid_size if size is None else size
        mines = self.num_mines if mines is None else mines
        self.grid_size, self.num_mines = normalize_config(size, mines)
        state = self.game.new_game(self.grid_size, self.num_mines)
        self._reset_analysis()
        return state

    def change_grid_size(self, size: int) -> GameState:
        """Switch board size; the mine count only shrinks if it no longer fits."""
        state = self.game.change_grid_size(size, self.num_mines)
        self.grid_size, self.num_mines = state.grid_size, state.num_mines
        self._reset_analysis()
        return state

    def set_mine_count(self, mines: int) -> int:
        """Set the mine count used by the next round, clamped to the current size."""
        _, self.num_mines = normalize_config(self.grid_size, mines)
        return self.num_mines

    def reveal_cell(self, r: int, c: int) -> Tuple[int, Dict[str, object]]:
        return self.game.reveal(r, c)

    def _reset_analysis(self) -> None:
        # Any request still in flight now belongs to a superseded round.
        self._request_id += 1
        self.is_analyzing = False
        self.analysis_text = None
        self.error_message = None
        self.directive = None

    # -------------------------------------------------------------------------
    # AI analysis
    # -------------------------------------------------------------------------

    def _is_stale(self, request_id: int, round_id: int) -> bool:
        return request_id != self._request_id or self.game.round_id != round_id

    async def request_analysis(self, image: str) -> bool:
        """
        Ask the analyzer for predictions on the current board.

        Held predictions are cleared before the call. Collaborator failures
        are translated into error_message and directive; none propagate.

        Args:
            image: Screenshot as a data URL or bare base64 string.

        Returns:
            True if the response was applied to the board, False if it failed
            or was discarded as stale.
        """
        state = self.state
        self._request_id += 1
        request_id = self._request_id
        round_id, grid_size = state.round_id, state.grid_size

        self.predictions.clear()
        self.analysis_text = None
        self.error_message = None
        self.directive = None
        self.notification = None
        self.is_analyzing = True

        try:
            result = await self.analyzer.analyze(image, grid_size)
        except Exception as e:
            if self._is_stale(request_id, round_id):
                logger.debug("Ignoring failure of stale analysis request %d: %s", request_id, e)
                return False
            self.is_analyzing = False
            self._report_failure(e)
            return False

        if self._is_stale(request_id, round_id):
            logger.debug("Discarding stale analysis response for request %d", request_id)
            return False

        self.is_analyzing = False
        predictions = normalize_predictions(
            result.predictions, grid_size, self.state.revealed
        )
        self.predictions.set_predictions(predictions, round_id)
        self.analysis_text = result.analysis_text
        logger.info(
            "Analysis request %d applied %d prediction(s) to round %d",
            request_id,
            len(predictions),
            round_id,
        )
        return True

    def _report_failure(self, error: Exception) -> None:
        if isinstance(error, AnalysisCredentialError):
            logger.warning("Analysis credential error: %s", error)
            self.error_message = CREDENTIAL_ERROR_MESSAGE
            self.directive = SELECT_CREDENTIALS
            self.settings_open = True
        else:
            logger.warning("Analysis failed: %s", error, exc_info=error)
            self.error_message = GENERIC_ERROR_MESSAGE
            self.directive = RETRY

    async def select_credentials(self) -> bool:
        """
        Let the user (re)select an API key through the host's picker.

        Returns:
            True if the picker ran, False if the host offers none or the
            picker failed (a plain notification is set instead).
        """
        picker = self.config.credential_picker
        if picker is None:
            self.notification = PICKER_UNAVAILABLE_MESSAGE
            return False
        try:
            await picker()
        except Exception as e:
            logger.warning("Credential picker failed: %s", e, exc_info=e)
            self.notification = PICKER_FAILED_MESSAGE
            return False
        self.error_message = None
        self.directive = None
        return True

    # -------------------------------------------------------------------------
    # Display toggles (no effect on game state)
    # -------------------------------------------------------------------------

    def toggle_debug_reveal(self) -> bool:
        self.show_all = not self.show_all
        return self.show_all

    def open_settings(self) -> None:
        self.settings_open = True

    def close_settings(self) -> None:
        self.settings_open = False
