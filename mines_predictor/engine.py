"""Mines game engine: round state, reveal semantics and win/loss detection."""

import logging
import random
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from .grid import MINE, SAFE, Grid, generate_grid
from .history import LOSS, WIN, HistoryItem, HistoryLog
from .predictions import PredictionReconciler
from .utils import count_cells, make_matrix, replace_cell

logger = logging.getLogger(__name__)

IN_PROGRESS = "IN_PROGRESS"
WON = "WON"
LOST = "LOST"

MIN_GRID_SIZE = 2


def normalize_config(size: int, mines: int) -> Tuple[int, int]:
    """
    Clamp a (size, mines) pair into a playable configuration.

    The size is raised to at least MIN_GRID_SIZE and the mine count is clamped
    into [1, size*size - 1]. Adjustments are logged, never raised.
    """
    new_size = max(MIN_GRID_SIZE, int(size))
    new_mines = min(max(1, int(mines)), new_size * new_size - 1)
    if (new_size, new_mines) != (size, mines):
        logger.debug(
            "Adjusted configuration %sx%s/%s mines to %dx%d/%d mines",
            size,
            size,
            mines,
            new_size,
            new_size,
            new_mines,
        )
    return new_size, new_mines


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of one round. Every transition builds a new instance."""

    grid_size: int
    num_mines: int
    grid: Grid
    revealed: Tuple[Tuple[bool, ...], ...]
    round_id: int
    is_game_over: bool = False
    is_victory: bool = False

    @property
    def status(self) -> str:
        if not self.is_game_over:
            return IN_PROGRESS
        return WON if self.is_victory else LOST

    @property
    def total_cells(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def revealed_count(self) -> int:
        return sum(1 for row in self.revealed for v in row if v)

    @property
    def revealed_safe_count(self) -> int:
        return count_cells(self.grid, SAFE, self.revealed, True)


class MinesGame:
    """Owner of the authoritative GameState for a session."""

    def __init__(
        self,
        history: Optional[HistoryLog] = None,
        predictions: Optional[PredictionReconciler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize an engine with no round in progress.

        Args:
            history: Log receiving one item per finished round.
            predictions: Reconciler whose predictions follow the board.
            rng: Optional random source for mine placement.
        """
        self.history: HistoryLog = history if history is not None else HistoryLog()
        self.predictions: PredictionReconciler = (
            predictions if predictions is not None else PredictionReconciler()
        )
        self.rng: Optional[random.Random] = rng
        self.state: Optional[GameState] = None
        self._round_counter: int = 0

    @property
    def round_id(self) -> Optional[int]:
        return self.state.round_id if self.state is not None else None

    def new_game(self, size: int, mines: int) -> GameState:
        """
        Start a new round, clamping the configuration if needed.

        Args:
            size: Board side length.
            mines: Number of mines.

        Returns:
            The fresh GameState.
        """
        size, mines = normalize_config(size, mines)
        self._round_counter += 1

        self.state = GameState(
            grid_size=size,
            num_mines=mines,
            grid=generate_grid(size, mines, self.rng),
            revealed=make_matrix(size, False),
            round_id=self._round_counter,
        )
        self.predictions.on_new_round(self._round_counter)
        logger.info(
            "Round %d started: %dx%d grid, %d mines", self._round_counter, size, size, mines
        )
        return self.state

    def change_grid_size(self, size: int, mines: Optional[int] = None) -> GameState:
        """
        Restart at a new size, keeping the mine count unless it no longer fits.

        Args:
            size: New board side length.
            mines: Mine count to carry over; defaults to the current round's.

        Returns:
            The fresh GameState with min(mines, size*size - 1) mines.
        """
        size = max(MIN_GRID_SIZE, int(size))
        if mines is None:
            mines = self.state.num_mines if self.state is not None else 1
        return self.new_game(size, min(mines, size * size - 1))

    def reveal(self, r: int, c: int) -> Tuple[int, Dict[str, object]]:
        """
        Reveal a single cell and return a status code plus payload.

        Args:
            r: Row of the cell.
            c: Column of the cell.

        Returns:
            Tuple of (status, payload) where status is:
                - -1: Mine hit (loss)
                - 0: Non-terminal reveal (or no-op)
                - 1: Win (all safe cells revealed)

            Payload is empty for a no-op, otherwise it holds "content" (MINE or
            SAFE) and, on a terminal reveal, "history_item".

        Raises:
            ValueError: If coordinates are out of bounds.
        """
        state = self.state
        if state is None:
            return 0, {}

        if r < 0 or r >= state.grid_size or c < 0 or c >= state.grid_size:
            raise ValueError("Cell coordinates are outside the board.")

        if state.is_game_over or state.revealed[r][c]:
            return 0, {}

        revealed = replace_cell(state.revealed, r, c, True)
        self.predictions.on_reveal(r, c)

        content = state.grid[r][c]
        lost = content == MINE
        # Loss takes precedence over the safe-cell count.
        won = not lost and count_cells(state.grid, SAFE, revealed, False) == 0

        self.state = replace(
            state,
            revealed=revealed,
            is_game_over=lost or won,
            is_victory=won,
        )

        payload: Dict[str, object] = {"content": content}
        if not (lost or won):
            return 0, payload

        item = HistoryItem.record(state.grid_size, state.num_mines, WIN if won else LOSS)
        self.history.append(item)
        payload["history_item"] = item
        logger.info("Round %d finished: %s", state.round_id, item.outcome)
        return (1 if won else -1), payload

    # -------------------------------------------------------------------------
    # Display methods
    # -------------------------------------------------------------------------

    _ANSI_RESET = "\033[0m"
    _ANSI_COORD = "\033[96m"
    _ANSI_MINE = "\033[91m"
    _ANSI_HINT = "\033[94m"

    def _c(self, s: str) -> str:
        """Wrap string in coordinate color."""
        return f"{self._ANSI_COORD}{s}{self._ANSI_RESET}"

    def _m(self, s: str) -> str:
        """Wrap string in mine color (red)."""
        return f"{self._ANSI_MINE}{s}{self._ANSI_RESET}"

    def format_board(self, reveal_all: bool = False) -> str:
        """
        Render the board as a multi-line string for terminal display.

        Unrevealed cells carrying a prediction are shown as '*'. Rendering with
        reveal_all never changes the revealed matrix.

        Args:
            reveal_all: If True, show the content of every cell.

        Returns:
            A formatted multi-line string with coordinate labels and the board grid.
        """
        state = self.state
        if state is None:
            return ""
        n = state.grid_size

        def cell_str(r: int, c: int) -> str:
            if reveal_all or state.revealed[r][c]:
                v = state.grid[r][c]
                return self._m(v) if v == MINE else v
            if self.predictions.lookup(r, c, state.revealed) is not None:
                return f"{self._ANSI_HINT}*{self._ANSI_RESET}"
            return "."

        header_cells = " ".join(f"{c:2d}" for c in range(n))
        out = [self._c("   ") + self._c(header_cells)]
        out.append(self._c("   " + "-" * (3 * n - 1)))

        for r in range(n):
            row_cells = " ".join(f" {cell_str(r, c)}" for c in range(n))
            out.append(self._c(f"{r:2d} ") + self._c("|") + row_cells)

        return "\n".join(out)


def play_cli(game: MinesGame, size: int = 5, mines: int = 3) -> None:
    """
    Run a simple terminal UI for playing Mines.

    Args:
        game: Engine to play against. A round is started if none is active.
        size: Board size used when starting a round.
        mines: Mine count used when starting a round.
    """
    if game.state is None or game.state.is_game_over:
        game.new_game(size, mines)

    print("Mines CLI (enter: row col). Coordinates are 0-based. Type 'q' to quit.\n")
    print(game.format_board(reveal_all=False))

    while True:
        s = input("\nMove (row col): ").strip()
        if s.lower() in {"q", "quit", "exit"}:
            print("Quit.")
            return

        parts = s.replace(",", " ").split()
        if len(parts) != 2:
            print("Invalid input. Example: 1 3")
            continue

        try:
            r = int(parts[0])
            c = int(parts[1])
            status, _ = game.reveal(r, c)
        except ValueError:
            print("Invalid input. Coordinates must be integers on the board.")
            continue

        print(f"\nYou decided to reveal ({r}, {c}).\n")
        print(game.format_board(reveal_all=False))

        if status == -1:
            print("\nYou hit a mine. You lost.")
            print("\nFull board:")
            print(game.format_board(reveal_all=True))
            return

        if status == 1:
            print("\nYou revealed all safe cells. You won!")
            print("\nFull board:")
            print(game.format_board(reveal_all=True))
            return
