"""In-memory log of completed rounds."""

import itertools
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, Iterator, List

WIN = "WIN"
LOSS = "LOSS"

HISTORY_LIMIT = 10

_item_counter = itertools.count(1)


@dataclass(frozen=True)
class HistoryItem:
    """One finished round."""

    id: str
    timestamp: str
    grid_size: int
    num_mines: int
    outcome: str

    @classmethod
    def record(cls, grid_size: int, num_mines: int, outcome: str) -> "HistoryItem":
        """
        Build an item stamped with the current time.

        Ids combine the wall clock in milliseconds with a process-wide counter,
        so two rounds finished within the same millisecond still get distinct ids.
        """
        if outcome not in (WIN, LOSS):
            raise ValueError(f'outcome must be "{WIN}" or "{LOSS}".')
        now = datetime.now()
        return cls(
            id=f"{int(time.time() * 1000)}-{next(_item_counter)}",
            timestamp=now.strftime("%H:%M:%S"),
            grid_size=grid_size,
            num_mines=num_mines,
            outcome=outcome,
        )


class HistoryLog:
    """Most-recent-first log of finished rounds, capped at `limit` entries."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive.")
        self.limit: int = limit
        self._items: Deque[HistoryItem] = deque(maxlen=limit)

    def append(self, item: HistoryItem) -> None:
        """Prepend item; the oldest entry falls off once the cap is reached."""
        self._items.appendleft(item)

    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def summary(self) -> Dict[str, float]:
        """
        Wins, losses and win rate over the retained rounds.

        Returns:
            Dict with keys "rounds", "wins", "losses", "win_rate"
            (win_rate is 0.0 for an empty log).
        """
        wins = sum(1 for item in self._items if item.outcome == WIN)
        rounds = len(self._items)
        return {
            "rounds": rounds,
            "wins": wins,
            "losses": rounds - wins,
            "win_rate": (wins / rounds) if rounds > 0 else 0.0,
        }

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistoryItem]:
        return iter(self._items)
