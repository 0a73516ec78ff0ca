"""Reconciliation of AI "safe cell" predictions against the live board."""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Advisory "likely safe" annotation for one cell."""

    r: int
    c: int
    probability: float
    reason: str = ""


def normalize_predictions(
    raw: Iterable[Any],
    grid_size: int,
    revealed: Optional[Sequence[Sequence[bool]]] = None,
) -> List[Prediction]:
    """
    Convert raw collaborator items into Prediction objects for one board.

    Accepts Prediction instances or mappings with keys r, c, p (or probability)
    and reason. Entries that are malformed, outside the grid, on an already
    revealed cell, or repeat an earlier cell are dropped. Probabilities are
    clamped into [0, 100].

    Args:
        raw: Items returned by the analysis collaborator.
        grid_size: Side length of the board the predictions target.
        revealed: Optional revealed matrix of the current board.

    Returns:
        Predictions in their original order, minus the filtered entries.
    """
    out: List[Prediction] = []
    seen: Set[Tuple[int, int]] = set()

    for item in raw:
        try:
            if isinstance(item, Prediction):
                r, c, p, reason = item.r, item.c, item.probability, item.reason
            elif isinstance(item, Mapping):
                r = item["r"]
                c = item["c"]
                p = item["p"] if "p" in item else item["probability"]
                reason = item.get("reason", "")
            else:
                raise TypeError(f"unsupported prediction item {type(item).__name__}")

            if isinstance(r, bool) or isinstance(c, bool):
                raise TypeError("cell coordinates must be integers")
            if isinstance(r, float) and not r.is_integer():
                raise ValueError("row is not integral")
            if isinstance(c, float) and not c.is_integer():
                raise ValueError("column is not integral")
            r, c, p = int(r), int(c), float(p)
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Dropping malformed prediction %r: %s", item, e)
            continue

        if not (0 <= r < grid_size and 0 <= c < grid_size):
            logger.debug("Dropping out-of-range prediction (%d, %d)", r, c)
            continue
        if revealed is not None and revealed[r][c]:
            logger.debug("Dropping prediction on revealed cell (%d, %d)", r, c)
            continue
        if (r, c) in seen:
            continue
        seen.add((r, c))

        out.append(
            Prediction(
                r=r,
                c=c,
                probability=min(100.0, max(0.0, p)),
                reason=str(reason) if reason is not None else "",
            )
        )

    return out


class PredictionReconciler:
    """
    Holds the prediction set displayed for the current round.

    The set belongs to exactly one round. Predictions tagged with any other
    round id are refused, a reveal filters out its cell, and a new round or a
    new analysis request empties the set.
    """

    def __init__(self) -> None:
        self.round_id: Optional[int] = None
        self._predictions: Tuple[Prediction, ...] = ()

    @property
    def predictions(self) -> Tuple[Prediction, ...]:
        return self._predictions

    def set_predictions(self, predictions: Iterable[Prediction], round_id: int) -> bool:
        """
        Replace the held set wholesale.

        Returns:
            True if applied, False if round_id is not the current round
            (the predictions are discarded).
        """
        if round_id != self.round_id:
            logger.debug(
                "Discarding predictions for round %s (current round %s)",
                round_id,
                self.round_id,
            )
            return False
        self._predictions = tuple(predictions)
        return True

    def on_reveal(self, r: int, c: int) -> None:
        self._predictions = tuple(
            p for p in self._predictions if p.r != r or p.c != c
        )

    def on_new_round(self, round_id: int) -> None:
        self.round_id = round_id
        self._predictions = ()

    def clear(self) -> None:
        self._predictions = ()

    def lookup(
        self,
        r: int,
        c: int,
        revealed: Optional[Sequence[Sequence[bool]]] = None,
    ) -> Optional[Prediction]:
        """Prediction for (r, c), or None if absent or the cell is revealed."""
        if revealed is not None and revealed[r][c]:
            return None
        for p in self._predictions:
            if p.r == r and p.c == c:
                return p
        return None

    def __len__(self) -> int:
        return len(self._predictions)
