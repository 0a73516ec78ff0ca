import random

import pytest

from mines_predictor.engine import IN_PROGRESS, LOST, WON, MinesGame, normalize_config
from mines_predictor.grid import MINE, SAFE
from mines_predictor.history import LOSS, WIN
from mines_predictor.predictions import Prediction


def _cells(state, content):
    return [
        (r, c)
        for r in range(state.grid_size)
        for c in range(state.grid_size)
        if state.grid[r][c] == content
    ]


def test_new_game_initial_state():
    game = MinesGame(rng=random.Random(1))
    state = game.new_game(5, 3)

    assert state.status == IN_PROGRESS
    assert state.grid_size == 5 and state.num_mines == 3
    assert len(_cells(state, MINE)) == 3
    assert state.revealed_count == 0
    assert not state.is_game_over and not state.is_victory


def test_round_ids_increase():
    game = MinesGame()
    first = game.new_game(3, 1).round_id
    second = game.new_game(3, 1).round_id
    assert second > first
    assert game.predictions.round_id == second


def test_reveal_all_safe_cells_wins():
    game = MinesGame(rng=random.Random(3))
    state = game.new_game(3, 1)
    safe = _cells(state, SAFE)
    assert len(safe) == 8

    for r, c in safe[:-1]:
        status, _ = game.reveal(r, c)
        assert status == 0

    status, payload = game.reveal(*safe[-1])
    assert status == 1
    assert game.state.is_game_over and game.state.is_victory
    assert game.state.status == WON
    assert payload["history_item"].outcome == WIN
    assert len(game.history) == 1


def test_reveal_mine_loses():
    game = MinesGame(rng=random.Random(5))
    state = game.new_game(5, 3)
    r, c = _cells(state, MINE)[0]

    status, payload = game.reveal(r, c)

    assert status == -1
    assert game.state.is_game_over and not game.state.is_victory
    assert game.state.status == LOST
    assert payload["content"] == MINE
    items = game.history.items()
    assert len(items) == 1
    assert items[0].outcome == LOSS
    assert (items[0].grid_size, items[0].num_mines) == (5, 3)


def test_loss_takes_precedence_when_only_mine_left():
    game = MinesGame(rng=random.Random(8))
    state = game.new_game(2, 3)
    (safe,) = _cells(state, SAFE)
    mine = _cells(state, MINE)[0]

    status, _ = game.reveal(*mine)
    assert status == -1
    # Terminal: further reveals are ignored.
    assert game.reveal(*safe) == (0, {})
    assert not game.state.revealed[safe[0]][safe[1]]
    assert len(game.history) == 1


def test_reveal_is_idempotent():
    game = MinesGame(rng=random.Random(11))
    state = game.new_game(5, 3)
    r, c = _cells(state, SAFE)[0]

    game.reveal(r, c)
    after_first = game.state
    assert game.reveal(r, c) == (0, {})
    assert game.state is after_first
    assert len(game.history) == 0


def test_reveal_replaces_state():
    game = MinesGame(rng=random.Random(2))
    before = game.new_game(5, 3)
    r, c = _cells(before, SAFE)[0]

    game.reveal(r, c)

    assert game.state is not before
    assert not before.revealed[r][c]
    assert game.state.revealed[r][c]
    assert game.state.grid == before.grid


def test_reveal_out_of_bounds_raises():
    game = MinesGame()
    game.new_game(3, 1)
    with pytest.raises(ValueError):
        game.reveal(3, 0)
    with pytest.raises(ValueError):
        game.reveal(0, -1)


def test_reveal_without_round_is_noop():
    assert MinesGame().reveal(0, 0) == (0, {})


def test_reveal_drops_prediction_for_cell():
    game = MinesGame(rng=random.Random(4))
    state = game.new_game(5, 3)
    game.predictions.set_predictions(
        [Prediction(0, 0, 90, "edge"), Prediction(1, 1, 80, "gap")], state.round_id
    )

    game.reveal(0, 0)

    assert [(p.r, p.c) for p in game.predictions.predictions] == [(1, 1)]


def test_new_game_clears_predictions():
    game = MinesGame()
    state = game.new_game(5, 3)
    game.predictions.set_predictions([Prediction(2, 2, 90)], state.round_id)

    game.new_game(5, 3)

    assert len(game.predictions) == 0


def test_change_grid_size_keeps_mines_when_they_fit():
    game = MinesGame()
    game.new_game(5, 3)
    state = game.change_grid_size(3)
    assert (state.grid_size, state.num_mines) == (3, 3)


def test_change_grid_size_shrinks_mines():
    game = MinesGame()
    game.new_game(5, 20)
    state = game.change_grid_size(3)
    assert (state.grid_size, state.num_mines) == (3, 8)
    assert state.status == IN_PROGRESS


def test_normalize_config_clamps():
    assert normalize_config(3, 0) == (3, 1)
    assert normalize_config(3, 100) == (3, 8)
    assert normalize_config(1, 5) == (2, 3)
    assert normalize_config(5, 3) == (5, 3)


def test_new_game_clamps_instead_of_raising():
    game = MinesGame()
    state = game.new_game(3, 50)
    assert state.num_mines == 8


def test_format_board_reveal_all_keeps_revealed():
    game = MinesGame(rng=random.Random(6))
    state = game.new_game(3, 1)

    hidden = game.format_board()
    shown = game.format_board(reveal_all=True)

    assert "M" not in hidden
    assert "M" in shown
    assert game.state is state
