from __future__ import annotations

import numpy as np
import pytest

from block_blast.game import (
    SHAPE_LIBRARY,
    BlockBlastGame,
    GameConfig,
    ScoringRules,
    Shape,
    same_set,
)


DOMINO_H = Shape.from_cells([(0, 0), (0, 1)])
DOMINO_V = Shape.from_cells([(0, 0), (1, 0)])
LINE3 = Shape.from_cells([(0, 0), (0, 1), (0, 2)])
SINGLE = Shape.from_cells([(0, 0)])


def test_initial_state(game):
    assert game.board.shape == (8, 8)
    assert not game.board.any()
    assert len(game.current_pieces) == 3
    stats = game.get_statistics()
    assert stats.score == 0
    assert stats.total_pieces_placed == 0
    assert stats.current_combo == 0
    assert stats.pieces_remaining_in_set == 3


def test_config_validation():
    with pytest.raises(ValueError):
        GameConfig(board_size=0)
    with pytest.raises(ValueError):
        GameConfig(pieces_per_set=0)
    with pytest.raises(ValueError):
        GameConfig(max_redraw_attempts=-1)


def test_place_without_clear_scores_base_points(game):
    shape = Shape.from_cells([(0, 0), (0, 1), (1, 0)])
    outcome = game.place(shape, 2, 2, tag=5)
    assert outcome.accepted
    assert outcome.score_delta == 15
    assert outcome.lines_cleared == 0
    assert game.board[2, 2] == game.board[2, 3] == game.board[3, 2] == 5
    assert game.score == 15
    assert game.total_pieces_placed == 1
    assert game.current_combo == 0


def test_placement_round_trip(game):
    shape = SHAPE_LIBRARY[-2]  # hollow square
    game.place(shape, 4, 1, tag=2)
    occupied = {tuple(int(v) for v in rc) for rc in np.argwhere(game.board != 0)}
    assert occupied == set(shape.cells_at(4, 1))


def test_invalid_place_changes_nothing(game):
    before = game.snapshot()
    outcome = game.place(DOMINO_H, 0, 7)
    assert not outcome.accepted
    assert outcome.score_delta == 0
    assert game.score == 0
    assert game.total_pieces_placed == 0
    np.testing.assert_array_equal(game.board, before.board)


def test_non_positive_tag_is_rejected(game):
    assert not game.place(SINGLE, 0, 0, tag=0).accepted
    assert not game.board.any()


@pytest.mark.parametrize("tag", [128, 200, 256])
def test_tag_too_large_for_board_is_rejected(game, tag):
    outcome = game.place(SINGLE, 0, 0, tag=tag)
    assert not outcome.accepted
    assert not game.board.any()
    assert game.total_pieces_placed == 0


def test_largest_tag_is_accepted(game):
    assert game.place(SINGLE, 0, 0, tag=127).accepted
    assert game.board[0, 0] == 127


def test_three_cell_piece_clearing_one_row_scores_95(game):
    game.board[0, 3:] = 1
    outcome = game.place(LINE3, 0, 0)
    assert outcome.accepted
    assert outcome.lines_cleared == 1
    assert outcome.cells_cleared == 8
    assert outcome.score_delta == (15 + 80) * 1 == 95
    assert outcome.combo_count == 1
    assert not game.board[0].any()


def test_combo_multiplier_for_two_rows(game):
    game.board[0:2, 1:] = 1
    outcome = game.place(DOMINO_V, 0, 0)
    # base 10, 16 cells cleared -> 160, two lines -> x2
    assert outcome.lines_cleared == 2
    assert outcome.score_delta == (10 + 160) * 2
    assert game.current_combo == 2
    assert game.total_lines_cleared == 2


def test_intersection_cells_counted_twice_in_score(game):
    # Row 0 and column 0 both complete once (0, 0) is filled
    game.board[0, 1:] = 1
    game.board[1:, 0] = 1
    outcome = game.place(SINGLE, 0, 0)
    assert outcome.rows_cleared == 1
    assert outcome.cols_cleared == 1
    # 15 distinct cells were cleared but 16 are scored
    assert outcome.cells_cleared == 16
    assert outcome.score_delta == (5 + 160) * 2
    assert not game.board.any()


def test_combo_resets_after_non_clearing_placement(game):
    game.board[0, 1:] = 1
    game.place(SINGLE, 0, 0)
    assert game.current_combo == 1
    game.place(SINGLE, 5, 5)
    assert game.current_combo == 0


def test_custom_scoring_rules():
    game = BlockBlastGame(GameConfig(random_seed=0), ScoringRules(placement_points=1, cleared_cell_points=2))
    game.board[0, 1:] = 1
    assert game.place(SINGLE, 0, 0).score_delta == (1 + 16) * 1


def test_try_place_consumes_piece(game):
    first = game.current_pieces[0]
    outcome = game.try_place(0, 0, 0)
    assert outcome.accepted
    assert len(game.current_pieces) == 2
    assert set(first.cells_at(0, 0)) == {tuple(int(v) for v in rc) for rc in np.argwhere(game.board != 0)}
    # Cells carry the piece's slot as colour tag
    r, c = first.cells[0]
    assert game.board[r, c] == 1


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_try_place_rejects_bad_index(game, index):
    outcome = game.try_place(index, 0, 0)
    assert not outcome.accepted
    assert len(game.current_pieces) == 3
    assert not game.board.any()


def test_try_place_rejects_invalid_position(game):
    outcome = game.try_place(0, -1, -1)
    assert not outcome.accepted
    assert len(game.current_pieces) == 3


def test_new_set_drawn_after_last_piece(game):
    game.current_pieces = [SINGLE]
    game.try_place(0, 4, 4)
    assert len(game.current_pieces) == 3


def test_consumed_set_becomes_previous_set(game):
    drawn = list(game.current_pieces)
    while game.current_pieces:
        placed = False
        for row in range(8):
            for col in range(8):
                if game.try_place(0, row, col).accepted:
                    placed = True
                    break
            if placed:
                break
        assert placed
        if len(game.current_pieces) == 3:
            break
    assert game.previous_set == drawn


def test_replenishment_never_repeats_previous_set(game):
    previous = list(game.current_pieces)
    for _ in range(1000):
        game.draw_new_set()
        assert not same_set(game.current_pieces, previous)
        assert game.previous_set == previous
        previous = list(game.current_pieces)


def test_redraw_cap_fails_open():
    # A library of exactly K shapes can only ever produce the same set
    library = SHAPE_LIBRARY[:3]
    game = BlockBlastGame(GameConfig(random_seed=3, max_redraw_attempts=10), library=library)
    first = list(game.current_pieces)
    game.draw_new_set()
    assert same_set(game.current_pieces, first)
    assert len(game.current_pieces) == 3


def test_zero_redraw_attempts_accepts_first_draw():
    game = BlockBlastGame(GameConfig(random_seed=3, max_redraw_attempts=0), library=SHAPE_LIBRARY[:3])
    game.draw_new_set()
    assert len(game.current_pieces) == 3


def _fill_all_but_corner(game):
    game.board[:, :] = 1
    game.board[7, 7] = 0


def test_game_over_when_only_one_cell_free(game):
    _fill_all_but_corner(game)
    game.current_pieces = [DOMINO_H, DOMINO_V, LINE3]
    assert game.is_game_over()
    assert not game.any_move_available()
    assert not game.try_place(0, 7, 6).accepted


def test_single_cell_piece_fits_last_cell(game):
    _fill_all_but_corner(game)
    game.current_pieces = [SINGLE]
    assert not game.is_game_over()


def test_full_board_is_game_over(game):
    assert not game.is_game_over()
    game.board[:, :] = 1
    assert game.is_game_over()


def test_get_valid_actions(game):
    game.current_pieces = [SINGLE]
    game.board[:, :] = 1
    game.board[2, 5] = 0
    assert game.get_valid_actions() == [(0, 2, 5)]


def test_reset_keeps_best_score(game):
    game.board[0, 3:] = 1
    game.place(LINE3, 0, 0)
    game.place(SINGLE, 5, 5)
    assert game.best_score == game.score == 100

    game.reset()
    stats = game.get_statistics()
    assert stats.score == 0
    assert stats.total_lines_cleared == 0
    assert stats.total_pieces_placed == 0
    assert stats.current_combo == 0
    assert stats.best_score == 100
    assert not game.board.any()
    assert len(game.current_pieces) == 3
    assert game.previous_set == []


def test_reset_with_seed_is_reproducible():
    a = BlockBlastGame()
    b = BlockBlastGame()
    a.reset(seed=42)
    b.reset(seed=42)
    assert a.current_pieces == b.current_pieces


def test_best_score_listener(game):
    seen = []
    game.add_best_score_listener(seen.append)
    game.place(SINGLE, 0, 0)
    game.place(SINGLE, 0, 1)
    assert seen == [5, 10]

    game.reset()
    outcome = game.place(SINGLE, 0, 0)
    assert not outcome.new_best
    assert seen == [5, 10]

    game.remove_best_score_listener(seen.append)
    game.reset()
    game.board[0, 1:] = 1
    assert game.place(SINGLE, 0, 0).new_best
    assert seen == [5, 10]


def test_snapshot_is_detached_and_read_only(game):
    snap = game.snapshot()
    game.place(SINGLE, 0, 0)
    assert snap.board[0, 0] == 0
    with pytest.raises(ValueError):
        snap.board[1, 1] = 3


def test_restore_returns_to_snapshot(game):
    snap = game.snapshot()
    game.try_place(0, 0, 0)
    game.restore(snap)
    assert not game.board.any()
    assert game.score == 0
    assert game.total_pieces_placed == 0
    assert tuple(game.current_pieces) == snap.active_set
    # The restored board is writable again
    assert game.place(SINGLE, 0, 0).accepted
