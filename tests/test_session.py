from __future__ import annotations

import numpy as np
import pytest

from block_blast.game import BlockBlastGame, GameConfig, Shape
from block_blast.services import AudioService, JsonFileStore, MemoryStore, Settings, SoundEffect
from block_blast.session import HIGH_SCORE_KEY, GameSession


SINGLE = Shape.from_cells([(0, 0)])
DOMINO_H = Shape.from_cells([(0, 0), (0, 1)])


class RecordingPlayer:
    def __init__(self) -> None:
        self.played = []

    def __call__(self, effect: SoundEffect) -> None:
        self.played.append(effect)


@pytest.fixture
def player() -> RecordingPlayer:
    return RecordingPlayer()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def session(store, player) -> GameSession:
    game = BlockBlastGame(GameConfig(random_seed=5))
    return GameSession(game, store=store, audio=AudioService(Settings(), player))


def test_loads_best_score_from_store():
    store = MemoryStore({HIGH_SCORE_KEY: 420})
    session = GameSession(BlockBlastGame(GameConfig(random_seed=0)), store=store)
    assert session.get_statistics().best_score == 420


def test_unreadable_best_score_is_ignored():
    session = GameSession(BlockBlastGame(GameConfig(random_seed=0)), store=MemoryStore({HIGH_SCORE_KEY: "abc"}))
    assert session.get_statistics().best_score == 0


def test_new_best_is_persisted(session, store):
    session.game.current_pieces = [SINGLE, SINGLE, SINGLE]
    outcome = session.try_place(0, 0, 0)
    assert outcome.accepted
    assert outcome.new_best
    assert store.get(HIGH_SCORE_KEY) == 5


def test_store_failure_does_not_break_placement(caplog):
    class BrokenStore(MemoryStore):
        def set(self, key, value):
            raise OSError("disk full")

    session = GameSession(BlockBlastGame(GameConfig(random_seed=0)), store=BrokenStore())
    session.game.current_pieces = [SINGLE]
    assert session.try_place(0, 0, 0).accepted
    assert "Error saving high score" in caplog.text


def test_sound_events(session, player):
    session.game.current_pieces = [SINGLE, SINGLE, SINGLE]
    session.try_place(0, -1, 0)
    assert player.played == [SoundEffect.INVALID_MOVE]

    player.played.clear()
    session.game.board[0, 1:] = 1
    session.try_place(0, 0, 0)
    assert player.played == [SoundEffect.PLACE_PIECE, SoundEffect.CLEAR_LINE]

    player.played.clear()
    session.game.board[1, 1:] = 1
    session.game.board[2:, 0] = 1
    session.game.board[0, 0] = 1
    session.try_place(0, 1, 0)
    assert player.played == [SoundEffect.PLACE_PIECE, SoundEffect.CLEAR_COMBO]


def test_muted_audio_plays_nothing(player):
    audio = AudioService(Settings(sound_enabled=False), player)
    audio.play(SoundEffect.PLACE_PIECE)
    assert player.played == []


def test_failing_player_is_logged(caplog):
    def broken(effect):
        raise RuntimeError("no device")

    AudioService(Settings(), broken).play(SoundEffect.GAME_OVER)
    assert "Error playing sound effect" in caplog.text


def test_toggle_sound_saves_settings(store):
    audio = AudioService(Settings.load(store))
    assert audio.toggle_sound(store) is False
    assert Settings.load(store).sound_enabled is False


def test_game_over_sounds_once(session, player):
    game = session.game
    game.board[:, :] = 1
    game.board[7, 6:] = 0
    # Holes that keep every line open and fit no domino
    game.board[7, 0] = game.board[0, 6] = game.board[2, 7] = 0
    game.current_pieces = [DOMINO_H, DOMINO_H]
    assert session.try_place(0, 7, 6).accepted
    assert session.is_game_over()
    assert SoundEffect.GAME_OVER in player.played
    assert SoundEffect.NEW_HIGH_SCORE in player.played

    player.played.clear()
    assert not session.try_place(0, 0, 0).accepted
    assert SoundEffect.GAME_OVER not in player.played


def test_undo_restores_previous_state(session):
    game = session.game
    assert not session.undo_available
    before_board = game.board.copy()
    before_set = list(game.current_pieces)

    assert session.try_place(0, 0, 0).accepted
    assert session.undo_available
    assert session.undo()

    np.testing.assert_array_equal(game.board, before_board)
    assert game.current_pieces == before_set
    assert session.get_statistics().score == 0
    assert session.get_statistics().total_pieces_placed == 0
    # Only one level is kept
    assert not session.undo()


def test_undo_keeps_best_score(session):
    session.game.current_pieces = [SINGLE, SINGLE, SINGLE]
    session.try_place(0, 0, 0)
    session.undo()
    stats = session.get_statistics()
    assert stats.score == 0
    assert stats.best_score == 5


def test_rejected_placement_keeps_undo_slot(session):
    session.try_place(0, 0, 0)
    session.try_place(0, -5, -5)
    assert session.undo_available


def test_suggest_move_and_reset(session):
    hint = session.suggest_move()
    assert hint is not None
    assert session.try_place(hint.piece_index, hint.row, hint.col).accepted

    session.reset()
    assert not session.undo_available
    stats = session.get_statistics()
    assert stats.score == 0
    assert stats.pieces_remaining_in_set == 3
    assert session.fill_ratio() == 0.0


def test_json_store_survives_reopen(tmp_path):
    path = tmp_path / "data" / "settings.json"
    store = JsonFileStore(str(path))
    assert store.get(HIGH_SCORE_KEY) is None
    Settings(sound_enabled=False).save(store)
    store.set(HIGH_SCORE_KEY, 95)

    reopened = JsonFileStore(str(path))
    assert reopened.get(HIGH_SCORE_KEY) == 95
    assert Settings.load(reopened).sound_enabled is False


def test_best_score_persists_across_sessions(tmp_path):
    path = str(tmp_path / "settings.json")
    first = GameSession(BlockBlastGame(GameConfig(random_seed=0)), store=JsonFileStore(path))
    first.game.current_pieces = [SINGLE]
    assert first.try_place(0, 0, 0).accepted

    second = GameSession(BlockBlastGame(GameConfig(random_seed=1)), store=JsonFileStore(path))
    assert second.get_statistics().best_score == 5


def test_corrupt_json_store_starts_empty(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(str(path))
    assert store.get(HIGH_SCORE_KEY) is None
    assert "Ignoring unreadable settings file" in caplog.text
    store.set(HIGH_SCORE_KEY, 10)
    assert JsonFileStore(str(path)).get(HIGH_SCORE_KEY) == 10
