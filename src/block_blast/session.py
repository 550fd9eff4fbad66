from __future__ import annotations

"""
Game session: the contract the UI talks to.

Wraps one engine with the move advisor, best score persistence through a
key-value store, sound events and a single level of undo.
"""

import logging
from typing import Optional

from block_blast.advisor import Hint, MoveAdvisor
from block_blast.game import BlockBlastGame, GameSnapshot, GameStatistics, PlaceOutcome
from block_blast.services import AudioService, KeyValueStore, MemoryStore, SoundEffect


logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "high_score"


class GameSession:
    def __init__(self, game: Optional[BlockBlastGame] = None, advisor: Optional[MoveAdvisor] = None,
                 store: Optional[KeyValueStore] = None, audio: Optional[AudioService] = None) -> None:
        self.game = game or BlockBlastGame()
        self.advisor = advisor or MoveAdvisor()
        self.store = store if store is not None else MemoryStore()
        self.audio = audio or AudioService()
        self._undo: Optional[GameSnapshot] = None
        self._game_over_reported = False
        self._beat_best = False

        stored = self.store.get(HIGH_SCORE_KEY, 0)
        try:
            self.game.best_score = max(self.game.best_score, int(stored or 0))
        except (TypeError, ValueError):
            logger.warning("Ignoring unreadable high score %r", stored)
        self.game.add_best_score_listener(self._persist_best)

    @property
    def undo_available(self) -> bool:
        return self._undo is not None

    def _persist_best(self, best: int) -> None:
        self._beat_best = True
        try:
            self.store.set(HIGH_SCORE_KEY, best)
        except Exception:
            logger.exception("Error saving high score %d", best)

    def try_place(self, piece_index: int, row: int, col: int) -> PlaceOutcome:
        before = self.game.snapshot()
        outcome = self.game.try_place(piece_index, row, col)
        if not outcome.accepted:
            self.audio.play(SoundEffect.INVALID_MOVE)
            return outcome

        self._undo = before
        self.audio.play(SoundEffect.PLACE_PIECE)
        if outcome.lines_cleared == 1:
            self.audio.play(SoundEffect.CLEAR_LINE)
        elif outcome.lines_cleared > 1:
            self.audio.play(SoundEffect.CLEAR_COMBO)

        if self.game.is_game_over():
            self._on_game_over()
        return outcome

    def _on_game_over(self) -> None:
        if self._game_over_reported:
            return
        self._game_over_reported = True
        stats = self.game.get_statistics()
        logger.info("Game over: score=%d best=%d lines=%d pieces=%d", stats.score, stats.best_score,
                    stats.total_lines_cleared, stats.total_pieces_placed)
        self.audio.play(SoundEffect.GAME_OVER)
        if self._beat_best:
            self.audio.play(SoundEffect.NEW_HIGH_SCORE)

    def undo(self) -> bool:
        """Revert the last accepted placement. Only one level is kept."""
        if self._undo is None:
            return False
        self.game.restore(self._undo)
        self._undo = None
        self._game_over_reported = False
        return True

    def is_game_over(self) -> bool:
        return self.game.is_game_over()

    def get_statistics(self) -> GameStatistics:
        return self.game.get_statistics()

    def suggest_move(self) -> Optional[Hint]:
        return self.advisor.suggest(self.game)

    def fill_ratio(self) -> float:
        return self.advisor.fill_ratio(self.game.board)

    def reset(self, seed: Optional[int] = None) -> None:
        self.game.reset(seed)
        self._undo = None
        self._game_over_reported = False
        self._beat_best = False
        logger.info("New game (best score %d)", self.game.best_score)
