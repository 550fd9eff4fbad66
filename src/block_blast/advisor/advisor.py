from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from block_blast.game import BlockBlastGame, Shape, can_place_on

from . import heuristics


@dataclass
class AdvisorWeights:
    """Weights of the move evaluation heuristic"""
    cell: int = 5
    line: int = 100
    combo: int = 50
    isolated: int = 10
    near_complete: int = 25
    compactness: int = 5
    # Raw score mapped to full confidence
    confidence_scale: int = 500


@dataclass(frozen=True)
class Move:
    piece_index: int
    row: int
    col: int
    score: int


@dataclass(frozen=True)
class Hint:
    piece_index: int
    row: int
    col: int
    score: int
    confidence: float


class MoveAdvisor:
    """Ranks every legal placement of the active set by a board heuristic.

    The advisor only ever reads the board it is given; each candidate move is
    simulated on a private copy.
    """

    def __init__(self, weights: Optional[AdvisorWeights] = None) -> None:
        self.weights = weights or AdvisorWeights()

    def score_move(self, board: np.ndarray, shape: Shape, row: int, col: int) -> int:
        """Heuristic value of placing `shape` at (row, col).

        Features are read from the board after placement and before any
        line is cleared.
        """
        w = self.weights
        sim = np.array(board, copy=True)
        for r, c in shape.cells_at(row, col):
            sim[r, c] = 1

        rows, cols = heuristics.count_line_clears(sim)
        lines = rows + cols
        score = shape.size * w.cell
        score += lines * w.line
        if lines > 1:
            score += lines * w.combo
        score -= heuristics.count_isolated_cells(sim) * w.isolated
        score += heuristics.count_near_complete_lines(sim) * w.near_complete
        score += heuristics.compactness(sim) * w.compactness
        return int(score)

    def _scan(self, board: np.ndarray, active_set: Sequence[Shape]) -> List[Move]:
        size_r, size_c = board.shape
        moves: List[Move] = []
        for piece_index, shape in enumerate(active_set):
            for row in range(size_r):
                for col in range(size_c):
                    if can_place_on(board, shape, row, col):
                        score = self.score_move(board, shape, row, col)
                        moves.append(Move(piece_index, row, col, score))
        return moves

    def evaluate(self, board: np.ndarray, active_set: Sequence[Shape]) -> List[Move]:
        """All legal moves, best first. Equal scores keep scan order."""
        moves = self._scan(np.asarray(board), active_set)
        # sorted() is stable
        return sorted(moves, key=lambda m: -m.score)

    def best_move(self, board: np.ndarray, active_set: Sequence[Shape]) -> Optional[Move]:
        best: Optional[Move] = None
        for move in self._scan(np.asarray(board), active_set):
            if best is None or move.score > best.score:
                best = move
        return best

    def confidence(self, score: int) -> float:
        scale = self.weights.confidence_scale
        if score <= 0:
            return 0.0
        if score >= scale:
            return 1.0
        return score / float(scale)

    def suggest(self, game: BlockBlastGame) -> Optional[Hint]:
        snap = game.snapshot()
        move = self.best_move(snap.board, snap.active_set)
        if move is None:
            return None
        return Hint(
            piece_index=move.piece_index,
            row=move.row,
            col=move.col,
            score=move.score,
            confidence=self.confidence(move.score),
        )

    @staticmethod
    def can_survive(game: BlockBlastGame) -> bool:
        return not game.is_game_over()

    @staticmethod
    def fill_ratio(board: np.ndarray) -> float:
        return heuristics.fill_ratio(board)

    @staticmethod
    def board_features(board: np.ndarray) -> dict:
        return heuristics.board_features(board)
