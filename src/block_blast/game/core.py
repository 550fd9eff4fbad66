from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .grid import ClearResult, GameGrid
from .rules import ScoringRules
from .shapes import SHAPE_LIBRARY, Shape, draw_shapes, same_set


logger = logging.getLogger(__name__)

BestScoreListener = Callable[[int], None]


@dataclass
class GameConfig:
    """Configuration for a block blast game"""
    board_size: int = 8
    pieces_per_set: int = 3
    max_redraw_attempts: int = 10
    random_seed: Optional[int] = None
    max_episode_steps: int = 10000

    def __post_init__(self) -> None:
        if self.board_size <= 0:
            raise ValueError(f"board_size must be positive, got {self.board_size}")
        if self.pieces_per_set <= 0:
            raise ValueError(f"pieces_per_set must be positive, got {self.pieces_per_set}")
        if self.max_redraw_attempts < 0:
            raise ValueError(f"max_redraw_attempts must be >= 0, got {self.max_redraw_attempts}")


@dataclass(frozen=True)
class PlaceOutcome:
    accepted: bool
    lines_cleared: int = 0
    combo_count: int = 0
    score_delta: int = 0
    rows_cleared: int = 0
    cols_cleared: int = 0
    cells_cleared: int = 0
    new_best: bool = False

    @classmethod
    def rejected(cls) -> "PlaceOutcome":
        return cls(accepted=False)


@dataclass(frozen=True)
class GameStatistics:
    score: int = 0
    best_score: int = 0
    total_lines_cleared: int = 0
    total_pieces_placed: int = 0
    current_combo: int = 0
    pieces_remaining_in_set: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True, eq=False)
class GameSnapshot:
    """Detached copy of a game's state. The board is read-only."""
    board: np.ndarray
    active_set: Tuple[Shape, ...]
    previous_set: Tuple[Shape, ...]
    drawn_set: Tuple[Shape, ...]
    statistics: GameStatistics = field(default_factory=GameStatistics)


class BlockBlastGame:
    """Game engine: board, piece sets, placement, line clears and scoring."""

    def __init__(self, config: Optional[GameConfig] = None, rules: Optional[ScoringRules] = None,
                 library: Sequence[Shape] = SHAPE_LIBRARY) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.library: Tuple[Shape, ...] = tuple(library)
        self.rng = np.random.default_rng(self.config.random_seed)
        self.grid = GameGrid(self.config.board_size)

        # Piece sets
        self.current_pieces: List[Shape] = []
        self.previous_set: List[Shape] = []
        self._drawn_set: List[Shape] = []

        # Statistics
        self.score = 0
        self.best_score = 0
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.current_combo = 0

        self._best_listeners: List[BestScoreListener] = []

        self.draw_new_set()

    @property
    def board(self) -> np.ndarray:
        return self.grid.grid

    @property
    def size(self) -> int:
        return self.grid.size

    # ---------- Piece sets ----------
    def _sample_set(self) -> List[Shape]:
        return draw_shapes(self.rng, self.config.pieces_per_set, self.library)

    def draw_new_set(self) -> None:
        """Replace the active set with a fresh draw.

        The outgoing set, as originally drawn, becomes the previous set. A draw
        identical to it is redrawn up to `max_redraw_attempts` times and then
        accepted anyway.
        """
        self.previous_set = list(self._drawn_set)
        new_set = self._sample_set()
        retries = 0
        while same_set(new_set, self.previous_set) and retries < self.config.max_redraw_attempts:
            new_set = self._sample_set()
            retries += 1
        if retries and same_set(new_set, self.previous_set):
            logger.debug("Accepting repeated piece set after %d redraws", retries)
        self._drawn_set = list(new_set)
        self.current_pieces = list(new_set)
        logger.debug("New piece set: %s", [s.name for s in new_set])

    # ---------- Placement ----------
    def can_place(self, shape: Shape, row: int, col: int) -> bool:
        return self.grid.can_place(shape, row, col)

    def place(self, shape: Shape, row: int, col: int, tag: int = 1) -> PlaceOutcome:
        """Place an arbitrary shape, clear lines and score the move.

        Does not touch the active set. Returns a rejected outcome and leaves
        all state unchanged when the shape does not fit or `tag` is not a
        positive value the board dtype can hold.
        """
        if not 0 < tag <= np.iinfo(self.board.dtype).max or not self.can_place(shape, row, col):
            return PlaceOutcome.rejected()

        cells = self.grid.place(shape, row, col, tag)
        self.total_pieces_placed += 1
        cleared = self.grid.clear_lines()
        gained = self.rules.score_for_placement(cells, cleared)
        self.score += gained
        self.total_lines_cleared += cleared.total
        self.current_combo = cleared.total
        new_best = self._update_best_score()
        return self._outcome(gained, cleared, new_best)

    def _outcome(self, gained: int, cleared: ClearResult, new_best: bool) -> PlaceOutcome:
        return PlaceOutcome(
            accepted=True,
            lines_cleared=cleared.total,
            combo_count=self.current_combo,
            score_delta=gained,
            rows_cleared=cleared.rows,
            cols_cleared=cleared.cols,
            cells_cleared=cleared.cells_cleared,
            new_best=new_best,
        )

    def try_place(self, piece_index: int, row: int, col: int) -> PlaceOutcome:
        """Place piece `piece_index` of the active set with its origin at (row, col)"""
        if piece_index < 0 or piece_index >= len(self.current_pieces):
            return PlaceOutcome.rejected()
        shape = self.current_pieces[piece_index]
        outcome = self.place(shape, row, col, tag=piece_index + 1)
        if not outcome.accepted:
            return outcome
        self.current_pieces.pop(piece_index)
        if not self.current_pieces:
            self.draw_new_set()
        return outcome

    def get_valid_actions(self) -> List[Tuple[int, int, int]]:
        """List of (piece_idx, row, col) valid actions"""
        actions: List[Tuple[int, int, int]] = []
        for piece_idx, shape in enumerate(self.current_pieces):
            for row in range(self.size):
                for col in range(self.size):
                    if self.can_place(shape, row, col):
                        actions.append((piece_idx, row, col))
        return actions

    def any_move_available(self) -> bool:
        for shape in self.current_pieces:
            for row in range(self.size):
                for col in range(self.size):
                    if self.can_place(shape, row, col):
                        return True
        return False

    def is_game_over(self) -> bool:
        return not self.any_move_available()

    # ---------- Best score ----------
    def add_best_score_listener(self, listener: BestScoreListener) -> None:
        self._best_listeners.append(listener)

    def remove_best_score_listener(self, listener: BestScoreListener) -> None:
        if listener in self._best_listeners:
            self._best_listeners.remove(listener)

    def _update_best_score(self) -> bool:
        if self.score <= self.best_score:
            return False
        self.best_score = self.score
        for listener in list(self._best_listeners):
            listener(self.best_score)
        return True

    # ---------- State ----------
    def get_statistics(self) -> GameStatistics:
        return GameStatistics(
            score=self.score,
            best_score=self.best_score,
            total_lines_cleared=self.total_lines_cleared,
            total_pieces_placed=self.total_pieces_placed,
            current_combo=self.current_combo,
            pieces_remaining_in_set=len(self.current_pieces),
        )

    def snapshot(self) -> GameSnapshot:
        board = self.grid.grid.copy()
        board.setflags(write=False)
        return GameSnapshot(
            board=board,
            active_set=tuple(self.current_pieces),
            previous_set=tuple(self.previous_set),
            drawn_set=tuple(self._drawn_set),
            statistics=self.get_statistics(),
        )

    def restore(self, snapshot: GameSnapshot) -> None:
        """Return to a snapshot's state. The best score is never rolled back."""
        if snapshot.board.shape != self.grid.grid.shape:
            raise ValueError(
                f"Snapshot board {snapshot.board.shape} does not match {self.grid.grid.shape}")
        self.grid.grid = np.array(snapshot.board, dtype=np.int8, copy=True)
        self.current_pieces = list(snapshot.active_set)
        self.previous_set = list(snapshot.previous_set)
        self._drawn_set = list(snapshot.drawn_set)
        stats = snapshot.statistics
        self.score = stats.score
        self.total_lines_cleared = stats.total_lines_cleared
        self.total_pieces_placed = stats.total_pieces_placed
        self.current_combo = stats.current_combo

    def get_state(self) -> dict:
        return {
            "grid": self.grid.grid.copy(),
            "current_pieces": [s.name for s in self.current_pieces],
            "pieces_remaining": len(self.current_pieces),
            "score": self.score,
            "best_score": self.best_score,
            "total_lines_cleared": self.total_lines_cleared,
            "total_pieces_placed": self.total_pieces_placed,
            "current_combo": self.current_combo,
            "filled_ratio": self.grid.filled_ratio(),
        }

    def reset(self, seed: Optional[int] = None) -> None:
        """Start a new game. The best score is kept."""
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.grid.reset()
        self.current_pieces = []
        self.previous_set = []
        self._drawn_set = []
        self.score = 0
        self.total_lines_cleared = 0
        self.total_pieces_placed = 0
        self.current_combo = 0
        self.draw_new_set()
