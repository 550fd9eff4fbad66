from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from .shapes import Shape


@dataclass(frozen=True)
class ClearResult:
    rows: int = 0
    cols: int = 0
    total: int = 0
    # (rows + cols) * size: a cell on a cleared row and a cleared column counts twice
    cells_cleared: int = 0


def can_place_on(board: np.ndarray, shape: Shape, row: int, col: int) -> bool:
    size_r, size_c = board.shape
    for dr, dc in shape.cells:
        r = row + dr
        c = col + dc
        if r < 0 or r >= size_r or c < 0 or c >= size_c:
            return False
        if board[r, c] != 0:
            return False
    return True


class GameGrid:
    """Square board for block placement.

    The grid uses 0 for empty cells and positive integers for filled cells.
    The value of a filled cell is a colour tag and carries no other meaning.
    """

    def __init__(self, size: int = 8) -> None:
        if int(size) <= 0:
            raise ValueError(f"Grid size must be positive, got {size}")
        self.size = int(size)
        self.grid = np.zeros((self.size, self.size), dtype=np.int8)

    def reset(self) -> None:
        self.grid.fill(0)

    def is_inside(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def can_place(self, shape: Shape, row: int, col: int) -> bool:
        """Check every cell of `shape` at (row, col) is on the board and empty"""
        return can_place_on(self.grid, shape, row, col)

    def place(self, shape: Shape, row: int, col: int, tag: int = 1) -> int:
        """
        Write `tag` into every cell of the shape and return the cell count.
        Assumes position is already validated
        """
        for r, c in shape.cells_at(row, col):
            self.grid[r, c] = tag
        return shape.size

    def complete_rows(self) -> List[int]:
        return [int(r) for r in np.flatnonzero(np.all(self.grid != 0, axis=1))]

    def complete_cols(self) -> List[int]:
        return [int(c) for c in np.flatnonzero(np.all(self.grid != 0, axis=0))]

    def clear_lines(self) -> ClearResult:
        """Clear complete rows and columns.

        Both directions are judged on the board as it stands before any
        clearing, so a row and a column sharing a cell both clear.
        """
        rows = self.complete_rows()
        cols = self.complete_cols()
        if rows:
            self.grid[rows, :] = 0
        if cols:
            self.grid[:, cols] = 0
        total = len(rows) + len(cols)
        return ClearResult(
            rows=len(rows),
            cols=len(cols),
            total=total,
            cells_cleared=total * self.size,
        )

    def filled_cells(self) -> int:
        return int(np.count_nonzero(self.grid))

    def filled_ratio(self) -> float:
        return self.filled_cells() / float(self.size * self.size)

    def copy(self) -> "GameGrid":
        new_grid = GameGrid(self.size)
        new_grid.grid = self.grid.copy()
        return new_grid
