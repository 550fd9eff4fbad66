from __future__ import annotations

"""
Board features used by the move advisor.

All functions take a 2D board array (0 = empty) and never modify it.
"""

from typing import Tuple

import numpy as np


def _filled(board: np.ndarray) -> np.ndarray:
    return np.asarray(board) != 0


def neighbor_counts(filled: np.ndarray) -> np.ndarray:
    """Number of filled cells among the 8 neighbours of every cell"""
    h, w = filled.shape
    padded = np.pad(filled.astype(np.int16), 1)
    counts = np.zeros((h, w), dtype=np.int16)
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            counts += padded[1 + dr : 1 + dr + h, 1 + dc : 1 + dc + w]
    return counts


def count_line_clears(board: np.ndarray) -> Tuple[int, int]:
    """(rows, cols) that are completely filled"""
    filled = _filled(board)
    rows = int(np.count_nonzero(np.all(filled, axis=1)))
    cols = int(np.count_nonzero(np.all(filled, axis=0)))
    return rows, cols


def count_isolated_cells(board: np.ndarray) -> int:
    """Interior empty cells whose 8 neighbours are all filled.

    The outermost ring is never counted.
    """
    filled = _filled(board)
    if filled.shape[0] < 3 or filled.shape[1] < 3:
        return 0
    counts = neighbor_counts(filled)
    inner_empty = ~filled[1:-1, 1:-1]
    return int(np.count_nonzero(inner_empty & (counts[1:-1, 1:-1] == 8)))


def count_near_complete_lines(board: np.ndarray) -> int:
    """Rows plus columns missing exactly 1 or 2 cells"""
    empty = ~_filled(board)
    row_empty = empty.sum(axis=1)
    col_empty = empty.sum(axis=0)
    near_rows = np.count_nonzero((row_empty >= 1) & (row_empty <= 2))
    near_cols = np.count_nonzero((col_empty >= 1) & (col_empty <= 2))
    return int(near_rows + near_cols)


def compactness(board: np.ndarray) -> int:
    """Sum over filled cells of their filled neighbours"""
    filled = _filled(board)
    return int(neighbor_counts(filled)[filled].sum())


def fill_ratio(board: np.ndarray) -> float:
    filled = _filled(board)
    return float(np.count_nonzero(filled)) / float(filled.size)


def board_features(board: np.ndarray) -> dict:
    filled = _filled(board)
    rows, cols = count_line_clears(board)
    return {
        "full_rows": rows,
        "full_cols": cols,
        "full_lines": rows + cols,
        "isolated_cells": count_isolated_cells(board),
        "near_complete_lines": count_near_complete_lines(board),
        "compactness": compactness(board),
        "filled_cells": int(np.count_nonzero(filled)),
        "fill_ratio": fill_ratio(board),
        "empty_rows": int(np.count_nonzero(~filled.any(axis=1))),
        "empty_cols": int(np.count_nonzero(~filled.any(axis=0))),
    }
