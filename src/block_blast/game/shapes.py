from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np


Coordinate = Tuple[int, int]
ShapeKey = Tuple[Coordinate, ...]


def normalize_shape(cells: Iterable[Coordinate]) -> ShapeKey:
    """Translate offsets so the minimum row and column are both 0.

    Duplicates are dropped and the result is sorted, so normalizing an
    already-normalized shape returns it unchanged.
    """
    unique = {(int(r), int(c)) for r, c in cells}
    if not unique:
        return ()
    min_row = min(r for r, _ in unique)
    min_col = min(c for _, c in unique)
    return tuple(sorted((r - min_row, c - min_col) for r, c in unique))


@dataclass(frozen=True)
class Shape:
    """A placeable figure: normalized (row, col) offsets from its origin."""

    cells: ShapeKey
    name: str = field(default="", compare=False)

    @classmethod
    def from_cells(cls, cells: Iterable[Coordinate], name: str = "") -> "Shape":
        normalized = normalize_shape(cells)
        if not normalized:
            raise ValueError("Shape needs at least one cell")
        return cls(normalized, name)

    @property
    def size(self) -> int:
        return len(self.cells)

    @property
    def height(self) -> int:
        return max(r for r, _ in self.cells) + 1

    @property
    def width(self) -> int:
        return max(c for _, c in self.cells) + 1

    def dimensions(self) -> Tuple[int, int]:
        """(height, width) of the bounding box"""
        return self.height, self.width

    def key(self) -> ShapeKey:
        return self.cells

    def cells_at(self, row: int, col: int) -> List[Coordinate]:
        return [(row + dr, col + dc) for dr, dc in self.cells]

    def as_array(self) -> np.ndarray:
        arr = np.zeros((self.height, self.width), dtype=np.int8)
        for r, c in self.cells:
            arr[r, c] = 1
        return arr

    def __len__(self) -> int:
        return len(self.cells)


def shape_key(shape: Shape | Iterable[Coordinate]) -> ShapeKey:
    if isinstance(shape, Shape):
        return shape.key()
    return normalize_shape(shape)


def same_set(set_a: Sequence[Shape], set_b: Sequence[Shape]) -> bool:
    """Order-insensitive equality of two piece sets.

    An empty set never matches, so an empty previous set cannot block a draw.
    """
    if len(set_a) != len(set_b) or not set_a:
        return False
    return sorted(shape_key(s) for s in set_a) == sorted(shape_key(s) for s in set_b)


def _shape(name: str, *cells: Coordinate) -> Shape:
    return Shape.from_cells(cells, name)


SHAPE_LIBRARY: Tuple[Shape, ...] = (
    _shape("single", (0, 0)),
    _shape("domino_h", (0, 0), (0, 1)),
    _shape("domino_v", (0, 0), (1, 0)),
    _shape("line3_h", (0, 0), (0, 1), (0, 2)),
    _shape("line3_v", (0, 0), (1, 0), (2, 0)),
    _shape("small_l", (0, 0), (1, 0), (0, 1)),
    _shape("corner", (0, 0), (0, 1), (1, 1)),
    _shape("square2", (0, 0), (0, 1), (1, 0), (1, 1)),
    _shape("line4_h", (0, 0), (0, 1), (0, 2), (0, 3)),
    _shape("line4_v", (0, 0), (1, 0), (2, 0), (3, 0)),
    _shape("t4", (0, 0), (1, 0), (2, 0), (1, 1)),
    _shape("l4", (0, 0), (1, 0), (2, 0), (0, 1)),
    _shape("l4_reverse", (0, 0), (1, 0), (2, 0), (2, 1)),
    _shape("line5_h", (0, 0), (0, 1), (0, 2), (0, 3), (0, 4)),
    _shape("line5_v", (0, 0), (1, 0), (2, 0), (3, 0), (4, 0)),
    _shape("t5", (0, 0), (0, 1), (0, 2), (1, 1), (2, 1)),
    _shape("t5_side", (0, 0), (1, 0), (2, 0), (1, 1), (1, 2)),
    _shape("plus", (0, 1), (1, 0), (1, 1), (1, 2), (2, 1)),
    _shape("rect3x2", (0, 0), (0, 1), (1, 0), (1, 1), (2, 0), (2, 1)),
    _shape("rect2x3", (0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)),
    _shape("hollow3", (0, 0), (0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1), (2, 2)),
    _shape("square3", *[(r, c) for r in range(3) for c in range(3)]),
)

_LIBRARY_INDEX: Dict[ShapeKey, int] = {s.key(): i for i, s in enumerate(SHAPE_LIBRARY)}


def library_index(shape: Shape) -> int:
    """Position of `shape` in SHAPE_LIBRARY, or -1 for a custom shape."""
    return _LIBRARY_INDEX.get(shape.key(), -1)


def draw_shapes(rng: np.random.Generator, count: int,
                library: Sequence[Shape] = SHAPE_LIBRARY) -> List[Shape]:
    """Draw up to `count` shapes without replacement."""
    n = min(int(count), len(library))
    if n <= 0:
        return []
    picks = rng.choice(len(library), size=n, replace=False)
    return [library[int(i)] for i in picks]
