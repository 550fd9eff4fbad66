"""Game module for Block Blast.

Exports the core game engine and supporting classes:
- Shape / SHAPE_LIBRARY: Normalized piece shapes and the fixed catalogue
- GameGrid: Grid representation and row/column clearing
- ScoringRules: Placement and line clear scoring
- BlockBlastGame: Piece sets, placement, statistics and game over detection
"""

from .shapes import SHAPE_LIBRARY, Shape, draw_shapes, library_index, normalize_shape, same_set, shape_key
from .grid import ClearResult, GameGrid, can_place_on
from .rules import ScoringRules
from .core import BlockBlastGame, GameConfig, GameSnapshot, GameStatistics, PlaceOutcome

__all__ = [
    "SHAPE_LIBRARY",
    "Shape",
    "draw_shapes",
    "library_index",
    "normalize_shape",
    "same_set",
    "shape_key",
    "ClearResult",
    "GameGrid",
    "can_place_on",
    "ScoringRules",
    "BlockBlastGame",
    "GameConfig",
    "GameSnapshot",
    "GameStatistics",
    "PlaceOutcome",
]
