"""Move advisor for Block Blast.

Read-only evaluation of engine state: ranks legal placements, produces hints
with a confidence value and exposes board features for other consumers.
"""

from .advisor import AdvisorWeights, Hint, Move, MoveAdvisor
from .heuristics import (
    board_features,
    compactness,
    count_isolated_cells,
    count_line_clears,
    count_near_complete_lines,
    fill_ratio,
)

__all__ = [
    "AdvisorWeights",
    "Hint",
    "Move",
    "MoveAdvisor",
    "board_features",
    "compactness",
    "count_isolated_cells",
    "count_line_clears",
    "count_near_complete_lines",
    "fill_ratio",
]
