from __future__ import annotations

from dataclasses import dataclass

from .grid import ClearResult


@dataclass
class ScoringRules:
    placement_points: int = 5
    cleared_cell_points: int = 10

    def base_points(self, piece_cells: int) -> int:
        return piece_cells * self.placement_points

    def score_for_placement(self, piece_cells: int, cleared: ClearResult) -> int:
        base = self.base_points(piece_cells)
        if cleared.total <= 0:
            return base
        clear_points = cleared.cells_cleared * self.cleared_cell_points
        # One line is x1, two lines x2, and so on without a cap
        return (base + clear_points) * cleared.total
