from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from block_blast.advisor import MoveAdvisor
from block_blast.game import BlockBlastGame, GameConfig, GameStatistics
from block_blast.logs import setup_logging


logger = logging.getLogger(__name__)


@dataclass
class EpisodeResult:
    seed: int
    stats: GameStatistics
    truncated: bool


def play_episode(game: BlockBlastGame, advisor: MoveAdvisor, seed: int,
                 max_moves: Optional[int] = None) -> EpisodeResult:
    """Play one game greedily with the advisor's best move"""
    game.reset(seed)
    limit = max_moves if max_moves is not None else game.config.max_episode_steps
    moves = 0
    while moves < limit:
        hint = advisor.suggest(game)
        if hint is None:
            break
        outcome = game.try_place(hint.piece_index, hint.row, hint.col)
        if not outcome.accepted:  # pragma: no cover
            raise RuntimeError(f"Advisor suggested an illegal move: {hint}")
        moves += 1
    return EpisodeResult(seed=seed, stats=game.get_statistics(), truncated=moves >= limit)


def evaluate_advisor(episodes: int = 10, seed: int = 0, max_moves: Optional[int] = None,
                     config: Optional[GameConfig] = None) -> List[EpisodeResult]:
    game = BlockBlastGame(config)
    advisor = MoveAdvisor()
    results: List[EpisodeResult] = []
    for ep in range(episodes):
        result = play_episode(game, advisor, seed + ep, max_moves)
        results.append(result)
        logger.debug("Episode %d: score=%d lines=%d pieces=%d", ep + 1, result.stats.score,
                     result.stats.total_lines_cleared, result.stats.total_pieces_placed)

    if results:
        scores = np.array([r.stats.score for r in results], dtype=np.float64)
        lines = np.array([r.stats.total_lines_cleared for r in results], dtype=np.float64)
        pieces = np.array([r.stats.total_pieces_placed for r in results], dtype=np.float64)
        logger.info("Advisor over %d games: score mean=%.1f max=%d, lines mean=%.1f, pieces mean=%.1f",
                    len(results), scores.mean(), int(scores.max()), lines.mean(), pieces.mean())
    return results


def main() -> None:
    p = argparse.ArgumentParser(description="Play games with the heuristic move advisor")
    p.add_argument("--episodes", type=int, default=10)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--max-moves", type=int, default=None)
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()
    setup_logging(args.verbose)
    evaluate_advisor(args.episodes, args.seed, args.max_moves)


if __name__ == "__main__":  # pragma: no cover
    main()
