from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from block_blast.advisor import board_features
from block_blast.game import SHAPE_LIBRARY, BlockBlastGame, GameConfig, library_index


def _compute_action_mask(game: BlockBlastGame) -> np.ndarray:
    size = game.size
    k = game.config.pieces_per_set
    mask = np.zeros((k, size, size), dtype=np.bool_)
    for piece_idx, row, col in game.get_valid_actions():
        if 0 <= piece_idx < k:
            mask[piece_idx, row, col] = True
    return mask


class BlockBlastEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(self, config: Optional[GameConfig] = None, render_mode: Optional[str] = None,
                 reward_weights: Optional[Dict[str, float]] = None,
                 invalid_action_penalty: float = -0.1,
                 step_penalty: float = 0.0,
                 terminal_penalty: float = 0.0) -> None:
        super().__init__()
        self.game = BlockBlastGame(config)
        self.render_mode = render_mode

        # Reward shaping parameters
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.reward_weights: Dict[str, float] = {
            # Positive components
            "cells": 0.05,            # reward per cell placed
            "lines": 10.0,            # reward per line cleared
            "lines_sq": 5.0,          # extra for multiple lines (quadratic)
            "near_complete": 0.2,     # reward lines brought within 1-2 cells of clearing
            # Negative components (penalize increases)
            "isolated": 0.5,          # penalize sealed-off empty cells
        }
        if reward_weights:
            self.reward_weights.update({k: float(v) for k, v in reward_weights.items()})

        size = self.game.config.board_size
        k = self.game.config.pieces_per_set

        # Observation space: grid (0/1) and current pieces (library indices, -1 for empty)
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=0, high=1, shape=(size, size), dtype=np.int8),
                "pieces": spaces.Box(low=-1, high=len(SHAPE_LIBRARY) - 1, shape=(k,), dtype=np.int8),
                "pieces_remaining": spaces.Discrete(k + 1),
            }
        )

        # Action: (piece_idx, row, col)
        self.action_space = spaces.MultiDiscrete((k, size, size))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        k = self.game.config.pieces_per_set
        grid = (self.game.board != 0).astype(np.int8)
        pieces = np.full((k,), -1, dtype=np.int8)
        for i, shape in enumerate(self.game.current_pieces[:k]):
            pieces[i] = library_index(shape)
        obs: Dict[str, Any] = {
            "grid": grid,
            "pieces": pieces,
            "pieces_remaining": len(self.game.current_pieces),
        }
        return obs

    def _get_info(self) -> Dict[str, Any]:
        mask = _compute_action_mask(self.game)
        info: Dict[str, Any] = {
            "action_mask": mask,
            "valid_actions": [tuple(int(v) for v in a) for a in np.argwhere(mask)],
            "score": self.game.score,
            "steps": self._steps,
        }
        return info

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self.game.reset(seed)
        self._steps = 0
        obs = self._get_obs()
        info = self._get_info()
        self._last_obs = obs
        return obs, info

    def step(self, action):
        piece_idx, row, col = map(int, action)

        terminated = False
        truncated = False

        features_before = board_features(self.game.board)

        cells_in_piece = 0
        if 0 <= piece_idx < len(self.game.current_pieces):
            cells_in_piece = self.game.current_pieces[piece_idx].size

        outcome = self.game.try_place(piece_idx, row, col)

        reward_components: Dict[str, float] = {}
        if outcome.accepted:
            features_after = board_features(self.game.board)
            lines = outcome.lines_cleared
            reward_components["cells"] = self.reward_weights["cells"] * float(cells_in_piece)
            reward_components["lines"] = self.reward_weights["lines"] * float(lines)
            reward_components["lines_sq"] = self.reward_weights["lines_sq"] * float(lines * lines)
            reward_components["near_complete"] = self.reward_weights["near_complete"] * float(
                features_after["near_complete_lines"] - features_before["near_complete_lines"])
            reward_components["isolated"] = -self.reward_weights["isolated"] * float(
                max(0, features_after["isolated_cells"] - features_before["isolated_cells"]))
        else:
            reward_components["invalid"] = self.invalid_action_penalty

        reward_components["step"] = self.step_penalty
        terminated = bool(self.game.is_game_over())
        self._steps += 1
        if self._steps >= self.game.config.max_episode_steps:
            truncated = True
        if terminated:
            reward_components["terminal"] = self.terminal_penalty

        reward = float(sum(reward_components.values()))

        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(outcome.score_delta)
        info["lines_cleared"] = outcome.lines_cleared
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode == "rgb_array":
            grid = self._last_obs["grid"] if self._last_obs is not None else self.game.board
            cell = 12
            h, w = grid.shape
            img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
            for y in range(h):
                for x in range(w):
                    color = (70, 200, 120) if grid[y, x] else (30, 30, 36)
                    img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
            return img
        # human rendering lives in block_blast.visualization
        return None

    def close(self) -> None:
        pass
