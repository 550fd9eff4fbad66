from __future__ import annotations

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .block_blast_env import _compute_action_mask


class FlattenDiscreteActionWrapper(gym.ActionWrapper):
    """Flattens MultiDiscrete (pieces, row, col) -> Discrete(N) for PPO.

    Also exposes `get_action_mask()` returning a 1D boolean mask of shape (N,).
    Order: piece, row, col (C-order flattening).

    With `resample_invalid=True` an illegal index is swapped for a uniformly
    drawn legal one before it reaches the env, so vanilla PPO without masking
    still makes progress. `resampled` counts the swaps.
    """

    def __init__(self, env: gym.Env, resample_invalid: bool = False):
        super().__init__(env)
        assert isinstance(env.action_space, spaces.MultiDiscrete)
        k, rows, cols = map(int, env.action_space.nvec)
        assert rows == cols, "Expected square grid"
        self.k = k
        self.size = rows
        self.n = int(k * self.size * self.size)
        self.action_space = spaces.Discrete(self.n)
        self.resample_invalid = resample_invalid
        self.resampled = 0

    def _unflatten(self, idx: int) -> tuple[int, int, int]:
        col = idx % self.size
        idx //= self.size
        row = idx % self.size
        piece = idx // self.size
        return int(piece), int(row), int(col)

    def _legal_index(self, idx: int) -> int:
        mask = self.get_action_mask()
        if 0 <= idx < self.n and mask[idx]:
            return idx
        legal = np.flatnonzero(mask)
        if legal.size == 0:
            # Game over: let the env reject it
            return idx
        self.resampled += 1
        return int(self.np_random.choice(legal))

    def action(self, action: int):  # type: ignore[override]
        idx = int(action)
        if self.resample_invalid:
            idx = self._legal_index(idx)
        return np.array(self._unflatten(idx), dtype=np.int64)

    def get_action_mask(self) -> np.ndarray:
        mask3d = _compute_action_mask(self.env.unwrapped.game)
        return mask3d.reshape(-1)
