"""Gymnasium environments for Block Blast."""

from __future__ import annotations

from gymnasium.envs.registration import register

from .block_blast_env import BlockBlastEnv

ENV_ID = "BlockBlast-8x8-v0"

register(
    id=ENV_ID,
    entry_point="block_blast.env.block_blast_env:BlockBlastEnv",
)

__all__ = ["ENV_ID", "BlockBlastEnv"]
