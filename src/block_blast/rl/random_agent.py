from __future__ import annotations

import argparse
import logging
import random

import gymnasium as gym

from block_blast.env import ENV_ID
from block_blast.logs import setup_logging


logger = logging.getLogger(__name__)


def run_random(steps: int = 200, seed: int | None = None) -> float:
    rng = random.Random(seed)
    env = gym.make(ENV_ID)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    episodes = 0
    for _ in range(steps):
        # Prefer valid actions if available
        valid = info.get("valid_actions", [])
        if valid:
            action = rng.choice(valid)
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        if terminated or truncated:
            episodes += 1
            logger.debug("Episode %d finished with score %d", episodes, info["score"])
            obs, info = env.reset()
    env.close()
    logger.info("Random agent total reward: %.2f over %d finished episodes", total_reward, episodes)
    return total_reward


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()
    setup_logging(args.verbose)
    run_random(args.steps, args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
