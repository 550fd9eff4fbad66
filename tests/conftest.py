from __future__ import annotations

import pytest

from block_blast.game import BlockBlastGame, GameConfig, Shape


@pytest.fixture
def game() -> BlockBlastGame:
    return BlockBlastGame(GameConfig(random_seed=1234))


def make_shape(*cells, name: str = "") -> Shape:
    return Shape.from_cells(cells, name)


@pytest.fixture
def single() -> Shape:
    return make_shape((0, 0), name="single")


@pytest.fixture
def line3() -> Shape:
    return make_shape((0, 0), (0, 1), (0, 2), name="line3_h")
