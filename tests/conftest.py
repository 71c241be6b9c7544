"""Shared fixtures: tiny hand-built atlases and adjacency tables."""

import numpy as np
import pytest

from tilewfc.adjacency import AdjacencyTable
from tilewfc.catalog import Direction

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)


def solid(size, colour):
    return np.tile(np.array(colour, dtype=np.uint8), (size, size, 1))


@pytest.fixture
def four_colour_atlas():
    """2x2 atlas of 1px tiles whose colours differ by at most 12 per channel."""
    return np.array(
        [
            [[100, 100, 100, 255], [104, 100, 100, 255]],
            [[100, 108, 100, 255], [100, 100, 112, 255]],
        ],
        dtype=np.uint8,
    )


@pytest.fixture
def arrow_atlas():
    """One 3px tile with no rotational or mirror symmetry."""
    tile = np.zeros((3, 3, 4), dtype=np.uint8)
    tile[..., 3] = 255
    tile[0, 0] = RED
    tile[0, 1] = GREEN
    tile[1, 0] = BLUE
    return tile


@pytest.fixture
def striped_atlas():
    """Two 2px tiles side by side: solid red, and red top row over blue."""
    left = solid(2, RED)
    right = solid(2, RED)
    right[1, :] = BLUE
    return np.concatenate([left, right], axis=1)


@pytest.fixture
def permissive_table():
    """Three tiles, all allowed next to each other on every side."""
    table = AdjacencyTable(3)
    for a in range(3):
        for b in range(3):
            for direction in Direction:
                table.add(a, direction, b)
    return table


@pytest.fixture
def checkerboard_table():
    """Two tiles that may only sit next to the other one."""
    table = AdjacencyTable(2)
    for direction in Direction:
        table.connect(0, direction, 1)
    return table
