import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .adjacency import (
    DEFAULT_TOLERANCE,
    AdjacencyStrategy,
    AdjacencyTable,
    infer_adjacency,
)
from .catalog import Direction, Tile, TransformFlags, build_catalog
from .errors import Contradiction, Stalled, Unsolvable
from .wavefunction import Wavefunction

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 5


def solve(
    width: int,
    height: int,
    tile_count: int,
    adjacency: AdjacencyTable,
    max_attempts: int = DEFAULT_ATTEMPTS,
    seed: Optional[int] = None,
    seed_cell: Optional[Tuple[int, int]] = None,
    seed_tile: Optional[int] = None,
) -> NDArray[np.int64]:
    """Fills a ``height`` x ``width`` grid with tile ids.

    Every attempt starts from a blank wavefunction seeded at ``seed_cell``
    (a (y, x) pair) with ``seed_tile``, or at a fresh random cell and tile
    when those are not given. Contradictions and stalls only cost an attempt;
    once ``max_attempts`` are spent ``Unsolvable`` is raised with the last
    wavefunction attached.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    rng = np.random.default_rng(seed)
    wvf: Optional[Wavefunction] = None
    for attempt in range(1, max_attempts + 1):
        logger.info("Attempting generation (attempt %d/%d)", attempt, max_attempts)
        wvf = Wavefunction((height, width), tile_count, adjacency, rng)
        try:
            wvf.seed(seed_cell, seed_tile)
            grid = wvf.run()
        except (Contradiction, Stalled) as error:
            logger.warning(
                "Generation failed on attempt %d/%d: %s", attempt, max_attempts, error
            )
            continue
        logger.info("Generation succeeded on attempt %d", attempt)
        return grid
    raise Unsolvable(
        f"ran into too many contradictions ({max_attempts} attempts)",
        max_attempts,
        wvf,
    )


def validate_grid(grid: NDArray[np.int_], adjacency: AdjacencyTable) -> bool:
    """True when every cell is resolved and every pair of neighbours is
    allowed by ``adjacency`` in both directions."""
    height, width = grid.shape
    if (grid < 0).any():
        return False
    for y in range(height):
        for x in range(width):
            for direction in (Direction.SOUTH, Direction.EAST):
                dy, dx = direction.value
                ny, nx = y + dy, x + dx
                if ny >= height or nx >= width:
                    continue
                here, there = int(grid[y, x]), int(grid[ny, nx])
                if not adjacency.allows(here, direction, there):
                    return False
                if not adjacency.allows(there, direction.opposite, here):
                    return False
    return True


def produce_image(grid: NDArray[np.int_], tiles: Sequence[Tile]) -> NDArray[np.uint8]:
    """Paints each resolved cell with its tile. Unresolved cells stay fully
    transparent, so a failed attempt can still be shown."""
    if len(tiles) == 0:
        raise ValueError("cannot draw a grid without tiles")
    size = tiles[0].size
    height, width = grid.shape
    image = np.zeros((height * size, width * size, 4), dtype=np.uint8)
    for y in range(height):
        for x in range(width):
            tile_id = int(grid[y, x])
            if tile_id < 0:
                continue
            image[y * size : (y + 1) * size, x * size : (x + 1) * size] = tiles[
                tile_id
            ].get_ndarray()
    return image


def produce_palette_image(
    tiles: Sequence[Tile], columns: int = 10
) -> NDArray[np.uint8]:
    """Lays the catalog out in id order, ``columns`` tiles per row."""
    columns = max(1, min(columns, len(tiles)))
    rows = -(-len(tiles) // columns)
    grid = np.full((rows, columns), -1, dtype=np.int64)
    grid.flat[: len(tiles)] = [tile.id for tile in tiles]
    return produce_image(grid, tiles)


class WavefunctionCollapse:
    """Runs the whole pipeline on an atlas: catalog, adjacency, solve.
    Returns an image. Does no I/O."""

    def __init__(
        self,
        source_texture: NDArray[np.uint8],
        tile_size: Optional[int] = None,
        transforms: TransformFlags = TransformFlags(),
        strategy: AdjacencyStrategy = AdjacencyStrategy.EDGE_MATCH,
        example: Optional[NDArray[np.int_]] = None,
        tolerance: int = DEFAULT_TOLERANCE,
    ) -> None:
        self.source_texture = source_texture
        self.tiles: List[Tile] = build_catalog(source_texture, tile_size, transforms)
        self.adjacency = infer_adjacency(self.tiles, strategy, example, tolerance)
        self.grid: Optional[NDArray[np.int64]] = None

    def run(
        self,
        requested_dimensions: Tuple[int, int],
        trials: int = DEFAULT_ATTEMPTS,
        seed: Optional[int] = None,
    ) -> NDArray[np.uint8]:
        height, width = requested_dimensions
        self.grid = solve(
            width, height, len(self.tiles), self.adjacency, trials, seed=seed
        )
        return produce_image(self.grid, self.tiles)
