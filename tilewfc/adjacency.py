import itertools
import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Set

import numpy as np
from numpy.typing import NDArray

from .catalog import Direction, Tile
from .errors import EmptyExample

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 12
EMPTY_CELL = -1


class AdjacencyStrategy(Enum):
    PIXEL_MATCH = "pixel"
    EDGE_MATCH = "edge"
    LEARNED_EXAMPLE = "example"


class AdjacencyTable:
    """For every tile id, the ids that may sit on each of its four sides.

    ``allows(a, Direction.NORTH, b)`` means b may be placed directly north of
    a. Every strategy keeps the table symmetric: b north of a implies a south
    of b.
    """

    def __init__(self, tile_count: int) -> None:
        self.rows: List[Dict[Direction, Set[int]]] = [
            {direction: set() for direction in Direction} for _ in range(tile_count)
        ]

    def __len__(self) -> int:
        return len(self.rows)

    def add(self, tile_id: int, direction: Direction, neighbor_id: int) -> None:
        self.rows[tile_id][direction].add(neighbor_id)

    def connect(self, tile_id: int, direction: Direction, neighbor_id: int) -> None:
        """Records one observed adjacency in both directions."""
        self.add(tile_id, direction, neighbor_id)
        self.add(neighbor_id, direction.opposite, tile_id)

    def allowed(self, tile_id: int, direction: Direction) -> Set[int]:
        return self.rows[tile_id][direction]

    def allows(self, tile_id: int, direction: Direction, neighbor_id: int) -> bool:
        return neighbor_id in self.rows[tile_id][direction]

    def is_symmetric(self) -> bool:
        for tile_id, row in enumerate(self.rows):
            for direction, neighbors in row.items():
                for neighbor_id in neighbors:
                    if not self.allows(neighbor_id, direction.opposite, tile_id):
                        return False
        return True

    def describe(self, limit: int = 5) -> Iterator[str]:
        for tile_id, row in enumerate(self.rows[:limit]):
            rules = ", ".join(
                f"{direction.name.lower()}={sorted(row[direction])}"
                for direction in Direction
            )
            yield f"tile {tile_id}: {rules}"


def _pixel_edges_match(
    tile_a: Tile, tile_b: Tile, direction: Direction, tolerance: int
) -> bool:
    edge_a = tile_a.edge(direction).astype(np.int16)
    edge_b = tile_b.edge(direction.opposite).astype(np.int16)
    if edge_a.shape != edge_b.shape:
        return False
    return bool(np.all(np.abs(edge_a - edge_b) <= tolerance))


def _from_pixel_match(tiles: Sequence[Tile], tolerance: int) -> AdjacencyTable:
    """Compares every ordered pair of tiles along every side, allowing each
    channel to differ by up to ``tolerance``. Slow, but forgiving of
    anti-aliased borders."""
    table = AdjacencyTable(len(tiles))
    for tile_a, tile_b in itertools.product(tiles, tiles):
        for direction in Direction:
            if _pixel_edges_match(tile_a, tile_b, direction, tolerance):
                table.add(tile_a.id, direction, tile_b.id)
    return table


def _signatures_match(edge_a: NDArray[np.uint8], edge_b: NDArray[np.uint8]) -> bool:
    # a reversed match lets symmetric connectors join their mirror image
    return np.array_equal(edge_a, edge_b) or np.array_equal(edge_a, edge_b[::-1])


def _from_edge_match(tiles: Sequence[Tile]) -> AdjacencyTable:
    table = AdjacencyTable(len(tiles))
    signatures = {
        tile.id: {direction: tile.edge(direction) for direction in Direction}
        for tile in tiles
    }
    for tile_a, tile_b in itertools.product(tiles, tiles):
        for direction in Direction:
            if _signatures_match(
                signatures[tile_a.id][direction],
                signatures[tile_b.id][direction.opposite],
            ):
                table.add(tile_a.id, direction, tile_b.id)
    return table


def _from_example(example: NDArray[np.int_], tile_count: int) -> AdjacencyTable:
    """Learns rules from a painted grid of tile ids, ``-1`` marking empty
    cells. Only adjacencies that actually occur in the example are legal."""
    table = AdjacencyTable(tile_count)

    def occupied(tile_id: int) -> bool:
        return 0 <= tile_id < tile_count

    rows, columns = example.shape
    for y, x in itertools.product(range(rows), range(columns)):
        current = int(example[y, x])
        if not occupied(current):
            continue
        for direction in Direction:
            dy, dx = direction.value
            ny, nx = y + dy, x + dx
            if not (0 <= ny < rows and 0 <= nx < columns):
                continue
            neighbor = int(example[ny, nx])
            if occupied(neighbor):
                table.connect(current, direction, neighbor)
    return table


def _as_example_grid(example) -> NDArray[np.int_]:
    if example is None:
        raise EmptyExample("learned adjacency needs an example grid")
    grid = np.asarray(example, dtype=np.int64)
    if grid.size == 0:
        raise EmptyExample("example grid has no cells")
    if grid.ndim != 2:
        raise ValueError(f"example grid must be 2-D, got shape {grid.shape}")
    return grid


def infer_adjacency(
    tiles: Sequence[Tile],
    strategy: AdjacencyStrategy = AdjacencyStrategy.EDGE_MATCH,
    example: Optional[NDArray[np.int_]] = None,
    tolerance: int = DEFAULT_TOLERANCE,
) -> AdjacencyTable:
    if strategy is AdjacencyStrategy.PIXEL_MATCH:
        table = _from_pixel_match(tiles, tolerance)
    elif strategy is AdjacencyStrategy.EDGE_MATCH:
        table = _from_edge_match(tiles)
    elif strategy is AdjacencyStrategy.LEARNED_EXAMPLE:
        grid = _as_example_grid(example)
        painted = (grid >= 0) & (grid < len(tiles))
        if not painted.any():
            raise EmptyExample("example grid has no painted cells")
        table = _from_example(grid, len(tiles))
    else:
        raise ValueError(f"unknown adjacency strategy {strategy!r}")

    logger.info(
        "Built %s adjacency table over %d tiles", strategy.value, len(table)
    )
    for line in table.describe():
        logger.debug(line)
    return table
