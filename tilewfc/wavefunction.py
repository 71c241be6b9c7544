import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Generator, List, Optional, Sequence, Set, Tuple, TypeVar

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from .adjacency import AdjacencyTable
from .catalog import Direction
from .errors import Contradiction, Stalled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SolveState(Enum):
    UNINITIALIZED = "uninitialized"
    SEEDED = "seeded"
    PROPAGATING = "propagating"
    SOLVED = "solved"
    CONTRADICTED = "contradicted"
    STALLED = "stalled"


@dataclass
class WaveCell:
    image_coordinates: Tuple[int, int]
    domain: Set[int]
    collapsed: bool = False
    resolved: Optional[int] = None

    @property
    def entropy(self) -> int:
        return len(self.domain)

    def collapse(self, tile_id: int) -> None:
        if self.collapsed:
            raise ValueError(f"cell {self.image_coordinates} is already collapsed")
        if tile_id not in self.domain:
            raise ValueError(
                f"tile {tile_id} is not possible at {self.image_coordinates}"
            )
        self.domain = {tile_id}
        self.collapsed = True
        self.resolved = tile_id

    def restrict(self, allowed: Set[int]) -> bool:
        """Drops every possibility outside ``allowed``. Returns whether the
        domain shrank."""
        remaining = self.domain & allowed
        if len(remaining) == len(self.domain):
            return False
        self.domain = remaining
        return True


class Wavefunction:
    """
    One solve attempt over a height x width grid.

    Cells live in a grid graph keyed by (y, x) coordinates. Every cell starts
    with the full set of tile ids. ``observe`` collapses a random cell among
    the lowest-entropy ones and ``propagate`` pushes the consequences outwards
    until nothing else shrinks. A caller that wants to interleave work can
    drive those two steps itself; ``run`` simply loops over them.

    There is no backtracking. An emptied domain raises ``Contradiction`` and
    the attempt is over, a new ``Wavefunction`` is needed to try again.
    """

    def __init__(
        self,
        dimensions: Tuple[int, int],
        tile_count: int,
        adjacency: AdjacencyTable,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        height, width = dimensions
        if height <= 0 or width <= 0:
            raise ValueError(f"grid dimensions must be positive, got {dimensions}")
        if tile_count <= 0:
            raise ValueError("cannot solve with an empty tile catalog")
        if len(adjacency) != tile_count:
            raise ValueError(
                f"adjacency table covers {len(adjacency)} tiles, expected {tile_count}"
            )
        # height, width
        self.dimensions = dimensions
        self.tile_count = tile_count
        self.adjacency = adjacency
        self.rng = rng if rng is not None else np.random.default_rng()
        self.cells = nx.Graph()
        # most recent last; the newest one is where propagation starts
        self.observed_cells: List[Tuple[int, int]] = []
        self.state = SolveState.UNINITIALIZED
        self._make_cell_graph()

    def _make_cell_graph(self) -> None:
        height, width = self.dimensions
        for y, x in itertools.product(range(height), range(width)):
            coordinate = (y, x)
            self.cells.add_node(
                coordinate, cell=WaveCell(coordinate, set(range(self.tile_count)))
            )
        for y, x in itertools.product(range(height), range(width)):
            for direction in (Direction.SOUTH, Direction.EAST):
                dy, dx = direction.value
                neighbor = (y + dy, x + dx)
                if neighbor in self.cells:
                    self.cells.add_edge((y, x), neighbor)

    def _choose(self, options: Sequence[T]) -> T:
        return options[int(self.rng.integers(len(options)))]

    def cell_at(self, coordinates: Tuple[int, int]) -> WaveCell:
        return self.cells.nodes[coordinates]["cell"]

    def get_cells(self) -> Generator[WaveCell, None, None]:
        for _, cell in self.cells.nodes.data("cell"):  # type: ignore
            yield cell

    def get_minimum_entropy_uncollapsed_cells(self) -> List[WaveCell]:
        minimum: Optional[int] = None
        candidates: List[WaveCell] = []
        for cell in self.get_cells():
            if cell.collapsed:
                continue
            if cell.entropy == 0:
                self.state = SolveState.CONTRADICTED
                raise Contradiction(
                    f"cell {cell.image_coordinates} has no possibilities left",
                    cell.image_coordinates,
                )
            if minimum is None or cell.entropy < minimum:
                minimum = cell.entropy
                candidates = [cell]
            elif cell.entropy == minimum:
                candidates.append(cell)
        return candidates

    def collapse(
        self, coordinates: Tuple[int, int], tile_id: Optional[int] = None
    ) -> int:
        """Fixes one cell to ``tile_id``, or to a random id from its domain.
        Call ``propagate`` afterwards."""
        cell = self.cell_at(coordinates)
        if tile_id is None:
            tile_id = self._choose(sorted(cell.domain))
        cell.collapse(tile_id)
        self.observed_cells.append(coordinates)
        return tile_id

    def seed(
        self,
        coordinates: Optional[Tuple[int, int]] = None,
        tile_id: Optional[int] = None,
    ) -> Tuple[int, int]:
        """Collapses one cell up front to break the symmetry of a blank grid."""
        if coordinates is None:
            coordinates = self._choose(list(self.cells.nodes))
        elif coordinates not in self.cells:
            raise ValueError(f"seed cell {coordinates} is outside the grid")
        if tile_id is not None and not 0 <= tile_id < self.tile_count:
            raise ValueError(f"seed tile {tile_id} is not in the catalog")
        tile_id = self.collapse(coordinates, tile_id)
        logger.debug("Seeded %s with tile %d", coordinates, tile_id)
        self.propagate()
        self.state = SolveState.SEEDED
        return coordinates

    def observe(self) -> Optional[Tuple[int, int]]:
        """
        Finds the uncollapsed cells of lowest entropy, picks one of them at
        random and collapses it to a random remaining tile. Returns its
        coordinates, or None when every cell is already collapsed.
        """
        candidates = self.get_minimum_entropy_uncollapsed_cells()
        if not candidates:
            self.state = SolveState.SOLVED
            return None
        cell = self._choose(candidates)
        self.collapse(cell.image_coordinates)
        return cell.image_coordinates

    def propagate(self) -> None:
        """
        Starting from the most recently observed cell, narrows the domains of
        uncollapsed neighbours in depth-first order. A neighbour keeps only
        the tiles that at least one tile still possible in the current cell
        allows on that side; if it shrank it is pushed to spread further.
        """
        assert len(self.observed_cells) > 0
        self.state = SolveState.PROPAGATING
        propagation_stack = [self.observed_cells[-1]]
        while len(propagation_stack) > 0:
            propagater_coord = propagation_stack.pop()
            propagater_cell = self.cell_at(propagater_coord)
            for neighbor_coord in self.cells.neighbors(propagater_coord):
                neighbor_cell = self.cell_at(neighbor_coord)
                if neighbor_cell.collapsed:
                    continue
                direction = Direction.between(propagater_coord, neighbor_coord)
                allowed = set().union(
                    *(
                        self.adjacency.allowed(tile_id, direction)
                        for tile_id in propagater_cell.domain
                    )
                )
                if not neighbor_cell.restrict(allowed):
                    continue
                if neighbor_cell.entropy == 0:
                    self.state = SolveState.CONTRADICTED
                    raise Contradiction(
                        f"cell {neighbor_coord} has no possibilities left",
                        neighbor_coord,
                    )
                propagation_stack.append(neighbor_coord)

    def run(self, max_iterations: Optional[int] = None) -> NDArray[np.int64]:
        """Observes and propagates until solved. Gives up with ``Stalled``
        after ``max_iterations`` rounds, twice the cell count by default."""
        height, width = self.dimensions
        if max_iterations is None:
            max_iterations = 2 * height * width
        iterations = 0
        while not self.is_fully_collapsed():
            if iterations >= max_iterations:
                self.state = SolveState.STALLED
                raise Stalled(
                    f"grid not collapsed after {iterations} iterations", iterations
                )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%.1f%% done", self.current_progress() * 100.0)
            self.observe()
            self.propagate()
            iterations += 1
        self.state = SolveState.SOLVED
        return self.resolved_grid()

    def is_fully_collapsed(self) -> bool:
        return all(cell.collapsed for cell in self.get_cells())

    def current_progress(self) -> float:
        collapsed = sum(1 for cell in self.get_cells() if cell.collapsed)
        return collapsed / self.cells.number_of_nodes()

    def domain_sizes(self) -> NDArray[np.int64]:
        sizes = np.zeros(self.dimensions, dtype=np.int64)
        for cell in self.get_cells():
            sizes[cell.image_coordinates] = cell.entropy
        return sizes

    def resolved_grid(self) -> NDArray[np.int64]:
        """Tile id per cell, -1 where a cell has not collapsed."""
        grid = np.full(self.dimensions, -1, dtype=np.int64)
        for cell in self.get_cells():
            if cell.collapsed:
                grid[cell.image_coordinates] = cell.resolved
        return grid
