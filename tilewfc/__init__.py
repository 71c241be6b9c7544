from .adjacency import AdjacencyStrategy, AdjacencyTable, infer_adjacency
from .catalog import Direction, Tile, TileOrigin, TransformFlags, build_catalog
from .errors import (
    Contradiction,
    EmptyExample,
    NoTilesFound,
    Stalled,
    TileCollapseError,
    Unsolvable,
)
from .wavefunction import SolveState, WaveCell, Wavefunction
from .wvfc import WavefunctionCollapse, solve, validate_grid

__all__ = [
    "AdjacencyStrategy",
    "AdjacencyTable",
    "Contradiction",
    "Direction",
    "EmptyExample",
    "NoTilesFound",
    "SolveState",
    "Stalled",
    "Tile",
    "TileCollapseError",
    "TileOrigin",
    "TransformFlags",
    "Unsolvable",
    "WaveCell",
    "Wavefunction",
    "WavefunctionCollapse",
    "build_catalog",
    "infer_adjacency",
    "solve",
    "validate_grid",
]
