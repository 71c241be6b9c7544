from typing import Optional, Tuple


class TileCollapseError(Exception):
    pass


class NoTilesFound(TileCollapseError):
    """The source image could not be sliced into a single tile."""


class EmptyExample(TileCollapseError):
    """Learned adjacency was requested from an example with no painted cells."""


class Contradiction(TileCollapseError):
    """A cell ran out of possible tiles during one solve attempt."""

    def __init__(self, message: str, coordinates: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.coordinates = coordinates


class Stalled(TileCollapseError):
    """The main loop hit its iteration bound before every cell collapsed."""

    def __init__(self, message: str, iterations: int):
        super().__init__(message)
        self.iterations = iterations


class Unsolvable(TileCollapseError):
    """Every attempt in the retry budget ended in a contradiction or a stall.

    The last wavefunction is kept around so callers can display how far the
    final attempt got; it is not a valid result.
    """

    def __init__(self, message: str, attempts: int, wavefunction=None):
        super().__init__(message)
        self.attempts = attempts
        self.wavefunction = wavefunction
