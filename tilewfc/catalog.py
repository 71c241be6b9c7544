import hashlib
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import NoTilesFound

logger = logging.getLogger(__name__)

TILE_SIZE_CANDIDATES = (8, 12, 16, 24, 32, 48, 64, 96, 128)
ROTATIONS = (90, 180, 270)


class Direction(Enum):
    # (dy, dx) offsets in image coordinates, y grows downwards
    NORTH = (-1, 0)
    EAST = (0, 1)
    SOUTH = (1, 0)
    WEST = (0, -1)

    @property
    def opposite(self) -> "Direction":
        dy, dx = self.value
        return Direction((-dy, -dx))

    @classmethod
    def between(
        cls, source: Tuple[int, int], target: Tuple[int, int]
    ) -> "Direction":
        """Direction you travel in to get from source to an adjacent target."""
        return cls((target[0] - source[0], target[1] - source[1]))


@dataclass(frozen=True)
class TransformFlags:
    rotations: bool = False
    flip_x: bool = False
    flip_y: bool = False


@dataclass(frozen=True)
class TileOrigin:
    column: int
    row: int
    rotation: int = 0
    flip_x: bool = False
    flip_y: bool = False


@dataclass(frozen=True)
class Tile:
    id: int
    hashed_pixels: bytes
    original_shape: Tuple[int, int, int]
    origin: TileOrigin

    @classmethod
    def from_ndarray(cls, tile_id: int, pixels: NDArray[np.uint8], origin: TileOrigin):
        assert pixels.shape[0] == pixels.shape[1], "tiles must be square"
        return cls(
            tile_id,
            np.ascontiguousarray(pixels, dtype=np.uint8).tobytes(),
            (pixels.shape[0], pixels.shape[1], pixels.shape[2]),
            origin,
        )

    @property
    def size(self) -> int:
        return self.original_shape[0]

    def get_ndarray(self) -> NDArray[np.uint8]:
        deserialized = np.frombuffer(self.hashed_pixels, dtype=np.uint8)
        return np.reshape(deserialized, self.original_shape)

    def edge(self, direction: Direction) -> NDArray[np.uint8]:
        """Border pixels on one side. Rows read left to right, columns top to
        bottom, so opposite edges of two neighbours line up index for index.
        """
        pixels = self.get_ndarray()
        if direction is Direction.NORTH:
            return pixels[0, :]
        if direction is Direction.SOUTH:
            return pixels[-1, :]
        if direction is Direction.EAST:
            return pixels[:, -1]
        return pixels[:, 0]


def content_hash(pixels: NDArray[np.uint8]) -> bytes:
    digest = hashlib.blake2b(digest_size=16)
    digest.update(repr(pixels.shape).encode())
    digest.update(np.ascontiguousarray(pixels).tobytes())
    return digest.digest()


def detect_tile_size(width: int, height: int) -> int:
    """Guess the tile edge length of an atlas. A heuristic, callers with a
    known tile size should pass it instead."""
    for size in TILE_SIZE_CANDIDATES:
        if width % size == 0 and height % size == 0:
            return size
    return math.gcd(width, height)


def as_rgba(image: NDArray) -> NDArray[np.uint8]:
    image = np.asarray(image)
    if image.ndim == 2:
        image = np.stack([image] * 3, axis=-1)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"expected an RGB or RGBA image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"expected 8-bit pixel data, got {image.dtype}")
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)
    return image


def rotate(pixels: NDArray[np.uint8], angle: int) -> NDArray[np.uint8]:
    """Clockwise rotation, 90 degrees sends pixel (x, y) to (h - 1 - y, x)."""
    if angle % 90 != 0:
        raise ValueError(f"unsupported rotation {angle}")
    return np.rot90(pixels, k=-(angle // 90), axes=(0, 1))


def flip(pixels: NDArray[np.uint8], axis: str) -> NDArray[np.uint8]:
    if axis == "x":
        return pixels[:, ::-1]
    if axis == "y":
        return pixels[::-1, :]
    raise ValueError(f"unknown flip axis {axis!r}")


def _variants(
    cell: NDArray[np.uint8], column: int, row: int, transforms: TransformFlags
) -> List[Tuple[NDArray[np.uint8], TileOrigin]]:
    variants = [(cell, TileOrigin(column, row))]
    if transforms.rotations:
        for angle in ROTATIONS:
            variants.append((rotate(cell, angle), TileOrigin(column, row, angle)))
    # flips compose with every variant produced before them
    if transforms.flip_x:
        variants += [
            (flip(pixels, "x"), TileOrigin(column, row, origin.rotation, True, False))
            for pixels, origin in list(variants)
        ]
    if transforms.flip_y:
        variants += [
            (
                flip(pixels, "y"),
                TileOrigin(column, row, origin.rotation, origin.flip_x, True),
            )
            for pixels, origin in list(variants)
        ]
    return variants


def build_catalog(
    image: NDArray,
    tile_size: Optional[int] = None,
    transforms: TransformFlags = TransformFlags(),
) -> List[Tile]:
    """Slices an atlas into its distinct tiles.

    Source cells are visited row-major from the top left. Each cell adds its
    own pixels, then whichever rotations and mirrors ``transforms`` allows.
    A candidate only joins the catalog if its content was not seen before,
    so ids follow first-seen order.
    """
    image = as_rgba(image)
    height, width, _ = image.shape
    if tile_size is None:
        tile_size = detect_tile_size(width, height)
    if tile_size <= 0:
        raise NoTilesFound(f"no usable tile size for a {width}x{height} image")

    columns, rows = width // tile_size, height // tile_size
    if columns == 0 or rows == 0:
        raise NoTilesFound(
            f"{tile_size}px tiles do not fit in a {width}x{height} image"
        )
    if width % tile_size or height % tile_size:
        logger.warning(
            "%dx%d image is not a multiple of %dpx, ignoring the ragged edge",
            width,
            height,
            tile_size,
        )
    logger.info(
        "Slicing %dx%d atlas into %dx%d cells of %dpx",
        width,
        height,
        columns,
        rows,
        tile_size,
    )

    tiles: List[Tile] = []
    seen: Set[bytes] = set()
    for row in range(rows):
        for column in range(columns):
            y, x = row * tile_size, column * tile_size
            cell = image[y : y + tile_size, x : x + tile_size]
            for pixels, origin in _variants(cell, column, row, transforms):
                digest = content_hash(pixels)
                if digest in seen:
                    continue
                seen.add(digest)
                tiles.append(Tile.from_ndarray(len(tiles), pixels, origin))

    logger.info("Found %d unique tiles", len(tiles))
    return tiles
