import logging
import pathlib
import sys
from typing import List, Literal, Optional

from tap import Tap

from . import png
from .adjacency import AdjacencyStrategy
from .catalog import TransformFlags
from .errors import TileCollapseError
from .logging_config import setup_logging
from .wvfc import WavefunctionCollapse, produce_image, produce_palette_image

logger = logging.getLogger("tilewfc.cli")


class WvfcParser(Tap):
    source_tiles: pathlib.Path  # atlas or tilemap to learn tiles from
    output: pathlib.Path  # where to write the generated map
    width: int = 38  # output width in tiles
    height: int = 38  # output height in tiles
    tile_size: Optional[int] = None  # tile edge in pixels, guessed when omitted
    strategy: Literal["pixel", "edge", "example"] = "edge"
    example: Optional[pathlib.Path] = None  # CSV of tile ids, -1 for empty
    rotations: bool = False
    flip_x: bool = False
    flip_y: bool = False
    attempts: int = 5
    seed: Optional[int] = None
    palette: Optional[pathlib.Path] = None  # also write the extracted tiles here
    verbose: bool = False


def main(argv: Optional[List[str]] = None) -> int:
    args = WvfcParser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger.info("Running with args %s", args)

    try:
        source_texture = png.load_png(args.source_tiles)
        example = png.load_example(args.example) if args.example else None
    except (OSError, ValueError) as error:
        logger.error("Could not read input: %s", error)
        return 1
    try:
        wvfc = WavefunctionCollapse(
            source_texture,
            tile_size=args.tile_size,
            transforms=TransformFlags(args.rotations, args.flip_x, args.flip_y),
            strategy=AdjacencyStrategy(args.strategy),
            example=example,
        )
        if args.palette:
            png.save_png(produce_palette_image(wvfc.tiles), args.palette)
        generated_image = wvfc.run((args.height, args.width), args.attempts, args.seed)
    except TileCollapseError as error:
        logger.error("%s", error)
        wavefunction = getattr(error, "wavefunction", None)
        if wavefunction is not None:
            # keep whatever the last attempt managed, for inspection
            png.save_png(
                produce_image(wavefunction.resolved_grid(), wvfc.tiles), args.output
            )
        return 1
    png.save_png(generated_image, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
