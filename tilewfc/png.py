# pyright: reportUnknownVariableType=false

import imageio.v3 as iio
from pathlib import Path
from numpy.typing import NDArray
import numpy as np


def load_png(file: Path) -> NDArray[np.uint8]:
    # grey, grey+alpha, paletted and 16-bit files all come back as 8-bit RGBA
    return iio.imread(file, mode="RGBA")


def save_png(image: NDArray[np.uint8], output_file: Path):
    iio.imwrite(output_file, image)


def load_example(file: Path) -> NDArray[np.int64]:
    """Reads a painted example grid, one row of comma separated tile ids per
    line, -1 for unpainted cells."""
    return np.loadtxt(file, delimiter=",", dtype=np.int64, ndmin=2)
