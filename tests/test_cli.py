"""Tests for the PNG helpers and the ``python -m tilewfc`` entry point."""

import numpy as np
import pytest

from tilewfc import png
from tilewfc.__main__ import main


@pytest.fixture
def atlas_file(tmp_path, four_colour_atlas):
    path = tmp_path / "atlas.png"
    png.save_png(four_colour_atlas, path)
    return path


class TestPng:
    def test_round_trip(self, atlas_file, four_colour_atlas):
        assert np.array_equal(png.load_png(atlas_file), four_colour_atlas)

    def test_rgb_is_loaded_as_rgba(self, tmp_path):
        path = tmp_path / "rgb.png"
        png.save_png(np.full((2, 2, 3), 9, dtype=np.uint8), path)
        loaded = png.load_png(path)
        assert loaded.shape == (2, 2, 4)
        assert (loaded[..., 3] == 255).all()

    def test_sixteen_bit_grey_is_scaled_not_wrapped(self, tmp_path):
        path = tmp_path / "grey16.png"
        png.save_png(np.full((2, 2), 0x8000, dtype=np.uint16), path)
        loaded = png.load_png(path)
        assert loaded.dtype == np.uint8
        assert loaded.shape == (2, 2, 4)
        assert (loaded[..., 0] == loaded[..., 1]).all()
        assert (loaded[..., 0] == loaded[..., 2]).all()
        assert (loaded[..., 0] > 0).all()
        assert (loaded[..., 3] == 255).all()

    def test_grey_with_alpha(self, tmp_path):
        path = tmp_path / "grey_alpha.png"
        pixels = np.zeros((2, 2, 2), dtype=np.uint8)
        pixels[..., 0] = 90
        pixels[0, 0, 1] = 255
        png.save_png(pixels, path)
        loaded = png.load_png(path)
        assert loaded.shape == (2, 2, 4)
        assert tuple(loaded[0, 0]) == (90, 90, 90, 255)
        assert loaded[1, 1, 3] == 0

    def test_load_example(self, tmp_path):
        path = tmp_path / "example.csv"
        path.write_text("0,1,-1\n2,2,0\n")
        example = png.load_example(path)
        assert example.tolist() == [[0, 1, -1], [2, 2, 0]]

    def test_single_row_example_stays_two_dimensional(self, tmp_path):
        path = tmp_path / "example.csv"
        path.write_text("0,1\n")
        assert png.load_example(path).shape == (1, 2)


class TestMain:
    def test_generates_map_and_palette(self, tmp_path, atlas_file):
        output = tmp_path / "map.png"
        palette = tmp_path / "palette.png"
        status = main(
            [
                "--source_tiles", str(atlas_file),
                "--output", str(output),
                "--width", "5",
                "--height", "4",
                "--tile_size", "1",
                "--strategy", "pixel",
                "--seed", "3",
                "--palette", str(palette),
            ]
        )
        assert status == 0
        assert png.load_png(output).shape == (4, 5, 4)
        assert png.load_png(palette).shape == (1, 4, 4)

    def test_empty_example_fails(self, tmp_path, atlas_file):
        example = tmp_path / "example.csv"
        example.write_text("-1,-1\n-1,-1\n")
        status = main(
            [
                "--source_tiles", str(atlas_file),
                "--output", str(tmp_path / "map.png"),
                "--tile_size", "1",
                "--strategy", "example",
                "--example", str(example),
            ]
        )
        assert status == 1

    def test_unsolvable_writes_partial_map(self, tmp_path, atlas_file):
        example = tmp_path / "example.csv"
        example.write_text("0,1\n")
        output = tmp_path / "map.png"
        status = main(
            [
                "--source_tiles", str(atlas_file),
                "--output", str(output),
                "--width", "2",
                "--height", "3",
                "--tile_size", "1",
                "--strategy", "example",
                "--example", str(example),
                "--attempts", "2",
            ]
        )
        assert status == 1
        partial = png.load_png(output)
        assert partial.shape == (3, 2, 4)
        assert (partial[..., 3] == 0).any()

    def test_missing_atlas_fails(self, tmp_path):
        status = main(
            [
                "--source_tiles", str(tmp_path / "missing.png"),
                "--output", str(tmp_path / "map.png"),
            ]
        )
        assert status == 1
        assert not (tmp_path / "map.png").exists()

    def test_malformed_example_fails(self, tmp_path, atlas_file):
        example = tmp_path / "example.csv"
        example.write_text("0,1\nsea,land\n")
        status = main(
            [
                "--source_tiles", str(atlas_file),
                "--output", str(tmp_path / "map.png"),
                "--tile_size", "1",
                "--strategy", "example",
                "--example", str(example),
            ]
        )
        assert status == 1
