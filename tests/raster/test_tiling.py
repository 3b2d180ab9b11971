"""Tests for tiling, deterministic reduction and resource limits."""

import time

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from seasonal.contracts import ResourceExceeded
from seasonal.raster.tiling import TileExecutor, iter_windows, tree_reduce


class TestIterWindows:

    def test_tiles_cover_grid_exactly_once(self):
        hits = np.zeros((7, 10), dtype=int)
        for w in iter_windows(7, 10, 3):
            rows, cols = w.toslices()
            hits[rows, cols] += 1
        assert (hits == 1).all()

    def test_row_major_order_and_clipping(self):
        tiles = iter_windows(5, 5, 4)
        assert [(t.row_off, t.col_off) for t in tiles] == [(0, 0), (0, 4), (4, 0), (4, 4)]
        assert (tiles[-1].height, tiles[-1].width) == (1, 1)


class TestTreeReduce:

    def test_fixed_pairing_order(self):
        result = tree_reduce(["a", "b", "c", "d", "e"], lambda x, y: f"({x}{y})")
        assert result == "(((ab)(cd))e)"

    def test_single_item(self):
        assert tree_reduce([42], lambda x, y: x + y) == 42

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            tree_reduce([], lambda x, y: x + y)


class TestTileExecutor:

    def test_results_in_tile_order_with_threads(self):
        executor = TileExecutor(tile_size=2, max_workers=4)
        tiles = executor.windows(9, 9)

        def slow_first(tile):
            if tile.row_off == 0 and tile.col_off == 0:
                time.sleep(0.05)
            return (tile.row_off, tile.col_off)

        assert executor.map(slow_first, tiles) == [(t.row_off, t.col_off) for t in tiles]

    def test_max_pixels_rejected(self):
        executor = TileExecutor(tile_size=4, max_pixels=50)
        with pytest.raises(ResourceExceeded, match="limit is 50"):
            executor.windows(10, 10)

    def test_time_limit_serial(self):
        executor = TileExecutor(tile_size=1, max_workers=1, time_limit_seconds=0.01)
        tiles = executor.windows(3, 3)
        with pytest.raises(ResourceExceeded, match="Time limit"):
            executor.map(lambda t: time.sleep(0.02), tiles)

    def test_time_limit_threaded(self):
        executor = TileExecutor(tile_size=1, max_workers=2, time_limit_seconds=0.05)
        tiles = executor.windows(2, 3)
        with pytest.raises(ResourceExceeded):
            executor.map(lambda t: time.sleep(0.2), tiles)

    def test_worker_errors_propagate(self):
        executor = TileExecutor(tile_size=2, max_workers=3)
        tiles = executor.windows(4, 4)

        def boom(tile):
            if tile.col_off == 2:
                raise RuntimeError("tile failed")
            return 1

        with pytest.raises(RuntimeError, match="tile failed"):
            executor.map(boom, tiles)

    def test_from_config(self, make_config):
        config = make_config(TILE_SIZE=64, MAX_WORKERS=3, MAX_PIXELS=1000)
        executor = TileExecutor.from_config(config)
        assert (executor.tile_size, executor.max_workers, executor.max_pixels) == (64, 3, 1000)

    @pytest.mark.parametrize("kwargs", [{"tile_size": 0}, {"tile_size": 4, "max_workers": 0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            TileExecutor(**kwargs)
