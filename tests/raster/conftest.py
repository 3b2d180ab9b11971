"""Raster stage fixtures: synthetic rasters, series and executors."""

import pytest

from seasonal.raster.tiling import TileExecutor

from tests.helpers.fake_raster import make_fake_raster, make_fake_series, correlated_raster


@pytest.fixture
def raster():
    """5x7 random six-band Landsat-like raster."""
    return make_fake_raster()


@pytest.fixture
def series():
    """Five dates: two in early January, one in March, two in July."""
    dates = ["2021-01-05", "2021-01-21", "2021-03-10", "2021-07-01", "2021-07-17"]
    ds, rasters = make_fake_series(dates)
    return ds, rasters


@pytest.fixture
def mixed_raster():
    """20x30 four-band raster with a dense, full-rank covariance."""
    return correlated_raster()


@pytest.fixture
def serial_executor():
    return TileExecutor(tile_size=3, max_workers=1)


@pytest.fixture
def parallel_executor():
    return TileExecutor(tile_size=3, max_workers=4)
