"""Tests for vegetation index band math."""

import numpy as np
import pandas as pd
import pytest

pytestmark = pytest.mark.unit

from seasonal.contracts import BandCountMismatch
from seasonal.raster.compositor import TemporalCompositor
from seasonal.raster.grid import make_raster, stack_series
from seasonal.raster.indices import evi, ndvi, normalized_difference

from tests.helpers.fake_raster import UTM_CRS, UTM_TRANSFORM


@pytest.fixture
def reflectance():
    return make_raster(
        {
            "blue": np.array([[0.05, 0.04], [0.1, np.nan]]),
            "red": np.array([[0.1, 0.0], [0.2, 0.1]]),
            "nir": np.array([[0.5, 0.0], [0.2, 0.3]]),
        },
        transform=UTM_TRANSFORM,
        crs=UTM_CRS,
    )


def test_ndvi_values(reflectance):
    out = ndvi(reflectance)
    assert list(out.data_vars) == ["ndvi"]
    assert out["ndvi"].values[0, 0] == pytest.approx(0.4 / 0.6)
    assert out["ndvi"].values[1, 0] == pytest.approx(0.0)
    assert out.attrs["crs"] == UTM_CRS


def test_zero_denominator_is_nan(reflectance):
    assert np.isnan(ndvi(reflectance)["ndvi"].values[0, 1])


def test_evi_values_and_nan(reflectance):
    out = evi(reflectance)
    expected = 2.5 * (0.5 - 0.1) / (0.5 + 6 * 0.1 - 7.5 * 0.05 + 1.0)
    assert out["evi"].values[0, 0] == pytest.approx(expected)
    assert np.isnan(out["evi"].values[1, 1])


def test_missing_band_raises(reflectance):
    with pytest.raises(BandCountMismatch):
        normalized_difference(reflectance, "nir", "swir1", "ndmi")


def test_index_series_can_be_composited(internal_config):
    rasters = [
        make_raster({"red": np.full((3, 3), 0.1), "nir": np.full((3, 3), nir)})
        for nir in (0.5, 0.3)
    ]
    series = stack_series(zip(pd.to_datetime(["2021-06-01", "2021-06-11"]), rasters))

    index_series = ndvi(series)
    assert index_series["ndvi"].dims == ("time", "y", "x")
    composite = TemporalCompositor(internal_config).composite(index_series, (150, 170))

    expected = (0.4 / 0.6 + 0.2 / 0.4) / 2.0
    np.testing.assert_allclose(composite["ndvi"].values, expected)
