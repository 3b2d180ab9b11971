"""Tests for LinearTransformEngine (Tasselled Cap and arbitrary matrices)."""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from seasonal.contracts import BandCountMismatch, NameCountMismatch
from seasonal.raster.grid import make_raster
from seasonal.raster.linear_transform import LinearTransformEngine, coefficient_matrix
from seasonal.schemas.param import LANDSAT8_TCT_COEFFICIENTS, LANDSAT8_TCT_OUTPUTS

from tests.helpers.fake_raster import LANDSAT_BANDS, make_fake_raster

NAMES = ["t1", "t2", "t3", "t4", "t5", "t6"]


def test_identity_matrix_returns_input_renamed(internal_config):
    """6-band 2x2 raster through the identity matrix comes back unchanged."""
    raster = make_fake_raster(shape=(2, 2), seed=5)
    engine = LinearTransformEngine(internal_config)

    out = engine.transform(raster, np.eye(6), NAMES)

    assert list(out.data_vars) == NAMES
    for name, band in zip(NAMES, LANDSAT_BANDS):
        np.testing.assert_allclose(out[name].values, raster[band].values)


def test_default_is_configured_tct(internal_config, raster):
    out = LinearTransformEngine(internal_config).transform(raster)

    assert list(out.data_vars) == LANDSAT8_TCT_OUTPUTS
    pixel = np.array([raster[b].values[2, 3] for b in LANDSAT_BANDS])
    expected = np.asarray(LANDSAT8_TCT_COEFFICIENTS) @ pixel
    actual = np.array([out[n].values[2, 3] for n in LANDSAT8_TCT_OUTPUTS])
    np.testing.assert_allclose(actual, expected, rtol=1e-12)


def test_linearity(internal_config):
    """transform(a*R1 + b*R2) == a*transform(R1) + b*transform(R2)."""
    r1 = make_fake_raster(seed=1)
    r2 = make_fake_raster(seed=2)
    a, b = 2.5, -0.75
    combined = make_raster({band: a * r1[band].values + b * r2[band].values for band in LANDSAT_BANDS})

    coeff = np.random.default_rng(0).normal(size=(3, 6))
    engine = LinearTransformEngine(internal_config)
    names = ["u", "v", "w"]

    lhs = engine.transform(combined, coeff, names)
    t1 = engine.transform(r1, coeff, names)
    t2 = engine.transform(r2, coeff, names)

    for name in names:
        np.testing.assert_allclose(lhs[name].values, a * t1[name].values + b * t2[name].values,
                                   rtol=1e-10, atol=1e-12)


def test_nan_in_any_band_blanks_whole_pixel(internal_config, raster):
    raster["swir2"].values[0, 0] = np.nan
    out = LinearTransformEngine(internal_config).transform(raster)

    for name in out.data_vars:
        assert np.isnan(out[name].values[0, 0])
        assert np.isfinite(out[name].values[0, 1])


def test_band_count_mismatch(internal_config):
    raster = make_fake_raster(bands=("a", "b", "c"))
    with pytest.raises(BandCountMismatch):
        LinearTransformEngine(internal_config).transform(raster, np.eye(4), ["p", "q", "r", "s"])


def test_name_count_mismatch(internal_config, raster):
    with pytest.raises(NameCountMismatch):
        LinearTransformEngine(internal_config).transform(raster, np.eye(6), NAMES[:5])


def test_missing_tct_band(internal_config):
    raster = make_fake_raster(bands=("blue", "green", "red", "nir", "swir1", "thermal"))
    with pytest.raises(BandCountMismatch):
        LinearTransformEngine(internal_config).transform(raster)


def test_non_square_matrix(internal_config, raster):
    coeff = np.ones((2, 6)) / 6.0
    out = LinearTransformEngine(internal_config).transform(raster, coeff, ["mean", "mean_again"])
    expected = sum(raster[b].values for b in LANDSAT_BANDS) / 6.0
    np.testing.assert_allclose(out["mean"].values, expected)


def test_coefficient_matrix_is_read_only(internal_config):
    matrix = coefficient_matrix(internal_config)
    assert matrix.shape == (6, 6)
    with pytest.raises(ValueError):
        matrix[0, 0] = 1.0
