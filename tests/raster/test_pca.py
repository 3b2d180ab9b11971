"""Tests for PCAProjector (standardized principal components)."""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from seasonal.contracts import BandCountMismatch
from seasonal.raster.covariance import CovarianceEstimator
from seasonal.raster.eigen import EigenSolver
from seasonal.raster.grid import make_raster
from seasonal.raster.pca import PCAProjector


def _fit(config, raster):
    est = CovarianceEstimator(config).estimate(raster)
    return est, EigenSolver(config).decompose(est.covariance)


def test_output_names_follow_prefix(internal_config, mixed_raster):
    est, eigen = _fit(internal_config, mixed_raster)

    pcs = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen)
    assert list(pcs.data_vars) == ["pc1", "pc2", "pc3", "pc4"]

    named = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen, output_prefix="wet_pc")
    assert list(named.data_vars) == ["wet_pc1", "wet_pc2", "wet_pc3", "wet_pc4"]


def test_components_are_whitened(internal_config, mixed_raster):
    """Unit variance and zero correlation over the sampled pixels."""
    est, eigen = _fit(internal_config, mixed_raster)
    pcs = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen)

    pc_est = CovarianceEstimator(internal_config).estimate(pcs)

    np.testing.assert_allclose(pc_est.mean, np.zeros(4), atol=1e-10)
    np.testing.assert_allclose(pc_est.covariance, np.eye(4), atol=1e-8)


def test_pre_normalisation_variance_is_ordered(internal_config, mixed_raster):
    est, eigen = _fit(internal_config, mixed_raster)
    pcs = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen)

    raw_var = [np.var(pcs[f"pc{i}"].values) * eigen.values[i - 1] for i in range(1, 5)]
    assert all(a >= b for a, b in zip(raw_var, raw_var[1:]))


def test_matches_explicit_formula(internal_config, mixed_raster):
    est, eigen = _fit(internal_config, mixed_raster)
    pcs = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen)

    x = np.array([mixed_raster[b].values[4, 9] for b in mixed_raster.data_vars])
    expected = (eigen.vectors @ (x - est.mean)) / np.sqrt(eigen.values)
    actual = np.array([pcs[f"pc{i}"].values[4, 9] for i in range(1, 5)])
    np.testing.assert_allclose(actual, expected, rtol=1e-10)


def test_degenerate_component_is_finite(internal_config):
    rng = np.random.default_rng(4)
    a = rng.normal(size=(10, 10))
    c = rng.normal(size=(10, 10))
    raster = make_raster({"a": a, "twice_a": 2.0 * a, "c": c})
    est, eigen = _fit(internal_config, raster)

    pcs = PCAProjector(internal_config).project(raster, est.mean, eigen)

    for name in pcs.data_vars:
        assert np.isfinite(pcs[name].values).all()


def test_floor_is_configurable(make_config):
    config = make_config(EIGEN_FLOOR=1.0)
    rng = np.random.default_rng(5)
    raster = make_raster({"a": rng.normal(size=(6, 6)) * 0.01, "b": rng.normal(size=(6, 6)) * 0.01})
    est, eigen = _fit(config, raster)

    pcs = PCAProjector(config).project(raster, est.mean, eigen)

    # Variances far below the floor are divided by sqrt(1.0), i.e. left unscaled
    x = np.array([raster["a"].values[0, 0], raster["b"].values[0, 0]])
    np.testing.assert_allclose(pcs["pc1"].values[0, 0], eigen.vectors[0] @ (x - est.mean), rtol=1e-10)


def test_nan_pixel_propagates(internal_config, mixed_raster):
    est, eigen = _fit(internal_config, mixed_raster)
    mixed_raster["c"].values[7, 7] = np.nan

    pcs = PCAProjector(internal_config).project(mixed_raster, est.mean, eigen)

    for name in pcs.data_vars:
        assert np.isnan(pcs[name].values[7, 7])
        assert np.isfinite(pcs[name].values[7, 8])


def test_band_count_mismatch(internal_config, mixed_raster):
    est, eigen = _fit(internal_config, mixed_raster)
    with pytest.raises(BandCountMismatch):
        PCAProjector(internal_config).project(mixed_raster, est.mean, eigen, bands=["a", "b", "c"])
    with pytest.raises(BandCountMismatch):
        PCAProjector(internal_config).project(mixed_raster, est.mean[:3], eigen)
