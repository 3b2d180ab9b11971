"""End-to-end tests for SeasonalProcessor and the library entry point."""

import logging

import numpy as np
import pytest
from shapely.geometry import box

pytestmark = pytest.mark.integration

from seasonal.contracts import ContractViolation, EmptySelection, ResourceExceeded
from seasonal.pipeline import SeasonalProcessor, SeasonProducts, run_seasonal_pipeline, setup_logging
from seasonal.raster.compositor import TemporalCompositor
from seasonal.schemas.param import LANDSAT8_TCT_OUTPUTS

from tests.helpers.fake_raster import make_fake_raster


def test_default_seasons_produce_all_products(internal_config, seasonal_series):
    products = SeasonalProcessor(internal_config).run(seasonal_series)

    assert list(products) == ["wet", "dry"]
    wet = products["wet"]
    assert isinstance(wet, SeasonProducts)
    assert list(wet.tct.data_vars) == LANDSAT8_TCT_OUTPUTS
    assert list(wet.pca.data_vars) == [f"pc{i}" for i in range(1, 7)]
    assert wet.covariance.covariance.shape == (6, 6)
    assert wet.covariance.n_samples == 80
    assert np.all(np.diff(wet.eigen.values) <= 0)


def test_season_composite_uses_its_windows(internal_config, seasonal_series):
    products = SeasonalProcessor(internal_config).run(seasonal_series)

    compositor = TemporalCompositor(internal_config)
    expected = compositor.composite_season(seasonal_series, [(152, 273)])
    np.testing.assert_allclose(products["dry"].composite["red"].values, expected["red"].values)


def test_pca_components_are_whitened(internal_config, seasonal_series):
    pca = SeasonalProcessor(internal_config).run(seasonal_series)["dry"].pca
    x = np.stack([pca[b].values.ravel() for b in pca.data_vars], axis=1)
    np.testing.assert_allclose(np.cov(x, rowvar=False, bias=True), np.eye(6), atol=1e-8)


def test_region_limits_statistics(internal_config, seasonal_series):
    # Left half of the 30 m grid: 8 rows x 5 columns
    aoi = box(500000.0, 3999760.0, 500150.0, 4000000.0)

    products = SeasonalProcessor(internal_config).run(seasonal_series, region=aoi)

    assert products["wet"].covariance.n_eligible == 40
    assert np.isfinite(products["wet"].pca["pc1"].values).all()


def test_tct_can_be_disabled(make_config, seasonal_series):
    products = SeasonalProcessor(make_config(TCT_ENABLED=False)).run(seasonal_series)
    assert products["wet"].tct is None


def test_custom_windows_and_prefix(make_config, seasonal_series):
    config = make_config(WINDOWS={"summer": [(152, 243)]}, PCA_PREFIX="s_pc", MAX_SAMPLES=30)
    products = SeasonalProcessor(config).run(seasonal_series)

    assert list(products) == ["summer"]
    assert list(products["summer"].pca.data_vars)[0] == "s_pc1"
    assert products["summer"].covariance.n_samples <= 30


def test_empty_season_aborts_run(make_config, seasonal_series):
    config = make_config(WINDOWS={"dry": [(152, 273)], "spring": [(91, 120)]})
    with pytest.raises(EmptySelection):
        SeasonalProcessor(config).run(seasonal_series)


def test_pixel_limit_aborts_run(make_config, seasonal_series):
    with pytest.raises(ResourceExceeded):
        SeasonalProcessor(make_config(MAX_PIXELS=50)).run(seasonal_series)


def test_single_raster_is_rejected_as_series(internal_config):
    with pytest.raises(ContractViolation):
        SeasonalProcessor(internal_config).run(make_fake_raster())


class TestRunner:

    def test_run_with_user_dict(self, seasonal_series):
        products = run_seasonal_pipeline(
            seasonal_series,
            user_config={"TILE_SIZE": 4, "WINDOWS": [(1, 60)]},
            configure_logging=False,
        )
        assert list(products) == ["season"]

    def test_run_with_config_file(self, seasonal_series, tmp_path):
        path = tmp_path / "user_config.py"
        path.write_text('CONFIG = {"TCT_ENABLED": False, "WINDOWS": {"dry": [(152, 273)]}}\n')

        products = run_seasonal_pipeline(seasonal_series, user_config=path, configure_logging=False)

        assert products["dry"].tct is None

    def test_setup_logging_writes_file(self, tmp_path):
        log_path = tmp_path / "logs" / "seasonal.log"
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", log_path)
            logging.getLogger("seasonal.test").info("hello from test")
            for handler in root.handlers:
                handler.flush()
            assert "hello from test" in log_path.read_text()
            assert root.level == logging.DEBUG
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in saved[0]:
                root.addHandler(handler)
            root.setLevel(saved[1])
