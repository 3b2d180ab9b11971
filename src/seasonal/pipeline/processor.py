"""Seasonal transform pipeline.

Runs the configured seasons through compositing, the Tasselled Cap
transform, covariance estimation, eigen decomposition and PCA
projection. Each stage is followed by its contract check; a failure in
any stage aborts the whole run (there is no partial result).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

import numpy as np
import xarray as xr

from seasonal.contracts import (
    ContractViolation,
    assert_raster,
    assert_time_series,
    require,
)
from seasonal.raster.compositor import TemporalCompositor
from seasonal.raster.covariance import CovarianceEstimator
from seasonal.raster.eigen import EigenSolver
from seasonal.raster.linear_transform import LinearTransformEngine
from seasonal.raster.pca import PCAProjector
from seasonal.raster.tiling import TileExecutor
from seasonal.raster.types import CovarianceEstimate, EigenDecomposition

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['SeasonProducts', 'SeasonalProcessor']

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeasonProducts:
    """Everything derived for one season."""
    name: str
    composite: xr.Dataset
    tct: Optional[xr.Dataset]
    covariance: CovarianceEstimate
    eigen: EigenDecomposition
    pca: xr.Dataset


class SeasonalProcessor:
    """Derive composites, TCT and PCA rasters for every configured season.

    The two-pass structure per season is: estimate the global statistics
    (mean, covariance, eigenbasis) over the region, then project every
    pixel with those read-only statistics.

    Parameters
    ----------
    config : InternalConfig
        Fully validated runtime configuration.

    Examples
    --------
    >>> processor = SeasonalProcessor(config)
    >>> products = processor.run(series, region=aoi)
    >>> products["wet"].pca
    <xarray.Dataset> ... pc1 pc2 ...
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.executor = TileExecutor.from_config(config)

        self.compositor = TemporalCompositor(config, self.executor)
        self.tct_engine = LinearTransformEngine(config, self.executor)
        self.estimator = CovarianceEstimator(config, self.executor)
        self.solver = EigenSolver(config)
        self.projector = PCAProjector(config, self.executor)

    def run(self, series: xr.Dataset, region: Any = None,
            geom_crs: Optional[str] = None) -> Dict[str, SeasonProducts]:
        """Process every configured season, in configuration order.

        Raises
        ------
        TransformError
            Any of the data errors (EmptySelection, InsufficientSamples, ...)
            raised by a stage.
        ContractViolation
            If a stage breaks its output contract.
        """
        assert_time_series(series)
        logger.info("Seasonal pipeline: %d timestamps, bands=%s, grid=%dx%d, seasons=%s",
                    series.sizes["time"], list(series.data_vars),
                    series.sizes["y"], series.sizes["x"],
                    [s.name for s in self.config.seasons])

        products = {}
        for season in self.config.seasons:
            try:
                products[season.name] = self.process_season(
                    series, season.name, season.windows, region, geom_crs
                )
            except ContractViolation as e:
                logger.critical("Pipeline contract violated in season '%s': %s", season.name, e)
                raise
        return products

    def process_season(self, series: xr.Dataset, name: str, windows,
                       region: Any = None, geom_crs: Optional[str] = None) -> SeasonProducts:
        """Composite one season and derive its transforms."""
        logger.info("Season '%s': windows %s", name, list(windows))

        # Step 1: Composite
        composite = self.compositor.composite_season(series, windows)
        assert_raster(composite, f"Composite '{name}'")

        # Step 2: Tasselled Cap (optional)
        tct = None
        if self.config.tct.enabled:
            tct = self.tct_engine.transform(composite)

        # Step 3: Global statistics over the region
        pca_bands = self.config.pca.bands or list(composite.data_vars)
        estimate = self.estimator.estimate(composite, region=region, bands=pca_bands, geom_crs=geom_crs)
        require(
            np.allclose(estimate.covariance, estimate.covariance.T),
            f"Covariance contract violated: season '{name}' matrix not symmetric"
        )
        eigen = self.solver.decompose(estimate.covariance)

        # Step 4: Project every pixel
        pca = self.projector.project(composite, estimate.mean, eigen,
                                     bands=list(estimate.band_names))

        logger.info("Season '%s' done: %d samples, leading eigenvalue %.4g",
                    name, estimate.n_samples, float(eigen.values[0]))
        return SeasonProducts(
            name=name,
            composite=composite,
            tct=tct,
            covariance=estimate,
            eigen=eigen,
            pca=pca,
        )
