"""Standardized principal component projection of a Raster."""

import logging
from typing import Optional, Sequence, TYPE_CHECKING

import xarray as xr

from seasonal.raster.grid import band_names
from seasonal.raster.projection import StandardizedPCA, project_raster
from seasonal.raster.tiling import TileExecutor
from seasonal.raster.types import EigenDecomposition

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['PCAProjector', 'component_names']

logger = logging.getLogger(__name__)


def component_names(prefix: str, n: int) -> list:
    return [f"{prefix}{i}" for i in range(1, n + 1)]


class PCAProjector:
    """Centre, rotate onto eigenvectors and whiten every pixel.

    Parameters
    ----------
    config : InternalConfig
        Runtime configuration. Supplies ``eigen.eigen_floor`` and the
        default ``pca.output_prefix`` / ``pca.bands``.

    executor : TileExecutor, optional
        Shared executor. Built from config when omitted.

    Examples
    --------
    >>> projector = PCAProjector(config)
    >>> pcs = projector.project(tct, est.mean, eigen, output_prefix="wet_pc")
    >>> list(pcs.data_vars)[:2]
    ['wet_pc1', 'wet_pc2']
    """

    def __init__(self, config: "InternalConfig", executor: TileExecutor = None):
        self.config = config
        self.executor = executor or TileExecutor.from_config(config)
        self.eigen_floor = config.eigen.eigen_floor

    def project(
        self,
        raster: xr.Dataset,
        mean,
        eigen: EigenDecomposition,
        output_prefix: Optional[str] = None,
        bands: Optional[Sequence[str]] = None,
    ) -> xr.Dataset:
        """Project `raster` onto the principal components.

        Output band ``{prefix}i`` holds component i (largest variance
        first), divided by sqrt(max(eigenvalue_i, eigen_floor)). Pixels
        with any non-finite input band are NaN in every component.

        Raises
        ------
        BandCountMismatch
            If the band count differs from the mean vector length.
        """
        prefix = self.config.pca.output_prefix if output_prefix is None else output_prefix
        if bands is None:
            bands = self.config.pca.bands or band_names(raster)

        projection = StandardizedPCA(mean, eigen, self.eigen_floor)
        names = component_names(prefix, projection.n_outputs)
        logger.info("PCA projection: %d bands -> %s..%s", len(bands), names[0], names[-1])
        return project_raster(raster, projection, names, bands, self.executor)
