"""Fixed-coefficient linear band transform (Tasselled Cap).

Each pixel's band vector x (in declared band order) is mapped to
y = C . x with an externally supplied coefficient matrix C
(rows = output components, columns = input bands).
"""

import logging
from typing import Optional, Sequence, TYPE_CHECKING

import numpy as np
import xarray as xr

from seasonal.contracts import BandCountMismatch, NameCountMismatch
from seasonal.raster.grid import band_names
from seasonal.raster.projection import LinearProjection, project_raster
from seasonal.raster.tiling import TileExecutor
from seasonal.raster.types import frozen_array

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['LinearTransformEngine', 'coefficient_matrix']

logger = logging.getLogger(__name__)


def coefficient_matrix(config: "InternalConfig") -> np.ndarray:
    """Read-only Tasselled Cap coefficient matrix from config."""
    return frozen_array(config.tct.coefficients)


class LinearTransformEngine:
    """Apply a fixed P x P (or Q x P) coefficient matrix to every pixel.

    Parameters
    ----------
    config : InternalConfig
        Runtime configuration. Supplies the default coefficient matrix,
        band order and output names (the ``tct`` section) and tiling.

    executor : TileExecutor, optional
        Shared executor. Built from config when omitted.

    Examples
    --------
    >>> engine = LinearTransformEngine(config)
    >>> tct = engine.transform(composite)  # configured TCT
    >>> same = engine.transform(raster, np.eye(6), ["b1", "b2", "b3", "b4", "b5", "b6"])
    """

    def __init__(self, config: "InternalConfig", executor: TileExecutor = None):
        self.config = config
        self.executor = executor or TileExecutor.from_config(config)
        self.default_coefficients = coefficient_matrix(config)
        self.default_bands = list(config.tct.bands)
        self.default_output_names = list(config.tct.output_names)

    def transform(
        self,
        raster: xr.Dataset,
        coeff=None,
        output_names: Optional[Sequence[str]] = None,
        bands: Optional[Sequence[str]] = None,
    ) -> xr.Dataset:
        """Project every pixel through the coefficient matrix.

        Parameters
        ----------
        raster : xr.Dataset
            Input Raster.
        coeff : array-like, optional
            (rows, cols) coefficient matrix. Defaults to the configured TCT
            matrix, in which case `bands` defaults to the configured TCT bands.
        output_names : sequence of str, optional
            One name per matrix row. Defaults to the configured names.
        bands : sequence of str, optional
            Input bands in matrix column order. Defaults to all raster bands
            when an explicit `coeff` is given.

        Returns
        -------
        xr.Dataset
            Raster with one band per output name, NaN wherever any input
            band is NaN.

        Raises
        ------
        BandCountMismatch
            If the band count differs from the matrix column count.
        NameCountMismatch
            If the output name count differs from the matrix row count.
        """
        if coeff is None:
            coeff = self.default_coefficients
            bands = self.default_bands if bands is None else bands
        if output_names is None:
            output_names = self.default_output_names
        if bands is None:
            bands = band_names(raster)

        projection = LinearProjection(coeff)
        if len(bands) != projection.n_inputs:
            raise BandCountMismatch(
                f"Raster has {len(bands)} bands but coefficient matrix has {projection.n_inputs} columns"
            )
        if len(output_names) != projection.n_outputs:
            raise NameCountMismatch(
                f"{len(output_names)} output names for {projection.n_outputs} matrix rows"
            )

        logger.info("Linear transform: %d bands -> %s", len(bands), list(output_names))
        return project_raster(raster, projection, output_names, bands, self.executor)
