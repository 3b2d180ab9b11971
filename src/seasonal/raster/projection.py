"""Per-pixel matrix projection of band vectors.

The Tasselled Cap transform and standardized PCA are the same operation:
take each pixel's P-band vector and map it to a Q-band vector. Both are
modelled as a BandProjection with a single ``apply`` method, and
:func:`project_raster` is the one tiled code path that applies any
projection to a Raster.

No-data rule: if any input band at a pixel is NaN, every output band at
that pixel is NaN.
"""

import logging
from typing import Sequence

import numpy as np
import xarray as xr

from seasonal.contracts import BandCountMismatch, NameCountMismatch, assert_projected, assert_raster
from seasonal.raster.grid import like_raster, read_block
from seasonal.raster.tiling import TileExecutor
from seasonal.raster.types import EigenDecomposition, frozen_array

__all__ = ['BandProjection', 'LinearProjection', 'StandardizedPCA', 'project_raster']

logger = logging.getLogger(__name__)


class BandProjection:
    """Maps (N, P) pixel vectors to (N, Q) output vectors."""

    @property
    def n_inputs(self) -> int:
        raise NotImplementedError

    @property
    def n_outputs(self) -> int:
        raise NotImplementedError

    def apply(self, vectors: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class LinearProjection(BandProjection):
    """y = C . x for a fixed (Q, P) coefficient matrix C."""

    def __init__(self, coefficients):
        coefficients = frozen_array(coefficients)
        if coefficients.ndim != 2:
            raise ValueError(f"Coefficient matrix must be 2D, got shape {coefficients.shape}")
        self.coefficients = coefficients

    @property
    def n_inputs(self) -> int:
        return self.coefficients.shape[1]

    @property
    def n_outputs(self) -> int:
        return self.coefficients.shape[0]

    def apply(self, vectors: np.ndarray) -> np.ndarray:
        return vectors @ self.coefficients.T


class StandardizedPCA(BandProjection):
    """pc = diag(1 / sqrt(max(lambda, floor))) . V . (x - mean).

    Eigenvalues below `eigen_floor` (including zero and small negative
    round-off) are clamped before the square root, so degenerate
    directions yield finite components.
    """

    def __init__(self, mean, eigen: EigenDecomposition, eigen_floor: float):
        if eigen_floor <= 0:
            raise ValueError(f"eigen_floor must be > 0, got {eigen_floor}")
        self.mean = frozen_array(mean)
        self.vectors = eigen.vectors
        self.eigen_floor = float(eigen_floor)
        clamped = np.maximum(eigen.values, self.eigen_floor)
        n_clamped = int(np.sum(eigen.values < self.eigen_floor))
        if n_clamped:
            logger.warning("Clamped %d eigenvalue(s) below %.3g before normalisation",
                           n_clamped, self.eigen_floor)
        self.scale = frozen_array(1.0 / np.sqrt(clamped))
        if self.vectors.shape != (self.mean.size, self.mean.size):
            raise BandCountMismatch(
                f"Mean has {self.mean.size} bands but eigenvectors are {self.vectors.shape}"
            )

    @property
    def n_inputs(self) -> int:
        return self.mean.size

    @property
    def n_outputs(self) -> int:
        return self.vectors.shape[0]

    def apply(self, vectors: np.ndarray) -> np.ndarray:
        return ((vectors - self.mean) @ self.vectors.T) * self.scale


def project_raster(
    raster: xr.Dataset,
    projection: BandProjection,
    output_names: Sequence[str],
    bands: Sequence[str],
    executor: TileExecutor,
) -> xr.Dataset:
    """Apply `projection` to every pixel of `raster`, tile by tile.

    Parameters
    ----------
    raster : xr.Dataset
        Input Raster.
    projection : BandProjection
        Per-pixel mapping with n_inputs == len(bands).
    output_names : sequence of str
        Output band names, one per projection output.
    bands : sequence of str
        Input bands, in the order the projection expects them.
    executor : TileExecutor
        Tiling and worker pool.

    Raises
    ------
    BandCountMismatch
        If len(bands) != projection.n_inputs or a band is missing.
    NameCountMismatch
        If len(output_names) != projection.n_outputs.
    """
    assert_raster(raster, "Projection input")
    bands = list(bands)
    output_names = list(output_names)
    missing = [b for b in bands if b not in raster.data_vars]
    if missing:
        raise BandCountMismatch(f"Raster is missing bands {missing}; has {list(raster.data_vars)}")
    if len(bands) != projection.n_inputs:
        raise BandCountMismatch(
            f"Projection expects {projection.n_inputs} bands, raster provides {len(bands)}"
        )
    if len(output_names) != projection.n_outputs:
        raise NameCountMismatch(
            f"Projection produces {projection.n_outputs} bands, got {len(output_names)} names"
        )

    height, width = raster.sizes["y"], raster.sizes["x"]
    tiles = executor.windows(height, width)

    def _tile(tile):
        block = read_block(raster, bands, tile)           # (P, h, w)
        n_bands, h, w = block.shape
        vectors = block.reshape(n_bands, -1).T            # (h*w, P)
        valid = np.all(np.isfinite(vectors), axis=1)
        out = np.full((vectors.shape[0], projection.n_outputs), np.nan, dtype=np.float64)
        if valid.any():
            out[valid] = projection.apply(vectors[valid])
        return out.T.reshape(projection.n_outputs, h, w)

    out = np.full((len(output_names), height, width), np.nan, dtype=np.float64)
    for tile, values in zip(tiles, executor.map(_tile, tiles)):
        rows, cols = tile.toslices()
        out[:, rows, cols] = values

    result = like_raster(raster, dict(zip(output_names, out)))
    assert_projected(result, raster, output_names)
    logger.debug("Projected %d bands -> %d bands over %d tiles",
                 len(bands), len(output_names), len(tiles))
    return result
