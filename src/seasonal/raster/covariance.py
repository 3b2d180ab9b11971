"""Band mean and covariance over a region, accumulated tile by tile.

Eligible pixels are those inside the region and finite in every band.
When there are more than ``max_samples`` of them, every k-th eligible
pixel (row-major over the whole raster, k = ceil(N / max_samples)) is
kept, so the sample set is the same for any tile size or worker count.

Each tile yields a :class:`CovarianceAccumulator` (count, mean, centred
sum of squares); accumulators are merged with the pairwise update of
Chan, Golub and LeVeque through a fixed-shape tree, which keeps the
result independent of thread completion order.
"""

import logging
import math
from typing import Any, Optional, Sequence, TYPE_CHECKING

import numpy as np
import xarray as xr

from seasonal.contracts import BandCountMismatch, InsufficientSamples, assert_raster
from seasonal.raster.grid import band_names, grid_transform, prepare_region, read_block, region_mask
from seasonal.raster.tiling import TileExecutor, tree_reduce
from seasonal.raster.types import CovarianceEstimate, frozen_array

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['CovarianceAccumulator', 'CovarianceEstimator', 'sampling_stride']

logger = logging.getLogger(__name__)


def sampling_stride(n_eligible: int, max_samples: int) -> int:
    """Keep every k-th eligible pixel so at most `max_samples` remain."""
    if max_samples < 1:
        raise ValueError(f"max_samples must be >= 1, got {max_samples}")
    if n_eligible <= max_samples:
        return 1
    return int(math.ceil(n_eligible / max_samples))


class CovarianceAccumulator:
    """Running count, mean and centred sum of outer products (M2)."""

    __slots__ = ("count", "mean", "m2")

    def __init__(self, count: int, mean: np.ndarray, m2: np.ndarray):
        self.count = int(count)
        self.mean = mean
        self.m2 = m2

    @classmethod
    def empty(cls, n_bands: int) -> "CovarianceAccumulator":
        return cls(0, np.zeros(n_bands), np.zeros((n_bands, n_bands)))

    @classmethod
    def from_samples(cls, samples: np.ndarray) -> "CovarianceAccumulator":
        """Two-pass statistics of an (N, P) block of sample vectors."""
        samples = np.asarray(samples, dtype=np.float64)
        if samples.shape[0] == 0:
            return cls.empty(samples.shape[1])
        mean = samples.mean(axis=0)
        centred = samples - mean
        return cls(samples.shape[0], mean, centred.T @ centred)

    def merge(self, other: "CovarianceAccumulator") -> "CovarianceAccumulator":
        """Combined statistics of both sample sets; neither operand is modified."""
        if other.count == 0:
            return self
        if self.count == 0:
            return other
        n = self.count + other.count
        delta = other.mean - self.mean
        mean = self.mean + delta * (other.count / n)
        m2 = self.m2 + other.m2 + np.outer(delta, delta) * (self.count * other.count / n)
        return CovarianceAccumulator(n, mean, m2)

    def covariance(self) -> np.ndarray:
        """Population covariance M2 / N, symmetrised."""
        if self.count == 0:
            raise InsufficientSamples("Covariance of an empty sample set is undefined")
        cov = self.m2 / self.count
        return (cov + cov.T) / 2.0


class CovarianceEstimator:
    """Estimate the band mean vector and covariance matrix of a Raster.

    Parameters
    ----------
    config : InternalConfig
        Runtime configuration. ``covariance.max_samples`` is the default
        sample cap.

    executor : TileExecutor, optional
        Shared executor. Built from config when omitted.

    Examples
    --------
    >>> estimator = CovarianceEstimator(config)
    >>> est = estimator.estimate(tct, region=aoi_polygon, max_samples=200_000)
    >>> est.covariance.shape
    (6, 6)
    """

    def __init__(self, config: "InternalConfig", executor: TileExecutor = None):
        self.config = config
        self.executor = executor or TileExecutor.from_config(config)
        self.max_samples = config.covariance.max_samples

    def estimate(
        self,
        raster: xr.Dataset,
        region: Any = None,
        max_samples: Optional[int] = None,
        bands: Optional[Sequence[str]] = None,
        geom_crs: Optional[str] = None,
    ) -> CovarianceEstimate:
        """Mean and covariance of the eligible pixels of `raster`.

        Parameters
        ----------
        raster : xr.Dataset
            Input Raster.
        region : shapely geometry or GeoJSON mapping, optional
            Area of interest; None uses the whole raster.
        max_samples : int, optional
            Sample cap. Defaults to the configured value.
        bands : sequence of str, optional
            Band order of the result. Defaults to all raster bands.
        geom_crs : str, optional
            CRS of `region` when it differs from the raster's.

        Returns
        -------
        CovarianceEstimate

        Raises
        ------
        InsufficientSamples
            If fewer than P + 1 pixels are eligible, or fewer than P + 1
            remain after subsampling.
        """
        assert_raster(raster, "Covariance input")
        bands = list(bands) if bands is not None else band_names(raster)
        missing = [b for b in bands if b not in raster.data_vars]
        if missing:
            raise BandCountMismatch(f"Raster is missing bands {missing}; has {band_names(raster)}")
        n_bands = len(bands)
        max_samples = self.max_samples if max_samples is None else int(max_samples)

        geom = prepare_region(region, raster, geom_crs)
        transform = grid_transform(raster)
        height, width = raster.sizes["y"], raster.sizes["x"]
        tiles = self.executor.windows(height, width)
        tile_size = self.executor.tile_size

        def _eligible(tile):
            block = read_block(raster, bands, tile)
            vectors = block.reshape(n_bands, -1).T
            mask = region_mask(geom, transform, tile)
            mask &= np.all(np.isfinite(vectors), axis=1).reshape(mask.shape)
            return vectors, mask

        # Pass A: eligible pixels per (row, tile column)
        row_counts = np.zeros((height, -(-width // tile_size)), dtype=np.int64)
        per_tile = self.executor.map(lambda tile: _eligible(tile)[1].sum(axis=1), tiles)
        for tile, counts in zip(tiles, per_tile):
            row_counts[tile.row_off:tile.row_off + tile.height, tile.col_off // tile_size] = counts

        n_eligible = int(row_counts.sum())
        if n_eligible < n_bands + 1:
            raise InsufficientSamples(
                f"{n_eligible} eligible pixels for {n_bands} bands; need at least {n_bands + 1}"
            )

        # Global row-major rank of the first eligible pixel of each (row, tile column)
        stride = sampling_stride(n_eligible, max_samples)
        row_totals = row_counts.sum(axis=1)
        row_start = np.cumsum(row_totals) - row_totals
        rank_start = row_start[:, None] + np.cumsum(row_counts, axis=1) - row_counts

        # Pass B: accumulate every stride-th eligible pixel
        def _accumulate(tile):
            vectors, mask = _eligible(tile)
            start = rank_start[tile.row_off:tile.row_off + tile.height, tile.col_off // tile_size]
            rank = start[:, None] + np.cumsum(mask, axis=1) - mask
            keep = mask & (rank % stride == 0)
            return CovarianceAccumulator.from_samples(vectors[keep.ravel()])

        partials = self.executor.map(_accumulate, tiles)
        total = tree_reduce(partials, CovarianceAccumulator.merge)
        if total.count < n_bands + 1:
            raise InsufficientSamples(
                f"{total.count} samples after subsampling for {n_bands} bands; "
                f"need at least {n_bands + 1} (max_samples={max_samples})"
            )

        logger.info("Covariance over %d/%d eligible pixels (stride %d), %d bands",
                    total.count, n_eligible, stride, n_bands)
        return CovarianceEstimate(
            mean=frozen_array(total.mean),
            covariance=frozen_array(total.covariance()),
            band_names=tuple(bands),
            n_eligible=n_eligible,
            n_samples=total.count,
        )
