"""Temporal compositing of masked raster time series.

Selects the timestamps of a RasterTimeSeries whose day-of-year falls in a
window and reduces them to one Raster with a per-pixel mean of the valid
(non-NaN) samples. Pixels with no valid sample stay NaN; they are never
filled with zero.

Seasons that span more than one window (e.g. two wet-month spans around
the turn of the year) are composited per window and then merged with an
equal-weight mean of valid values.
"""

import logging
from typing import Sequence, TYPE_CHECKING

import numpy as np
import xarray as xr

from seasonal.contracts import (
    EmptySelection,
    assert_coregistered,
    assert_raster,
    assert_time_series,
    require,
)
from seasonal.raster.grid import band_names, like_raster, read_series_block
from seasonal.raster.tiling import TileExecutor
from seasonal.raster.types import TimeWindow

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['TemporalCompositor', 'mean_of_valid']

logger = logging.getLogger(__name__)


def mean_of_valid(stack: np.ndarray, axis: int = 0) -> np.ndarray:
    """Mean over `axis` ignoring NaN; NaN where every sample is NaN.

    Equivalent to ``np.nanmean`` without the all-NaN RuntimeWarning.
    """
    valid = ~np.isnan(stack)
    count = valid.sum(axis=axis)
    total = np.where(valid, stack, 0.0).sum(axis=axis)
    out = np.full(count.shape, np.nan, dtype=np.float64)
    np.divide(total, count, out=out, where=count > 0)
    return out


class TemporalCompositor:
    """Mask-aware per-pixel temporal mean over day-of-year windows.

    Parameters
    ----------
    config : InternalConfig
        Runtime configuration (tiling and limits are used).

    executor : TileExecutor, optional
        Shared executor. Built from config when omitted.

    Examples
    --------
    >>> compositor = TemporalCompositor(config)
    >>> summer = compositor.composite(series, TimeWindow(152, 243))
    >>> wet = compositor.composite_season(series, [(1, 90), (305, 366)])
    """

    def __init__(self, config: "InternalConfig", executor: TileExecutor = None):
        self.config = config
        self.executor = executor or TileExecutor.from_config(config)

    def select(self, series: xr.Dataset, window) -> np.ndarray:
        """Indices of timestamps whose day-of-year lies in `window`.

        Raises
        ------
        InvalidWindow
            If the window is outside 1..366 or lo > hi.
        EmptySelection
            If no timestamp falls inside the window.
        """
        window = TimeWindow(*window).validate()
        doy = series["time"].dt.dayofyear.values
        index = np.flatnonzero(window.contains(doy))
        if index.size == 0:
            raise EmptySelection(
                f"No rasters with day-of-year in [{window.lo}, {window.hi}] "
                f"among {series.sizes['time']} timestamps"
            )
        return index

    def composite(self, series: xr.Dataset, window) -> xr.Dataset:
        """Composite the rasters of `series` that fall in `window`.

        Parameters
        ----------
        series : xr.Dataset
            RasterTimeSeries with bands on (time, y, x).
        window : TimeWindow or (lo, hi)
            Inclusive day-of-year interval.

        Returns
        -------
        xr.Dataset
            CompositeRaster with the series' bands and grid.
        """
        assert_time_series(series)
        index = self.select(series, window)
        window = TimeWindow(*window)
        bands = band_names(series)
        height, width = series.sizes["y"], series.sizes["x"]
        tiles = self.executor.windows(height, width)

        logger.info("Compositing %d/%d rasters for window [%d, %d]",
                    index.size, series.sizes["time"], window.lo, window.hi)

        def _tile(tile):
            block = read_series_block(series, bands, index, tile)
            return mean_of_valid(block, axis=0)

        out = np.full((len(bands), height, width), np.nan, dtype=np.float64)
        for tile, values in zip(tiles, self.executor.map(_tile, tiles)):
            rows, cols = tile.toslices()
            out[:, rows, cols] = values

        composite = like_raster(
            series,
            dict(zip(bands, out)),
            window=f"{window.lo}-{window.hi}",
            n_selected=int(index.size),
        )
        assert_raster(composite, "Composite")
        return composite

    def merge(self, *composites: xr.Dataset) -> xr.Dataset:
        """Equal-weight mean of valid values across co-registered composites.

        With two operands this is the plain pixel-wise mean of the two,
        falling back to whichever is valid, and NaN only where both are NaN.
        """
        require(len(composites) > 0, "Merge contract violated: no composites given")
        reference = composites[0]
        for other in composites[1:]:
            assert_raster(other, "Merge")
            assert_coregistered(reference, other)
        if len(composites) == 1:
            return reference

        bands = band_names(reference)
        merged = {
            b: mean_of_valid(np.stack([np.asarray(c[b].values, dtype=np.float64) for c in composites]))
            for b in bands
        }
        windows = ",".join(str(c.attrs.get("window", "?")) for c in composites)
        return like_raster(reference, merged, window=windows)

    def composite_season(self, series: xr.Dataset, windows: Sequence) -> xr.Dataset:
        """Composite each window of a season and merge them with equal weight."""
        require(len(windows) > 0, "Season contract violated: no windows given")
        parts = [self.composite(series, w) for w in windows]
        return self.merge(*parts)
