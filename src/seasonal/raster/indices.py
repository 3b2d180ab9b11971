"""Vegetation index band math.

Works on a Raster or a RasterTimeSeries alike: the index is evaluated
element-wise, so a series of indices can be composited exactly like a
series of reflectance bands. NaN in any input band, and a zero
denominator, give NaN.
"""

import logging

import numpy as np
import xarray as xr

from seasonal.contracts import BandCountMismatch

__all__ = ['ndvi', 'evi', 'normalized_difference']

logger = logging.getLogger(__name__)


def _bands(ds: xr.Dataset, *names: str) -> list:
    missing = [n for n in names if n not in ds.data_vars]
    if missing:
        raise BandCountMismatch(f"Index needs bands {list(names)}; missing {missing}")
    return [ds[n].astype(np.float64) for n in names]


def _ratio(numerator: xr.DataArray, denominator: xr.DataArray) -> xr.DataArray:
    return numerator / denominator.where(denominator != 0)


def _as_index(ds: xr.Dataset, name: str, values: xr.DataArray) -> xr.Dataset:
    grid_attrs = {k: v for k, v in ds.attrs.items() if k in ("transform", "crs")}
    return xr.Dataset({name: values.rename(name)}, attrs=grid_attrs)


def normalized_difference(ds: xr.Dataset, a: str, b: str, name: str) -> xr.Dataset:
    """(a - b) / (a + b) as a single-band dataset named `name`."""
    band_a, band_b = _bands(ds, a, b)
    return _as_index(ds, name, _ratio(band_a - band_b, band_a + band_b))


def ndvi(ds: xr.Dataset, red: str = "red", nir: str = "nir", name: str = "ndvi") -> xr.Dataset:
    """Normalized difference vegetation index (nir - red) / (nir + red)."""
    return normalized_difference(ds, nir, red, name)


def evi(ds: xr.Dataset, blue: str = "blue", red: str = "red", nir: str = "nir",
        name: str = "evi") -> xr.Dataset:
    """Enhanced vegetation index.

    EVI = 2.5 * (nir - red) / (nir + 6 * red - 7.5 * blue + 1), with the
    MODIS/Landsat coefficients on surface reflectance scaled to 0..1.
    """
    b, r, n = _bands(ds, blue, red, nir)
    values = 2.5 * _ratio(n - r, n + 6.0 * r - 7.5 * b + 1.0)
    logger.debug("Computed %s over dims %s", name, dict(values.sizes))
    return _as_index(ds, name, values)
