"""Raster construction, block access and region masking.

A Raster is an xarray.Dataset of float (y, x) bands with NaN as no-data;
grid metadata sits in ``attrs["transform"]`` (affine coefficients a..f)
and ``attrs["crs"]``. A RasterTimeSeries is the same with a leading
``time`` dimension.

Stages never call ``.values`` on a whole band: they read one tile window at
a time through :func:`read_block` / :func:`read_series_block`, so a lazily
backed dataset is only materialised tile by tile.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
import xarray as xr
from affine import Affine
from rasterio import windows as rio_windows
from rasterio.features import geometry_mask
from rasterio.warp import transform_geom
from rasterio.windows import Window
from shapely.geometry import mapping

from seasonal.contracts import assert_raster, assert_coregistered

__all__ = [
    'make_raster',
    'like_raster',
    'stack_series',
    'band_names',
    'raster_shape',
    'grid_transform',
    'read_block',
    'read_series_block',
    'prepare_region',
    'region_mask',
]

logger = logging.getLogger(__name__)


def grid_transform(ds: xr.Dataset) -> Affine:
    """Affine transform of the raster grid (identity when absent)."""
    coeffs = ds.attrs.get("transform")
    if coeffs is None:
        return Affine.identity()
    return Affine(*tuple(coeffs)[:6])


def _grid_coords(transform: Affine, height: int, width: int) -> dict:
    """Pixel-centre x/y coordinates for a north-up grid."""
    cols = np.arange(width) + 0.5
    rows = np.arange(height) + 0.5
    return {
        "y": transform.f + rows * transform.e,
        "x": transform.c + cols * transform.a,
    }


def make_raster(
    bands: Mapping[str, Any],
    transform: Optional[Affine] = None,
    crs: Optional[str] = None,
) -> xr.Dataset:
    """Build a Raster from an ordered mapping of band name -> 2D array.

    Parameters
    ----------
    bands : mapping of str to array-like
        Band grids, all with the same (height, width). Order is preserved.
    transform : Affine, optional
        Grid transform. Defaults to the identity pixel grid.
    crs : str, optional
        Coordinate reference system, e.g. "EPSG:32636".

    Returns
    -------
    xr.Dataset
        Float64 bands on dims (y, x), NaN as no-data.
    """
    arrays = {name: np.asarray(values, dtype=np.float64) for name, values in bands.items()}
    shapes = {a.shape for a in arrays.values()}
    if len(shapes) != 1:
        raise ValueError(f"All bands must share one shape, got {sorted(shapes)}")
    height, width = next(iter(shapes))

    transform = transform if transform is not None else Affine.identity()
    attrs = {"transform": tuple(transform)[:6]}
    if crs is not None:
        attrs["crs"] = str(crs)

    ds = xr.Dataset(
        {name: (("y", "x"), a) for name, a in arrays.items()},
        coords=_grid_coords(transform, height, width),
        attrs=attrs,
    )
    assert_raster(ds, "make_raster")
    return ds


def like_raster(source: xr.Dataset, bands: Mapping[str, np.ndarray], **extra_attrs) -> xr.Dataset:
    """Wrap arrays as a Raster on the grid of `source` (coords and attrs copied)."""
    coords = {k: source.coords[k] for k in ("y", "x") if k in source.coords}
    attrs = {k: v for k, v in source.attrs.items() if k in ("transform", "crs")}
    attrs.update(extra_attrs)
    return xr.Dataset(
        {name: (("y", "x"), np.asarray(a, dtype=np.float64)) for name, a in bands.items()},
        coords=coords,
        attrs=attrs,
    )


def stack_series(pairs: Iterable[tuple]) -> xr.Dataset:
    """Stack (timestamp, Raster) pairs into a RasterTimeSeries.

    Rasters must be co-registered (same bands in the same order, same
    shape, transform and CRS). Output is sorted by time.

    Raises
    ------
    ValueError
        If `pairs` is empty.
    ContractViolation
        If any raster is not co-registered with the first one.
    """
    pairs = sorted(((pd.Timestamp(t), r) for t, r in pairs), key=lambda p: p[0])
    if not pairs:
        raise ValueError("Cannot build a time series from zero rasters")

    reference = pairs[0][1]
    for _, raster in pairs:
        assert_raster(raster, "stack_series")
        assert_coregistered(reference, raster)

    times = pd.DatetimeIndex([t for t, _ in pairs])
    if times.tz is not None:
        times = times.tz_convert("UTC").tz_localize(None)

    series = xr.concat(
        [raster for _, raster in pairs],
        dim=pd.Index(times, name="time"),
        coords="minimal",
        compat="override",
        join="override",
    )
    series.attrs = dict(reference.attrs)
    logger.debug("Stacked %d rasters into series, bands=%s", len(pairs), list(series.data_vars))
    return series


def band_names(ds: xr.Dataset) -> list:
    return list(ds.data_vars)


def raster_shape(ds: xr.Dataset) -> tuple:
    return ds.sizes["y"], ds.sizes["x"]


def read_block(ds: xr.Dataset, bands: Sequence[str], window: Window) -> np.ndarray:
    """Read one tile of a Raster as a (P, h, w) float64 array."""
    rows, cols = window.toslices()
    return np.stack(
        [np.asarray(ds[b].isel(y=rows, x=cols).values, dtype=np.float64) for b in bands],
        axis=0,
    )


def read_series_block(series: xr.Dataset, bands: Sequence[str], time_index: np.ndarray,
                      window: Window) -> np.ndarray:
    """Read one tile of selected timestamps as a (T, P, h, w) float64 array."""
    rows, cols = window.toslices()
    return np.stack(
        [
            np.asarray(series[b].isel(time=time_index, y=rows, x=cols).values, dtype=np.float64)
            for b in bands
        ],
        axis=1,
    )


def prepare_region(region: Any, raster: xr.Dataset, geom_crs: Optional[str] = None) -> Optional[dict]:
    """Normalise a region to a GeoJSON-like mapping in the raster CRS.

    Parameters
    ----------
    region : shapely geometry, GeoJSON mapping, or None
        Area of interest. None selects the whole raster.
    raster : xr.Dataset
        Raster whose CRS the region is reprojected into.
    geom_crs : str, optional
        CRS of `region`. Reprojected only when both CRSs are known and differ.
    """
    if region is None:
        return None
    geom = region if isinstance(region, dict) else mapping(region)
    raster_crs = raster.attrs.get("crs")
    if geom_crs and raster_crs and str(geom_crs) != str(raster_crs):
        geom = transform_geom(geom_crs, raster_crs, geom)
        logger.debug("Region reprojected from %s to %s", geom_crs, raster_crs)
    return geom


def region_mask(geom: Optional[dict], transform: Affine, window: Window) -> np.ndarray:
    """Boolean (h, w) mask, True where the pixel centre lies inside `geom`."""
    shape = (int(window.height), int(window.width))
    if geom is None:
        return np.ones(shape, dtype=bool)
    return geometry_mask(
        [geom],
        out_shape=shape,
        transform=rio_windows.transform(window, transform),
        invert=True,
    )
