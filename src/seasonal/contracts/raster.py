"""Raster and time-series contracts.

Enforces the data-model guarantees every stage relies on: bands are 2D
floating grids on shared (y, x) dims, series carry a datetime time axis,
and rasters that are combined are co-registered.
"""

import numpy as np
import xarray as xr
from seasonal.contracts.base import require


def assert_raster(ds: xr.Dataset, stage: str = "raster") -> None:
    """Enforce the Raster contract.

    Parameters
    ----------
    ds : xr.Dataset
        Candidate raster.

    stage : str, optional
        Stage name used in the violation message.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        isinstance(ds, xr.Dataset),
        f"{stage} contract violated: expected xr.Dataset, got {type(ds).__name__}"
    )
    require(
        len(ds.data_vars) > 0,
        f"{stage} contract violated: raster has no bands"
    )
    for name, band in ds.data_vars.items():
        require(
            band.dims == ("y", "x"),
            f"{stage} contract violated: band '{name}' has dims {band.dims}, expected ('y', 'x')"
        )
        require(
            np.issubdtype(band.dtype, np.floating),
            f"{stage} contract violated: band '{name}' dtype is {band.dtype}, expected floating"
        )


def assert_time_series(ds: xr.Dataset) -> None:
    """Enforce the RasterTimeSeries contract.

    Raises
    ------
    ContractViolation
        If the series has no datetime 'time' axis or a band is not (time, y, x).
    """
    require(
        isinstance(ds, xr.Dataset),
        f"Series contract violated: expected xr.Dataset, got {type(ds).__name__}"
    )
    require(
        "time" in ds.coords,
        "Series contract violated: missing 'time' coordinate"
    )
    require(
        np.issubdtype(ds["time"].dtype, np.datetime64),
        f"Series contract violated: 'time' dtype is {ds['time'].dtype}, expected datetime64"
    )
    require(
        len(ds.data_vars) > 0,
        "Series contract violated: series has no bands"
    )
    for name, band in ds.data_vars.items():
        require(
            band.dims == ("time", "y", "x"),
            f"Series contract violated: band '{name}' has dims {band.dims}, expected ('time', 'y', 'x')"
        )


def assert_coregistered(a: xr.Dataset, b: xr.Dataset) -> None:
    """Enforce that two rasters share band set, grid shape, transform and CRS."""
    require(
        list(a.data_vars) == list(b.data_vars),
        f"Co-registration contract violated: bands {list(a.data_vars)} != {list(b.data_vars)}"
    )
    require(
        (a.sizes["y"], a.sizes["x"]) == (b.sizes["y"], b.sizes["x"]),
        f"Co-registration contract violated: shape {(a.sizes['y'], a.sizes['x'])} "
        f"!= {(b.sizes['y'], b.sizes['x'])}"
    )
    for key in ("transform", "crs"):
        if key in a.attrs and key in b.attrs:
            require(
                tuple(np.atleast_1d(a.attrs[key])) == tuple(np.atleast_1d(b.attrs[key])),
                f"Co-registration contract violated: '{key}' differs"
            )
