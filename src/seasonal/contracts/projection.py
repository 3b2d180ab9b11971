"""Projection and decomposition stage contracts.

Enforces that projected rasters carry exactly the promised output bands on
the source grid, and that an eigen decomposition is ordered and orthonormal.
"""

from typing import Sequence

import numpy as np
import xarray as xr
from seasonal.contracts.base import require


def assert_projected(ds: xr.Dataset, source: xr.Dataset, output_names: Sequence[str]) -> None:
    """Enforce projection stage contract.

    Parameters
    ----------
    ds : xr.Dataset
        Output of a LinearTransformEngine or PCAProjector.

    source : xr.Dataset
        Raster the projection was computed from.

    output_names : sequence of str
        Band names the projection promised, in order.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        list(ds.data_vars) == list(output_names),
        f"Projection contract violated: bands {list(ds.data_vars)}, expected {list(output_names)}"
    )
    require(
        (ds.sizes["y"], ds.sizes["x"]) == (source.sizes["y"], source.sizes["x"]),
        "Projection contract violated: output grid differs from source grid"
    )


def assert_decomposition(values: np.ndarray, vectors: np.ndarray, atol: float = 1e-6) -> None:
    """Enforce eigen decomposition contract.

    Eigenvalues are descending and eigenvector rows are orthonormal.
    """
    n = values.shape[0]
    require(
        vectors.shape == (n, n),
        f"Decomposition contract violated: vectors shape {vectors.shape}, expected {(n, n)}"
    )
    require(
        bool(np.all(np.diff(values) <= atol * max(1.0, float(np.max(np.abs(values)))))),
        "Decomposition contract violated: eigenvalues are not sorted descending"
    )
    require(
        np.allclose(vectors @ vectors.T, np.eye(n), atol=atol),
        "Decomposition contract violated: eigenvector rows are not orthonormal"
    )
