"""Symmetric eigen decomposition of a small band covariance matrix."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy import linalg

from seasonal.contracts import NotSymmetric, assert_decomposition
from seasonal.raster.types import EigenDecomposition, frozen_array

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['EigenSolver', 'orient_rows']

logger = logging.getLogger(__name__)


def orient_rows(vectors: np.ndarray) -> np.ndarray:
    """Flip each row so that its largest-magnitude component is positive."""
    pivots = np.argmax(np.abs(vectors), axis=1)
    signs = np.sign(vectors[np.arange(vectors.shape[0]), pivots])
    signs[signs == 0] = 1.0
    return vectors * signs[:, None]


class EigenSolver:
    """Eigenvalues (descending) and unit eigenvector rows of a symmetric matrix.

    A zero or slightly negative smallest eigenvalue (perfectly correlated
    bands) is returned as-is; clamping happens at PCA normalisation.
    """

    def __init__(self, config: "InternalConfig"):
        self.config = config
        self.tolerance = config.eigen.symmetry_tolerance

    def check_symmetric(self, matrix) -> np.ndarray:
        """Return `matrix` as a float array, or raise NotSymmetric."""
        a = np.asarray(matrix, dtype=np.float64)
        if a.ndim != 2 or a.shape[0] != a.shape[1] or a.shape[0] == 0:
            raise NotSymmetric(f"Expected a non-empty square matrix, got shape {a.shape}")
        if not np.all(np.isfinite(a)):
            raise NotSymmetric("Matrix contains non-finite entries")
        asymmetry = float(np.max(np.abs(a - a.T)))
        scale = max(1.0, float(np.max(np.abs(a))))
        if asymmetry > self.tolerance * scale:
            raise NotSymmetric(
                f"Matrix asymmetry {asymmetry:.3g} exceeds tolerance {self.tolerance:.3g} (scale {scale:.3g})"
            )
        return a

    def decompose(self, matrix) -> EigenDecomposition:
        """Decompose a symmetric (P, P) matrix.

        Raises
        ------
        NotSymmetric
            If the matrix is not square, not finite, or asymmetric beyond
            the configured tolerance.
        """
        a = self.check_symmetric(matrix)
        a = (a + a.T) / 2.0
        values, columns = linalg.eigh(a)
        values = values[::-1]
        vectors = orient_rows(columns[:, ::-1].T)

        assert_decomposition(values, vectors)
        logger.info("Eigenvalues: %s", np.array2string(values, precision=4))
        return EigenDecomposition(values=frozen_array(values), vectors=frozen_array(vectors))
