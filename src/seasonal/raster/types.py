"""Value types passed between stages.

All of these are immutable once built; stages consume one and produce a
new one.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from seasonal.contracts import InvalidWindow

__all__ = ['TimeWindow', 'CovarianceEstimate', 'EigenDecomposition', 'frozen_array']


def frozen_array(values, dtype=np.float64) -> np.ndarray:
    """Copy `values` into a read-only float array."""
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


class TimeWindow(NamedTuple):
    """Inclusive day-of-year interval [lo, hi], no wrap-around."""
    lo: int
    hi: int

    def validate(self) -> "TimeWindow":
        """Raise InvalidWindow unless 1 <= lo <= hi <= 366."""
        if not (1 <= self.lo <= 366 and 1 <= self.hi <= 366):
            raise InvalidWindow(f"Window ({self.lo}, {self.hi}) outside day-of-year range 1..366")
        if self.lo > self.hi:
            raise InvalidWindow(
                f"Window ({self.lo}, {self.hi}) has lo > hi; wrap-around windows are not supported, "
                "split them into two windows"
            )
        return self

    def contains(self, doy):
        """Vectorised inclusive membership test on day-of-year values."""
        doy = np.asarray(doy)
        return (doy >= self.lo) & (doy <= self.hi)


@dataclass(frozen=True)
class CovarianceEstimate:
    """Band mean vector and centred covariance over a region."""
    mean: np.ndarray            # (P,)
    covariance: np.ndarray      # (P, P), symmetric
    band_names: tuple           # P band names, matrix order
    n_eligible: int             # pixels valid in all bands inside the region
    n_samples: int              # pixels actually accumulated

    @property
    def n_bands(self) -> int:
        return len(self.band_names)


@dataclass(frozen=True)
class EigenDecomposition:
    """Eigenvalues (descending) paired with unit eigenvector rows."""
    values: np.ndarray          # (P,)
    vectors: np.ndarray         # (P, P), row i pairs with values[i]

    def reconstruct(self) -> np.ndarray:
        """Return sum_i values[i] * outer(vectors[i], vectors[i])."""
        return (self.vectors.T * self.values) @ self.vectors
