"""Pipeline contracts and error taxonomy.

Contracts fail immediately and loudly when a stage does not produce its
promised invariants. The TransformError family reports caller
misconfiguration or data insufficiency.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- TransformError reports what the data cannot support
"""

from seasonal.contracts.failure import (
    ContractViolation,
    TransformError,
    InvalidWindow,
    EmptySelection,
    BandCountMismatch,
    NameCountMismatch,
    InsufficientSamples,
    NotSymmetric,
    ResourceExceeded,
)
from seasonal.contracts.base import require
from seasonal.contracts.raster import assert_raster, assert_time_series, assert_coregistered
from seasonal.contracts.projection import assert_projected, assert_decomposition

__all__ = [
    "ContractViolation",
    "TransformError",
    "InvalidWindow",
    "EmptySelection",
    "BandCountMismatch",
    "NameCountMismatch",
    "InsufficientSamples",
    "NotSymmetric",
    "ResourceExceeded",
    "require",
    "assert_raster",
    "assert_time_series",
    "assert_coregistered",
    "assert_projected",
    "assert_decomposition",
]
