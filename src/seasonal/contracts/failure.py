"""Centralized failure types for the transform pipeline.

Two families live here:

- ContractViolation: a stage did not produce the invariants it promised
  (pipeline bug, programmer error).
- TransformError and subclasses: the caller asked for something the data
  cannot support (bad window, wrong matrix shape, too few samples, budget
  exhausted). Raised synchronously at the call that detects them and never
  retried internally.
"""


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic, not bad user input or
    insufficient data. It means a stage did not produce the invariants
    it promised.

    Key distinction:
    - ValidationError: config error (handled by Pydantic)
    - TransformError: caller misconfiguration or data insufficiency
    - ContractViolation: pipeline bug (programmer error)
    """
    pass


class TransformError(ValueError):
    """Base class for region-wide or matrix-shape problems.

    Per-pixel missing data is never an error; it is propagated as NaN.
    """
    pass


class InvalidWindow(TransformError):
    """Day-of-year window is outside 1..366 or has lo > hi."""
    pass


class EmptySelection(TransformError):
    """A time window selected zero rasters from the series."""
    pass


class BandCountMismatch(TransformError):
    """Raster band count does not match the matrix input dimension."""
    pass


class NameCountMismatch(TransformError):
    """Output name count does not match the matrix output dimension."""
    pass


class InsufficientSamples(TransformError):
    """Fewer than P + 1 eligible pixels for a P-band covariance estimate."""
    pass


class NotSymmetric(TransformError):
    """Matrix handed to the eigen solver is not symmetric within tolerance."""
    pass


class ResourceExceeded(TransformError):
    """Host-imposed pixel-count or run-time limit was exceeded."""
    pass
