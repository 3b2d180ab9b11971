"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict
from seasonal.schemas.base import SeasonalBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalTilingConfig(SeasonalBaseModel):
    """Runtime tiling configuration."""
    tile_size: int = Field(ge=1)
    max_workers: int = Field(ge=1)


class InternalLimitsConfig(SeasonalBaseModel):
    """Runtime resource limits."""
    max_pixels: Optional[int]
    time_limit_seconds: Optional[float]


class InternalCovarianceConfig(SeasonalBaseModel):
    """Runtime covariance configuration."""
    max_samples: int = Field(ge=2)


class InternalEigenConfig(SeasonalBaseModel):
    """Runtime eigen configuration."""
    symmetry_tolerance: float = Field(ge=0)
    eigen_floor: float = Field(gt=0)


class InternalTCTConfig(SeasonalBaseModel):
    """Runtime Tasselled Cap configuration."""
    enabled: bool
    bands: list[str]
    coefficients: list[list[float]]
    output_names: list[str]


class InternalPCAConfig(SeasonalBaseModel):
    """Runtime PCA configuration."""
    output_prefix: str
    bands: Optional[list[str]]


class InternalSeasonConfig(SeasonalBaseModel):
    """Runtime season definition."""
    name: str
    windows: list[tuple[int, int]] = Field(min_length=1)


class InternalLoggingConfig(SeasonalBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    log_file: Optional[str]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(SeasonalBaseModel):
    """Authoritative runtime configuration.

    This is the ONLY configuration schema that processing code sees.
    It is fully validated, immutable, and contains explicit values for
    all parameters.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.max_samples = config.covariance.max_samples  # NOT .get()
            self.eigen_floor = config.eigen.eigen_floor

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    tiling: InternalTilingConfig
    limits: InternalLimitsConfig
    covariance: InternalCovarianceConfig
    eigen: InternalEigenConfig
    tct: InternalTCTConfig
    pca: InternalPCAConfig
    seasons: list[InternalSeasonConfig]
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
