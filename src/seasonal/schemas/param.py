"""ParamConfig: Expert defaults for the seasonal transform pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define
fallback values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from seasonal.schemas.base import SeasonalBaseModel


# Landsat 8 OLI TOA Tasselled Cap coefficients (Baig et al. 2014),
# columns: blue, green, red, nir, swir1, swir2
LANDSAT8_TCT_COEFFICIENTS = [
    [0.3029, 0.2786, 0.4733, 0.5599, 0.5080, 0.1872],
    [-0.2941, -0.2430, -0.5424, 0.7276, 0.0713, -0.1608],
    [0.1511, 0.1973, 0.3283, 0.3407, -0.7117, -0.4559],
    [-0.8239, 0.0849, 0.4396, -0.0580, 0.2013, -0.2773],
    [-0.3294, 0.0557, 0.1056, 0.1855, -0.4349, 0.8085],
    [0.1079, -0.9023, 0.4119, 0.0575, -0.0259, 0.0252],
]
LANDSAT8_TCT_BANDS = ["blue", "green", "red", "nir", "swir1", "swir2"]
LANDSAT8_TCT_OUTPUTS = ["brightness", "greenness", "wetness", "fourth", "fifth", "sixth"]


def check_day_windows(windows):
    """Validate a list of (lo, hi) day-of-year pairs."""
    for lo, hi in windows:
        if not (1 <= lo <= 366 and 1 <= hi <= 366):
            raise ValueError(f"Day-of-year window ({lo}, {hi}) outside 1..366")
        if lo > hi:
            raise ValueError(f"Day-of-year window ({lo}, {hi}) has lo > hi (wrap-around not supported)")
    return windows


# =============================================================================
# Nested Configuration Models
# =============================================================================

class TilingConfig(SeasonalBaseModel):
    """Spatial tiling and worker pool."""
    tile_size: int = Field(512, ge=1, description="Tile edge length in pixels")
    max_workers: int = Field(4, ge=1, description="Threads used to process tiles")


class LimitsConfig(SeasonalBaseModel):
    """Host-imposed resource limits (None = unlimited)."""
    max_pixels: Optional[int] = Field(None, ge=1, description="Largest raster (H*W) accepted")
    time_limit_seconds: Optional[float] = Field(None, gt=0, description="Wall-clock limit per tiled pass")


class CovarianceConfig(SeasonalBaseModel):
    """Covariance estimator configuration."""
    max_samples: int = Field(1_000_000, ge=2, description="Upper bound on accumulated pixels")


class EigenConfig(SeasonalBaseModel):
    """Eigen solver and PCA normalisation."""
    symmetry_tolerance: float = Field(1e-8, ge=0, description="Relative asymmetry tolerated")
    eigen_floor: float = Field(1e-10, gt=0, description="Minimum eigenvalue before sqrt")


class TCTConfig(SeasonalBaseModel):
    """Tasselled Cap (fixed linear transform) configuration."""
    enabled: bool = True
    bands: list[str] = Field(default_factory=lambda: list(LANDSAT8_TCT_BANDS))
    coefficients: list[list[float]] = Field(
        default_factory=lambda: [list(row) for row in LANDSAT8_TCT_COEFFICIENTS]
    )
    output_names: list[str] = Field(default_factory=lambda: list(LANDSAT8_TCT_OUTPUTS))

    @model_validator(mode="after")
    def check_matrix_shape(self):
        """Coefficient matrix must be rectangular and agree with bands/outputs."""
        if not self.coefficients:
            raise ValueError("TCT coefficients must have at least one row")
        n_cols = len(self.coefficients[0])
        if any(len(row) != n_cols for row in self.coefficients):
            raise ValueError("TCT coefficients must be a rectangular matrix")
        if len(self.bands) != n_cols:
            raise ValueError(f"TCT has {n_cols} columns but {len(self.bands)} input bands")
        if len(self.output_names) != len(self.coefficients):
            raise ValueError(
                f"TCT has {len(self.coefficients)} rows but {len(self.output_names)} output names"
            )
        return self


class PCAConfig(SeasonalBaseModel):
    """Principal component projection configuration."""
    output_prefix: str = "pc"
    bands: Optional[list[str]] = None  # None = every composite band


class SeasonConfig(SeasonalBaseModel):
    """A named season built from one or more day-of-year windows."""
    name: str
    windows: list[tuple[int, int]] = Field(min_length=1)

    @field_validator("windows")
    @classmethod
    def validate_windows(cls, v):
        """Each window must be inclusive, non-wrapping, within 1..366."""
        return check_day_windows(v)


class LoggingConfig(SeasonalBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None


def default_seasons() -> list[SeasonConfig]:
    return [
        SeasonConfig(name="wet", windows=[(1, 90), (305, 366)]),
        SeasonConfig(name="dry", windows=[(152, 273)]),
    ]


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(SeasonalBaseModel):
    """Complete expert configuration with all defaults.

    This is the single source of truth for all pipeline parameters.
    Every tunable parameter MUST have a default here.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg)

    Runtime code only sees InternalConfig.
    """

    tiling: TilingConfig = Field(default_factory=TilingConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    covariance: CovarianceConfig = Field(default_factory=CovarianceConfig)
    eigen: EigenConfig = Field(default_factory=EigenConfig)
    tct: TCTConfig = Field(default_factory=TCTConfig)
    pca: PCAConfig = Field(default_factory=PCAConfig)
    seasons: list[SeasonConfig] = Field(default_factory=default_seasons)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("seasons")
    @classmethod
    def unique_season_names(cls, v):
        """Season names key the pipeline output, so they must be unique."""
        names = [s.name for s in v]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate season names: {names}")
        return v
