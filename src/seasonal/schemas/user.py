"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with flat aliases
for the common knobs (e.g., MAX_SAMPLES -> covariance.max_samples,
WINDOWS -> seasons).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Literal, Optional, Any, Union
from pydantic import Field, field_validator
from seasonal.schemas.base import SeasonalBaseModel


class UserTilingConfig(SeasonalBaseModel):
    """User-facing tiling config."""
    tile_size: Optional[int] = None
    max_workers: Optional[int] = None


class UserLimitsConfig(SeasonalBaseModel):
    """User-facing resource limits."""
    max_pixels: Optional[int] = None
    time_limit_seconds: Optional[float] = None


class UserCovarianceConfig(SeasonalBaseModel):
    """User-facing covariance config."""
    max_samples: Optional[int] = None


class UserEigenConfig(SeasonalBaseModel):
    """User-facing eigen config."""
    symmetry_tolerance: Optional[float] = None
    eigen_floor: Optional[float] = None

    @field_validator("symmetry_tolerance", "eigen_floor", mode="before")
    @classmethod
    def coerce_float(cls, v):
        """Accept int or float."""
        if v is not None:
            return float(v)
        return v


class UserTCTConfig(SeasonalBaseModel):
    """User-facing Tasselled Cap config."""
    enabled: Optional[bool] = None
    bands: Optional[list[str]] = None
    coefficients: Optional[list[list[float]]] = None
    output_names: Optional[list[str]] = None


class UserPCAConfig(SeasonalBaseModel):
    """User-facing PCA config."""
    output_prefix: Optional[str] = None
    bands: Optional[list[str]] = None


class UserConfig(SeasonalBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            MAX_SAMPLES=200_000,
            EIGEN_FLOOR=1e-8,
            WINDOWS={"wet": [(1, 59), (335, 366)], "dry": [(152, 243)]},
        )

        internal = resolve_config(param_cfg, user_cfg)
    """

    # Flat aliases for the recognised options
    max_samples: Optional[int] = Field(None, alias="MAX_SAMPLES")
    eigen_floor: Optional[float] = Field(None, alias="EIGEN_FLOOR")
    windows: Optional[Union[dict[str, list[tuple[int, int]]], list[tuple[int, int]]]] = Field(
        None, alias="WINDOWS"
    )

    # Operational knobs
    tile_size: Optional[int] = Field(None, alias="TILE_SIZE")
    max_workers: Optional[int] = Field(None, alias="MAX_WORKERS")
    max_pixels: Optional[int] = Field(None, alias="MAX_PIXELS")
    time_limit_seconds: Optional[float] = Field(None, alias="TIME_LIMIT_SECONDS")
    tct_enabled: Optional[bool] = Field(None, alias="TCT_ENABLED")
    pca_prefix: Optional[str] = Field(None, alias="PCA_PREFIX")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(
        None, alias="LOG_LEVEL"
    )
    log_file: Optional[str] = Field(None, alias="LOG_FILE")

    # Nested overrides (advanced users)
    tiling: Optional[UserTilingConfig] = None
    limits: Optional[UserLimitsConfig] = None
    covariance: Optional[UserCovarianceConfig] = None
    eigen: Optional[UserEigenConfig] = None
    tct: Optional[UserTCTConfig] = None
    pca: Optional[UserPCAConfig] = None
    seasons: Optional[list[dict[str, Any]]] = None

    model_config = SeasonalBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("eigen_floor", "time_limit_seconds", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if v is not None:
            return float(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def _seasons_from_windows(self) -> list[dict]:
        """Expand the WINDOWS alias into season definitions.

        A bare list of (lo, hi) pairs becomes a single season named
        "season"; a mapping becomes one season per key, in key order.
        """
        if isinstance(self.windows, dict):
            return [{"name": name, "windows": list(w)} for name, w in self.windows.items()]
        return [{"name": "season", "windows": list(self.windows)}]

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        tiling = {}
        if self.tile_size is not None:
            tiling["tile_size"] = self.tile_size
        if self.max_workers is not None:
            tiling["max_workers"] = self.max_workers
        if self.tiling is not None:
            tiling.update(self.tiling.model_dump(exclude_none=True))
        if tiling:
            overrides["tiling"] = tiling

        limits = {}
        if self.max_pixels is not None:
            limits["max_pixels"] = self.max_pixels
        if self.time_limit_seconds is not None:
            limits["time_limit_seconds"] = self.time_limit_seconds
        if self.limits is not None:
            limits.update(self.limits.model_dump(exclude_none=True))
        if limits:
            overrides["limits"] = limits

        covariance = {}
        if self.max_samples is not None:
            covariance["max_samples"] = self.max_samples
        if self.covariance is not None:
            covariance.update(self.covariance.model_dump(exclude_none=True))
        if covariance:
            overrides["covariance"] = covariance

        eigen = {}
        if self.eigen_floor is not None:
            eigen["eigen_floor"] = self.eigen_floor
        if self.eigen is not None:
            eigen.update(self.eigen.model_dump(exclude_none=True))
        if eigen:
            overrides["eigen"] = eigen

        tct = {}
        if self.tct_enabled is not None:
            tct["enabled"] = self.tct_enabled
        if self.tct is not None:
            tct.update(self.tct.model_dump(exclude_none=True))
        if tct:
            overrides["tct"] = tct

        pca = {}
        if self.pca_prefix is not None:
            pca["output_prefix"] = self.pca_prefix
        if self.pca is not None:
            pca.update(self.pca.model_dump(exclude_none=True))
        if pca:
            overrides["pca"] = pca

        # Explicit seasons win over the WINDOWS shorthand
        if self.seasons is not None:
            overrides["seasons"] = self.seasons
        elif self.windows is not None:
            overrides["seasons"] = self._seasons_from_windows()

        logging_cfg = {}
        if self.log_level is not None:
            logging_cfg["level"] = self.log_level
        if self.log_file is not None:
            logging_cfg["log_file"] = self.log_file
        if logging_cfg:
            overrides["logging"] = logging_cfg

        return overrides
