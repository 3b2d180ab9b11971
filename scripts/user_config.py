"""Seasonal transform user configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Every other setting keeps its expert default
(see seasonal/schemas/param.py).

Usage:
    from seasonal.pipeline import run_seasonal_pipeline
    products = run_seasonal_pipeline(series, region=aoi, user_config="scripts/user_config.py")
"""

CONFIG = {
    # ========================================================================
    # SEASONS (inclusive day-of-year windows, no wrap-around)
    # ========================================================================
    # A season spanning the turn of the year is two windows, merged with
    # equal weight.
    "WINDOWS": {
        "wet": [(1, 90), (305, 366)],   # Nov-Mar rains
        "dry": [(152, 273)],            # Jun-Sep
    },

    # ========================================================================
    # PCA SETTINGS
    # ========================================================================
    "MAX_SAMPLES": 500_000,   # Pixels used for the covariance estimate
    "EIGEN_FLOOR": 1e-10,     # Minimum eigenvalue before sqrt normalisation
    "PCA_PREFIX": "pc",       # Output bands pc1..pcP

    # ========================================================================
    # TASSELLED CAP
    # ========================================================================
    "TCT_ENABLED": True,      # Landsat 8 OLI coefficients by default

    # ========================================================================
    # RESOURCES
    # ========================================================================
    "TILE_SIZE": 512,
    "MAX_WORKERS": 4,
    "MAX_PIXELS": None,           # Reject larger rasters (None = no limit)
    "TIME_LIMIT_SECONDS": None,   # Seconds per tiled pass (None = no limit)

    # ========================================================================
    # LOGGING
    # ========================================================================
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,
}
