"""Library entry point: resolve configuration, set up logging, run."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import xarray as xr

from seasonal.pipeline.processor import SeasonalProcessor, SeasonProducts
from seasonal.schemas import ParamConfig, UserConfig, resolve_config, load_user_config_dict

__all__ = ['setup_logging', 'run_seasonal_pipeline']

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO", log_path: Optional[Union[str, Path]] = None) -> None:
    """Configure the root logger with a console and an optional file handler.

    Existing root handlers are removed so repeated calls do not duplicate
    output.
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if log_path is not None:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    logger.info("Logging: level=%s, file=%s", logging.getLevelName(log_level), log_path)


def run_seasonal_pipeline(
    series: xr.Dataset,
    region: Any = None,
    user_config: Optional[Union[dict, UserConfig, str, Path]] = None,
    geom_crs: Optional[str] = None,
    configure_logging: bool = True,
    verbose: bool = False,
) -> Dict[str, SeasonProducts]:
    """Execute the seasonal transform pipeline on an in-memory series.

    1. Resolves configuration (Param < User)
    2. Sets up logging from the resolved config
    3. Runs SeasonalProcessor over every configured season

    Parameters
    ----------
    series : xr.Dataset
        RasterTimeSeries (bands on time, y, x).
    region : shapely geometry or GeoJSON mapping, optional
        Area over which PCA statistics are estimated.
    user_config : dict, UserConfig, or path, optional
        Overrides. A path is read as a Python file holding a CONFIG dict.
    geom_crs : str, optional
        CRS of `region` when it differs from the series CRS.
    configure_logging : bool, optional
        Install root logging handlers (disable when embedding in an
        application that configures logging itself).
    verbose : bool, optional
        Force DEBUG logging and log the full resolved configuration.

    Returns
    -------
    dict of str to SeasonProducts
        One entry per configured season, in configuration order.

    Raises
    ------
    ValidationError
        If the configuration is invalid.
    TransformError
        If a stage cannot process the data.

    Examples
    --------
    >>> products = run_seasonal_pipeline(series, region=aoi,
    ...                                  user_config={"MAX_SAMPLES": 200_000})
    >>> products["dry"].pca
    """
    if isinstance(user_config, (str, Path)):
        user_config = load_user_config_dict(str(user_config))
    if verbose:
        if isinstance(user_config, UserConfig):
            user_config = user_config.model_dump(exclude_none=True)
        user_config = {**(user_config or {}), "LOG_LEVEL": "DEBUG"}

    config = resolve_config(ParamConfig(), user_config)

    if configure_logging:
        setup_logging(config.logging.level, config.logging.log_file)
    if verbose:
        logger.debug("Resolved configuration:\n%s", json.dumps(config.model_dump(), indent=2))

    processor = SeasonalProcessor(config)
    return processor.run(series, region=region, geom_crs=geom_crs)
