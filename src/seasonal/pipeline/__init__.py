"""Seasonal pipeline orchestration."""

from seasonal.pipeline.processor import SeasonalProcessor, SeasonProducts
from seasonal.pipeline.runner import run_seasonal_pipeline, setup_logging

__all__ = [
    'SeasonalProcessor',
    'SeasonProducts',
    'run_seasonal_pipeline',
    'setup_logging',
]
