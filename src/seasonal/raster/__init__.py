"""Raster stages: compositing, linear transform, covariance, eigen, PCA."""

from seasonal.raster.types import TimeWindow, CovarianceEstimate, EigenDecomposition, frozen_array
from seasonal.raster.grid import (
    make_raster,
    like_raster,
    stack_series,
    band_names,
    raster_shape,
    read_block,
    prepare_region,
    region_mask,
)
from seasonal.raster.tiling import TileExecutor, iter_windows, tree_reduce
from seasonal.raster.projection import BandProjection, LinearProjection, StandardizedPCA, project_raster
from seasonal.raster.compositor import TemporalCompositor, mean_of_valid
from seasonal.raster.linear_transform import LinearTransformEngine
from seasonal.raster.covariance import CovarianceAccumulator, CovarianceEstimator
from seasonal.raster.eigen import EigenSolver
from seasonal.raster.pca import PCAProjector
from seasonal.raster.indices import ndvi, evi

__all__ = [
    "TimeWindow",
    "CovarianceEstimate",
    "EigenDecomposition",
    "frozen_array",
    "make_raster",
    "like_raster",
    "stack_series",
    "band_names",
    "raster_shape",
    "read_block",
    "prepare_region",
    "region_mask",
    "TileExecutor",
    "iter_windows",
    "tree_reduce",
    "BandProjection",
    "LinearProjection",
    "StandardizedPCA",
    "project_raster",
    "TemporalCompositor",
    "mean_of_valid",
    "LinearTransformEngine",
    "CovarianceAccumulator",
    "CovarianceEstimator",
    "EigenSolver",
    "PCAProjector",
    "ndvi",
    "evi",
]
