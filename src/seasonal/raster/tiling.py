"""Spatial tiling and data-parallel tile execution.

Every stage is pixel-local except the covariance reduction, so work is
split into row-major tiles, mapped over a thread pool (numpy releases the
GIL in the heavy kernels) and, where a global aggregate is needed, merged
with a fixed-shape pairwise tree so the floating-point result does not
depend on which thread finished first.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from typing import Callable, List, Optional, Sequence, TypeVar, TYPE_CHECKING

from rasterio.windows import Window

from seasonal.contracts import ResourceExceeded

if TYPE_CHECKING:
    from seasonal.schemas import InternalConfig

__all__ = ['TileExecutor', 'iter_windows', 'tree_reduce']

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def iter_windows(height: int, width: int, tile_size: int) -> List[Window]:
    """Row-major tiles covering a height x width grid; edge tiles are clipped."""
    tiles = []
    for row_off in range(0, height, tile_size):
        for col_off in range(0, width, tile_size):
            tiles.append(Window(
                col_off=col_off,
                row_off=row_off,
                width=min(tile_size, width - col_off),
                height=min(tile_size, height - row_off),
            ))
    return tiles


def tree_reduce(items: Sequence[T], combine: Callable[[T, T], T]) -> T:
    """Merge items pairwise, level by level, in a fixed order.

    Level k combines (0,1), (2,3), ... of level k-1; an odd trailing item is
    carried up unchanged. The result depends only on the item order.

    Raises
    ------
    ValueError
        If `items` is empty.
    """
    level = list(items)
    if not level:
        raise ValueError("tree_reduce needs at least one item")
    while len(level) > 1:
        merged = [combine(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            merged.append(level[-1])
        level = merged
    return level[0]


class TileExecutor:
    """Map a per-tile function over a raster grid under resource limits.

    Parameters
    ----------
    tile_size : int
        Tile edge length in pixels.
    max_workers : int
        Thread pool size. 1 runs tiles inline.
    max_pixels : int, optional
        Reject grids with more than this many pixels (ResourceExceeded).
    time_limit_seconds : float, optional
        Wall-clock budget for one map() call (ResourceExceeded when exceeded;
        no partial result is returned).

    Examples
    --------
    >>> executor = TileExecutor(tile_size=256, max_workers=4)
    >>> tiles = executor.windows(1000, 800)
    >>> sums = executor.map(lambda w: float(w.width * w.height), tiles)
    """

    def __init__(self, tile_size: int, max_workers: int = 1,
                 max_pixels: Optional[int] = None,
                 time_limit_seconds: Optional[float] = None):
        if tile_size < 1:
            raise ValueError(f"tile_size must be >= 1, got {tile_size}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.tile_size = tile_size
        self.max_workers = max_workers
        self.max_pixels = max_pixels
        self.time_limit_seconds = time_limit_seconds

    @classmethod
    def from_config(cls, config: "InternalConfig") -> "TileExecutor":
        return cls(
            tile_size=config.tiling.tile_size,
            max_workers=config.tiling.max_workers,
            max_pixels=config.limits.max_pixels,
            time_limit_seconds=config.limits.time_limit_seconds,
        )

    def check_size(self, height: int, width: int) -> None:
        """Raise ResourceExceeded if the grid is larger than max_pixels."""
        n_pixels = int(height) * int(width)
        if self.max_pixels is not None and n_pixels > self.max_pixels:
            raise ResourceExceeded(
                f"Raster has {n_pixels} pixels ({height}x{width}), limit is {self.max_pixels}"
            )

    def windows(self, height: int, width: int) -> List[Window]:
        """Validate the grid size and return its tiles."""
        self.check_size(height, width)
        return iter_windows(height, width, self.tile_size)

    def map(self, fn: Callable[[T], R], tiles: Sequence[T]) -> List[R]:
        """Apply `fn` to every tile (or per-tile work item); results come back in order."""
        deadline = None
        if self.time_limit_seconds is not None:
            deadline = time.monotonic() + self.time_limit_seconds

        if self.max_workers == 1 or len(tiles) <= 1:
            results = []
            for tile in tiles:
                results.append(fn(tile))
                self._check_deadline(deadline, len(results), len(tiles))
            return results

        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tile")
        futures = [pool.submit(fn, tile) for tile in tiles]
        try:
            results = []
            for future in futures:
                timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
                try:
                    results.append(future.result(timeout=timeout))
                except FuturesTimeout:
                    raise ResourceExceeded(
                        f"Time limit of {self.time_limit_seconds}s exceeded after "
                        f"{len(results)}/{len(tiles)} tiles"
                    ) from None
        except BaseException:
            pool.shutdown(wait=True, cancel_futures=True)
            raise
        pool.shutdown(wait=True)
        logger.debug("Processed %d tiles with %d workers", len(tiles), self.max_workers)
        return results

    def _check_deadline(self, deadline: Optional[float], done: int, total: int) -> None:
        if deadline is not None and time.monotonic() > deadline and done < total:
            raise ResourceExceeded(
                f"Time limit of {self.time_limit_seconds}s exceeded after {done}/{total} tiles"
            )
