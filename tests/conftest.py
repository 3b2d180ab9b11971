"""Root-level pytest fixtures for the seasonal transform test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture. Tests use these fixtures instead of building raw dict configs.
"""

import pytest

from seasonal.schemas import ParamConfig, UserConfig, resolve_config


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration with small tiles, single worker.

    Small tiles make every synthetic raster span several tiles, so the
    tiled code paths are exercised even on 5x7 grids.

    Examples
    --------
    >>> def test_compositor_init(internal_config):
    ...     compositor = TemporalCompositor(internal_config)
    """
    return resolve_config(param_config, UserConfig(TILE_SIZE=2, MAX_WORKERS=1))


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs. Tiles
    default to 2x2 with one worker unless overridden.

    Examples
    --------
    >>> def test_custom_samples(make_config):
    ...     config = make_config(MAX_SAMPLES=10)
    ...     assert CovarianceEstimator(config).max_samples == 10
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        overrides = {"TILE_SIZE": 2, "MAX_WORKERS": 1}
        overrides.update(user_overrides)
        return resolve_config(param_config, UserConfig(**overrides))

    return _make
