"""Pydantic configuration schemas for the seasonal transform pipeline.

This module provides strictly typed configuration models. All configuration
validation, coercion, and normalization happens at schema validation time
via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
load_user_config_dict : function
    Read a CONFIG dict from a Python file
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
"""

from seasonal.schemas.resolve import resolve_config, load_user_config_dict
from seasonal.schemas.internal import InternalConfig
from seasonal.schemas.param import ParamConfig
from seasonal.schemas.user import UserConfig

__all__ = [
    'resolve_config',
    'load_user_config_dict',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
]
