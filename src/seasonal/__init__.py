"""`Seasonal` - seasonal composites and spectral transforms of satellite raster stacks.

Subpackages:
- raster: Compositing, linear (TCT) and data-driven (PCA) transforms
- pipeline: Seasonal processor and library entry point
- schemas: Pydantic configuration
- contracts: Stage invariants and error taxonomy
"""

__version__ = "0.1.0"
