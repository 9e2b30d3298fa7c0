"""Edge-matching puzzle search engine.

This package exposes the public API surface via:

- ``edgematch.data.catalog.TileCatalog``: loads the static tile catalog.
- ``edgematch.engine.grid_solver.GridSolver``: fills a square grid by backtracking.
- ``edgematch.engine.megatile.MegaTileBuilder``: assembles balanced 2x2 mega-tiles.
"""

from .data.catalog import CatalogConfig, TileCatalog
from .engine.grid_solver import GridSolver, GridSolverConfig
from .engine.megatile import BuilderConfig, MegaTileBuilder

__all__ = [
    "BuilderConfig",
    "CatalogConfig",
    "GridSolver",
    "GridSolverConfig",
    "MegaTileBuilder",
    "TileCatalog",
]

__version__ = "0.1.0"
