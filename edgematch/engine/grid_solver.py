"""Exact backtracking fill of a square grid in center-outward order."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.constants import Bounds
from ..core.exceptions import ConfigurationError
from ..data.catalog import TileCatalog
from ..utils.logger import get_logger
from .grid import Cell, TileGrid, spiral_search_order
from .index import AdjacencyIndex


LOGGER = get_logger(__name__)

BACKENDS = ("backtrack", "cpsat")


@dataclass
class GridSolverConfig:
    """Options for a grid fill run."""

    size: int
    enforce_border: bool = False
    # cell -> (tile_id, rotation), placed before the search starts
    pinned: Dict[Cell, Tuple[int, int]] = field(default_factory=dict)
    max_nodes: Optional[int] = None
    backend: str = "backtrack"
    timeout_seconds: float = 60.0


@dataclass
class GridSolveResult:
    solved: bool
    grid: TileGrid
    nodes_visited: int = 0
    elapsed_seconds: float = 0.0
    reason: str = ""


class GridSolver:
    """Fills a grid cell by cell, backtracking on the first dead end.

    The first solution found is returned; solutions are not enumerated.
    """

    def __init__(
        self,
        config: GridSolverConfig,
        catalog: TileCatalog,
        index: Optional[AdjacencyIndex] = None,
    ) -> None:
        if config.backend not in BACKENDS:
            raise ConfigurationError(f"Unknown grid backend {config.backend!r}")
        if config.size * config.size > len(catalog):
            raise ConfigurationError(
                f"A {config.size}x{config.size} grid needs {config.size ** 2} tiles, "
                f"catalog has {len(catalog)}"
            )
        bounds = Bounds(rows=config.size, cols=config.size)
        for row, col in config.pinned:
            if not bounds.contains(row, col):
                raise ConfigurationError(f"Pinned cell {(row, col)} is outside the grid")
        self.config = config
        self.catalog = catalog
        self.index = index or AdjacencyIndex(catalog.tiles)
        self.search_order: List[Cell] = [
            cell for cell in spiral_search_order(config.size) if cell not in config.pinned
        ]
        self._available: List[bool] = [False] * catalog.universe_size
        self._nodes = 0
        self._budget_exhausted = False

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def solve(self) -> GridSolveResult:
        if self.config.backend == "cpsat":
            from .solver import solve_grid_cpsat

            return solve_grid_cpsat(self.config, self.catalog)

        grid = self._seed_grid()
        for tile_id in self.index.tile_ids:
            self._available[tile_id] = True
        for _, _, tile in grid.placed():
            self._available[tile.id] = False
        self._nodes = 0
        self._budget_exhausted = False

        LOGGER.info(
            "Backtracking %dx%d grid (%d pinned, %d cells to search)",
            self.config.size,
            self.config.size,
            len(self.config.pinned),
            len(self.search_order),
        )
        started = time.perf_counter()
        solved = self._solve_from(grid, 0)
        elapsed = time.perf_counter() - started

        if solved:
            reason = "solved"
            LOGGER.info("Grid solved after %d nodes in %.2fs", self._nodes, elapsed)
        else:
            reason = "node_limit" if self._budget_exhausted else "exhausted"
            LOGGER.warning("No grid solution found (%s, %d nodes)", reason, self._nodes)
        return GridSolveResult(
            solved=solved,
            grid=grid,
            nodes_visited=self._nodes,
            elapsed_seconds=elapsed,
            reason=reason,
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def _seed_grid(self) -> TileGrid:
        grid = TileGrid(self.config.size)
        for (row, col), (tile_id, rotation) in self.config.pinned.items():
            grid.place(row, col, self.catalog.oriented(tile_id, rotation))
        if grid.mismatches():
            raise ConfigurationError(f"Pinned tiles disagree: {grid.mismatches()}")
        return grid

    def _solve_from(self, grid: TileGrid, position: int) -> bool:
        if position == len(self.search_order):
            return True
        if self.config.max_nodes is not None and self._nodes >= self.config.max_nodes:
            self._budget_exhausted = True
            return False
        self._nodes += 1

        row, col = self.search_order[position]
        key = grid.constraint_at(row, col, enforce_border=self.config.enforce_border)
        if key is None:
            return False

        for candidate in self.index.lookup(*key):
            if not self._available[candidate.id]:
                continue
            grid.place(row, col, candidate)
            self._available[candidate.id] = False
            if self._solve_from(grid, position + 1):
                return True
            grid.remove(row, col)
            self._available[candidate.id] = True
            if self._budget_exhausted:
                return False
        return False
