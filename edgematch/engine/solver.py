"""CP-SAT grid filling backend using OR-Tools."""

from __future__ import annotations

import time
from typing import Dict, List, Tuple

from ortools.sat.python import cp_model

from ..core.constants import BORDER, ROTATIONS, Side
from ..core.exceptions import InvariantViolationError
from ..core.models import OrientedTile
from ..data.catalog import TileCatalog
from ..utils.logger import get_logger
from .grid import Cell, TileGrid

LOGGER = get_logger(__name__)


def solve_grid_cpsat(config, catalog: TileCatalog):
    """Fill the grid described by ``config`` via CP-SAT.

    Args:
        config: GridSolverConfig with size, border policy and pinned cells.
        catalog: Tiles available for placement.

    Returns:
        GridSolveResult; ``solved`` is False when CP-SAT proves infeasibility
        or runs out of time.
    """
    from .grid_solver import GridSolveResult

    size = config.size
    model = cp_model.CpModel()

    # ------------------------------------------------------------------
    # Step 1: One tile variable and four side variables per cell
    # ------------------------------------------------------------------
    allowed: List[List[int]] = []
    for tile in catalog:
        for rotation in ROTATIONS:
            oriented = OrientedTile(tile, rotation)
            allowed.append([tile.id, *oriented.sides])

    tile_vars: Dict[Cell, cp_model.IntVar] = {}
    side_vars: Dict[Cell, List[cp_model.IntVar]] = {}
    for r in range(size):
        for c in range(size):
            tile_var = model.new_int_var(0, catalog.universe_size - 1, f"T_{r}_{c}")
            sides = [
                model.new_int_var(BORDER, max(catalog.alphabet_size - 1, 0), f"S_{r}_{c}_{side.name}")
                for side in Side
            ]
            model.add_allowed_assignments([tile_var, *sides], allowed)
            tile_vars[(r, c)] = tile_var
            side_vars[(r, c)] = sides

    # ------------------------------------------------------------------
    # Step 2: Each tile used at most once
    # ------------------------------------------------------------------
    model.add_all_different(list(tile_vars.values()))

    # ------------------------------------------------------------------
    # Step 3: Seams match and never join two border sides
    # ------------------------------------------------------------------
    for r in range(size):
        for c in range(size):
            sides = side_vars[(r, c)]
            if c + 1 < size:
                other = side_vars[(r, c + 1)]
                model.add(sides[Side.RIGHT] == other[Side.LEFT])
                model.add(sides[Side.RIGHT] != BORDER)
            if r + 1 < size:
                other = side_vars[(r + 1, c)]
                model.add(sides[Side.BOTTOM] == other[Side.TOP])
                model.add(sides[Side.BOTTOM] != BORDER)
            if config.enforce_border:
                if r == 0:
                    model.add(sides[Side.TOP] == BORDER)
                if r == size - 1:
                    model.add(sides[Side.BOTTOM] == BORDER)
                if c == 0:
                    model.add(sides[Side.LEFT] == BORDER)
                if c == size - 1:
                    model.add(sides[Side.RIGHT] == BORDER)

    # ------------------------------------------------------------------
    # Step 4: Pinned cells
    # ------------------------------------------------------------------
    for (r, c), (tile_id, rotation) in config.pinned.items():
        oriented = catalog.oriented(tile_id, rotation)
        model.add(tile_vars[(r, c)] == tile_id)
        for var, value in zip(side_vars[(r, c)], oriented.sides):
            model.add(var == value)

    # ------------------------------------------------------------------
    # Step 5: Solve
    # ------------------------------------------------------------------
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = config.timeout_seconds
    solver.parameters.num_workers = 4

    LOGGER.info(
        "CP-SAT: %dx%d grid, %d oriented options per cell, solving (timeout=%0.1fs)...",
        size,
        size,
        len(allowed),
        config.timeout_seconds,
    )
    started = time.perf_counter()
    status = solver.solve(model)
    elapsed = time.perf_counter() - started

    grid = TileGrid(size)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.warning("CP-SAT: no solution found (status=%s)", solver.status_name(status))
        return GridSolveResult(
            solved=False,
            grid=grid,
            elapsed_seconds=elapsed,
            reason=solver.status_name(status).lower(),
        )

    LOGGER.info("CP-SAT: solution found in %.2fs", solver.wall_time)

    # ------------------------------------------------------------------
    # Step 6: Extract solution
    # ------------------------------------------------------------------
    for (r, c), tile_var in tile_vars.items():
        tile = catalog[solver.value(tile_var)]
        sides = tuple(solver.value(var) for var in side_vars[(r, c)])
        grid.place(r, c, _orient_to(tile, sides))
    return GridSolveResult(solved=True, grid=grid, elapsed_seconds=elapsed, reason="solved")


def _orient_to(tile, sides: Tuple[int, ...]) -> OrientedTile:
    """Find the rotation of ``tile`` showing ``sides``."""
    for rotation in ROTATIONS:
        oriented = OrientedTile(tile, rotation)
        if oriented.sides == sides:
            return oriented
    raise InvariantViolationError(f"Tile {tile.id} cannot show sides {sides}")
