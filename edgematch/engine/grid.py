"""Grid representation and placement helpers."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from ..core.constants import BORDER, ORTHOGONAL_STEPS, WILDCARD, Bounds, Side
from ..core.exceptions import InvariantViolationError
from ..core.models import OrientedTile
from .index import ConstraintKey

Cell = Tuple[int, int]


class TileGrid:
    """An N x N board of optional oriented tiles."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"Grid size must be positive, got {size}")
        self.size = size
        self.bounds = Bounds(rows=size, cols=size)
        self.cells: List[List[Optional[OrientedTile]]] = [
            [None for _ in range(size)] for _ in range(size)
        ]
        self._positions: Dict[int, Cell] = {}

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------
    def cell(self, row: int, col: int) -> Optional[OrientedTile]:
        return self.cells[row][col]

    def place(self, row: int, col: int, tile: OrientedTile) -> None:
        if self.cells[row][col] is not None:
            raise InvariantViolationError(f"Cell {(row, col)} is already filled")
        if tile.id in self._positions:
            raise InvariantViolationError(
                f"Tile {tile.id} already placed at {self._positions[tile.id]}"
            )
        self.cells[row][col] = tile
        self._positions[tile.id] = (row, col)

    def remove(self, row: int, col: int) -> OrientedTile:
        tile = self.cells[row][col]
        if tile is None:
            raise InvariantViolationError(f"Cell {(row, col)} is already empty")
        self.cells[row][col] = None
        del self._positions[tile.id]
        return tile

    def placed(self) -> Iterator[Tuple[int, int, OrientedTile]]:
        for r, row in enumerate(self.cells):
            for c, tile in enumerate(row):
                if tile is not None:
                    yield r, c, tile

    @property
    def filled_count(self) -> int:
        return len(self._positions)

    def is_full(self) -> bool:
        return self.filled_count == self.size * self.size

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------
    def constraint_at(self, row: int, col: int, enforce_border: bool = False) -> Optional[ConstraintKey]:
        """Constraint tuple implied by the placed neighbours of a cell.

        Sides without a placed neighbour are wildcards; off-grid sides are
        wildcards unless ``enforce_border`` asks for :data:`BORDER`. Returns
        ``None`` when a neighbour shows a border side inward, since nothing
        can match across it.
        """

        key: List[Optional[int]] = []
        for side, (dr, dc) in zip(Side, ORTHOGONAL_STEPS):
            nr, nc = row + dr, col + dc
            if not self.bounds.contains(nr, nc):
                key.append(BORDER if enforce_border else WILDCARD)
                continue
            neighbour = self.cells[nr][nc]
            if neighbour is None:
                key.append(WILDCARD)
                continue
            facing = neighbour.side(side.opposite)
            if facing == BORDER:
                return None
            key.append(facing)
        return (key[0], key[1], key[2], key[3])

    def mismatches(self) -> List[Tuple[Cell, Cell]]:
        """Adjacent filled cell pairs whose touching sides disagree."""

        bad: List[Tuple[Cell, Cell]] = []
        for r, c, tile in self.placed():
            if c + 1 < self.size:
                right = self.cells[r][c + 1]
                if right is not None and not _sides_match(tile.right, right.left):
                    bad.append(((r, c), (r, c + 1)))
            if r + 1 < self.size:
                below = self.cells[r + 1][c]
                if below is not None and not _sides_match(tile.bottom, below.top):
                    bad.append(((r, c), (r + 1, c)))
        return bad

    def match_count(self) -> int:
        return sum(1 for _ in self._seams()) - len(self.mismatches())

    def _seams(self) -> Iterator[Tuple[Cell, Cell]]:
        for r, c, _ in self.placed():
            if c + 1 < self.size and self.cells[r][c + 1] is not None:
                yield (r, c), (r, c + 1)
            if r + 1 < self.size and self.cells[r + 1][c] is not None:
                yield (r, c), (r + 1, c)

    def to_jsonable(self) -> List[List[Optional[Dict[str, object]]]]:
        return [[tile.to_jsonable() if tile else None for tile in row] for row in self.cells]


def _sides_match(a: int, b: int) -> bool:
    return a == b and a != BORDER


def spiral_search_order(size: int) -> List[Cell]:
    """Cells of a ``size`` x ``size`` grid on a square spiral from the center outward.

    The walk starts at ``(size // 2, size // 2)`` heading right and turns
    clockwise, lengthening its run every second turn. Positions that fall off
    the grid are skipped, so even sizes are covered as well.
    """

    order: List[Cell] = []
    row = col = size // 2
    # right, down, left, up
    headings = ((0, 1), (1, 0), (0, -1), (-1, 0))
    heading = 0
    run = 1
    bounds = Bounds(rows=size, cols=size)
    while len(order) < size * size:
        for _ in range(2):
            dr, dc = headings[heading]
            for _ in range(run):
                if bounds.contains(row, col):
                    order.append((row, col))
                row += dr
                col += dc
            heading = (heading + 1) % 4
        run += 1
    return order
