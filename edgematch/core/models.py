"""Data models for tiles, their rotations and 2x2 mega-tiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .constants import BORDER, ROTATIONS, Side, TileKind

Sides = Tuple[int, int, int, int]
BorderPair = Tuple[int, int]


@dataclass(frozen=True)
class Tile:
    """An immutable catalog tile with labels in (top, right, bottom, left) order."""

    id: int
    top: int
    right: int
    bottom: int
    left: int

    @property
    def sides(self) -> Sides:
        return (self.top, self.right, self.bottom, self.left)

    @property
    def kind(self) -> TileKind:
        borders = [side == BORDER for side in self.sides]
        count = sum(borders)
        if count == 0:
            return TileKind.INTERIOR
        if count == 1:
            return TileKind.EDGE
        if count == 2 and any(borders[i] and borders[(i + 1) % 4] for i in range(4)):
            return TileKind.CORNER
        raise ValueError(f"Tile {self.id} has an impossible border pattern {self.sides}")

    def side(self, which: Side) -> int:
        return self.sides[which]


@dataclass(frozen=True)
class OrientedTile:
    """A catalog tile turned clockwise by ``rotation`` quarter turns."""

    tile: Tile
    rotation: int = 0

    def __post_init__(self) -> None:
        if self.rotation not in ROTATIONS:
            raise ValueError(f"Invalid rotation {self.rotation}")

    @property
    def id(self) -> int:
        return self.tile.id

    @property
    def sides(self) -> Sides:
        base = self.tile.sides
        r = self.rotation
        return (base[-r % 4], base[(1 - r) % 4], base[(2 - r) % 4], base[(3 - r) % 4])

    @property
    def top(self) -> int:
        return self.sides[Side.TOP]

    @property
    def right(self) -> int:
        return self.sides[Side.RIGHT]

    @property
    def bottom(self) -> int:
        return self.sides[Side.BOTTOM]

    @property
    def left(self) -> int:
        return self.sides[Side.LEFT]

    def side(self, which: Side) -> int:
        return self.sides[which]

    def rotated(self, quarter_turns: int) -> "OrientedTile":
        return OrientedTile(self.tile, (self.rotation + quarter_turns) % 4)

    def to_jsonable(self) -> Dict[str, object]:
        return {"id": self.id, "rotation": self.rotation, "sides": list(self.sides)}


@dataclass(frozen=True)
class MegaTile:
    """A 2x2 cluster of oriented tiles.

    Layout::

        top_left     top_right
        bottom_left  bottom_right

    Aggregate borders are ordered pairs read left-to-right along the top and
    bottom rows and top-to-bottom along the left and right columns.
    """

    top_left: OrientedTile
    top_right: OrientedTile
    bottom_left: OrientedTile
    bottom_right: OrientedTile

    @property
    def tiles(self) -> Tuple[OrientedTile, OrientedTile, OrientedTile, OrientedTile]:
        return (self.top_left, self.top_right, self.bottom_left, self.bottom_right)

    @property
    def tile_ids(self) -> Tuple[int, ...]:
        return tuple(tile.id for tile in self.tiles)

    @property
    def top(self) -> BorderPair:
        return (self.top_left.top, self.top_right.top)

    @property
    def right(self) -> BorderPair:
        return (self.top_right.right, self.bottom_right.right)

    @property
    def bottom(self) -> BorderPair:
        return (self.bottom_left.bottom, self.bottom_right.bottom)

    @property
    def left(self) -> BorderPair:
        return (self.top_left.left, self.bottom_left.left)

    @property
    def borders(self) -> Tuple[BorderPair, BorderPair, BorderPair, BorderPair]:
        return (self.top, self.right, self.bottom, self.left)

    def internal_mismatches(self) -> List[str]:
        """Describe every internal seam whose labels differ."""

        seams = (
            ("top middle", self.top_left.right, self.top_right.left),
            ("left middle", self.top_left.bottom, self.bottom_left.top),
            ("right middle", self.top_right.bottom, self.bottom_right.top),
            ("bottom middle", self.bottom_left.right, self.bottom_right.left),
        )
        return [f"{name}: {a} != {b}" for name, a, b in seams if a != b]

    def to_jsonable(self) -> Dict[str, object]:
        return {
            "tiles": [tile.to_jsonable() for tile in self.tiles],
            "borders": [list(pair) for pair in self.borders],
        }


def conjugate(pair: BorderPair) -> BorderPair:
    return (pair[1], pair[0])
