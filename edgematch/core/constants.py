"""Shared constants and enumerations for the edge-matching engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


BORDER = -1
"""Side label of a tile edge that sits on the puzzle border."""

WILDCARD: Optional[int] = None
"""Index lookup placeholder meaning "any label" for one side."""

ROTATIONS: Tuple[int, ...] = (0, 1, 2, 3)

# Neighbour offsets in (top, right, bottom, left) order.
ORTHOGONAL_STEPS: Tuple[Tuple[int, int], ...] = ((-1, 0), (0, 1), (1, 0), (0, -1))

DEFAULT_STARTER: Tuple[int, int] = (138, 1)
"""Puzzle-mandated starter tile id and rotation for the bundled catalog."""

DEFAULT_HINTS: Tuple[Tuple[int, int, int], ...] = (
    (207, 3, 45),
    (254, 2, 46),
    (180, 0, 47),
    (248, 2, 48),
)
"""Hint tiles as ``(tile_id, rotation, commit_count)`` for hinted mode."""

DEFAULT_INTERIOR_SKIP = 60


class Side(int, Enum):
    """Tile sides in clockwise order starting at the top."""

    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3

    @property
    def opposite(self) -> "Side":
        return Side((self.value + 2) % 4)


class TileKind(str, Enum):
    """Shape classes derived from the sentinel pattern of a tile."""

    CORNER = "CORNER"
    EDGE = "EDGE"
    INTERIOR = "INTERIOR"


@dataclass(frozen=True)
class Bounds:
    """Simple square bounds helper."""

    rows: int
    cols: int

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols
