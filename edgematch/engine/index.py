"""Wildcard adjacency index over every rotation of the catalog tiles."""

from __future__ import annotations

from collections import defaultdict
from itertools import product
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.constants import ROTATIONS, WILDCARD
from ..core.exceptions import InvariantViolationError
from ..core.models import OrientedTile, Tile
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

ConstraintKey = Tuple[Optional[int], Optional[int], Optional[int], Optional[int]]


class AdjacencyIndex:
    """Maps (top, right, bottom, left) constraints to the oriented tiles meeting them.

    Every oriented tile is stored under all 16 keys obtained by replacing any
    subset of its sides with :data:`WILDCARD`, so a query with some sides
    unknown is a single dictionary lookup.
    """

    def __init__(self, tiles: Iterable[Tile], skip: int = 0) -> None:
        self._entries: Dict[ConstraintKey, List[OrientedTile]] = defaultdict(list)
        self.tile_ids: List[int] = []
        for position, tile in enumerate(tiles):
            if position < skip:
                continue
            self.tile_ids.append(tile.id)
            for rotation in ROTATIONS:
                oriented = OrientedTile(tile, rotation)
                options = [(side, WILDCARD) for side in oriented.sides]
                for key in product(*options):
                    self._entries[key].append(oriented)
        # Freeze into a plain dict so misses never create entries.
        self._entries = dict(self._entries)
        LOGGER.debug(
            "Adjacency index: %d tiles (skipped %d), %d keys",
            len(self.tile_ids),
            skip,
            len(self._entries),
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(
        self,
        top: Optional[int] = WILDCARD,
        right: Optional[int] = WILDCARD,
        bottom: Optional[int] = WILDCARD,
        left: Optional[int] = WILDCARD,
    ) -> Tuple[OrientedTile, ...]:
        """Return oriented tiles matching every concrete side; empty when none do."""

        return tuple(self._entries.get((top, right, bottom, left), ()))

    def require(self, key: ConstraintKey) -> Tuple[OrientedTile, ...]:
        """Strict lookup for keys the caller knows must exist."""

        try:
            return tuple(self._entries[key])
        except KeyError:
            raise InvariantViolationError(f"Adjacency index has no entry for {key}") from None
