"""Mutable trackers shared by every level of the mega-tile search."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple

from ..core.constants import BORDER
from ..core.exceptions import InvariantViolationError
from ..core.models import BorderPair, MegaTile, conjugate


@dataclass(frozen=True)
class TrackerSnapshot:
    """Immutable copy of every tracker, used to compare states."""

    available: Tuple[bool, ...]
    border_pair_count: Dict[BorderPair, int]
    edge_usage_count: Tuple[int, ...]
    unpaired_pairs: FrozenSet[BorderPair]
    paired_pairs: FrozenSet[BorderPair]
    megatile_count: int


class SearchState:
    """Availability, border-pair and label-usage trackers with paired commit/rollback.

    The search owns a single instance and mutates it in place; every
    :meth:`commit` is undone by a :meth:`rollback` of the same mega-tile
    before control returns to the caller, which restores every tracker to
    its exact previous value. Pinned tile ids are never returned to the
    available pool.
    """

    def __init__(
        self,
        universe_size: int,
        alphabet_size: int,
        eligible_ids: Iterable[int],
        pinned: Iterable[int] = (),
    ) -> None:
        self.available: List[bool] = [False] * universe_size
        for tile_id in eligible_ids:
            self.available[tile_id] = True
        self.pinned: FrozenSet[int] = frozenset(pinned)
        for tile_id in self.pinned:
            self.available[tile_id] = False
        self.border_pair_count: Counter = Counter()
        self.edge_usage_count: List[int] = [0] * alphabet_size
        self.unpaired_pairs: Set[BorderPair] = set()
        self.paired_pairs: Set[BorderPair] = set()
        self.megatiles: List[MegaTile] = []

    @property
    def count(self) -> int:
        return len(self.megatiles)

    @property
    def distinct_pair_types(self) -> int:
        return len(self.border_pair_count)

    def is_available(self, tile_id: int) -> bool:
        return self.available[tile_id]

    # ------------------------------------------------------------------
    # Commit / rollback
    # ------------------------------------------------------------------
    def commit(self, megatile: MegaTile) -> None:
        ids = megatile.tile_ids
        if len(set(ids)) != len(ids):
            raise InvariantViolationError(f"Mega-tile reuses a tile: {ids}")
        for tile_id in ids:
            if not self.available[tile_id] and tile_id not in self.pinned:
                raise InvariantViolationError(f"Tile {tile_id} committed while in use")

        for tile in megatile.tiles:
            self.available[tile.id] = False
            for side in tile.sides:
                if side != BORDER:
                    self.edge_usage_count[side] += 1
        for pair in megatile.borders:
            self.border_pair_count[pair] += 1
        self.megatiles.append(megatile)
        self.reclassify()

    def rollback(self, megatile: MegaTile) -> None:
        if not self.megatiles or self.megatiles[-1] != megatile:
            raise InvariantViolationError("Rollback must undo the most recent commit")
        self.megatiles.pop()

        for tile in megatile.tiles:
            if tile.id not in self.pinned:
                self.available[tile.id] = True
            for side in tile.sides:
                if side != BORDER:
                    self.edge_usage_count[side] -= 1
        for pair in megatile.borders:
            remaining = self.border_pair_count[pair] - 1
            if remaining < 0:
                raise InvariantViolationError(f"Border pair {pair} count went negative")
            if remaining == 0:
                del self.border_pair_count[pair]
            else:
                self.border_pair_count[pair] = remaining
        self.reclassify()

    def reclassify(self) -> None:
        """Recompute the paired / unpaired split from the running pair counts."""

        self.unpaired_pairs.clear()
        self.paired_pairs.clear()
        for pair, count in self.border_pair_count.items():
            if pair[0] == pair[1]:
                if count % 2:
                    self.unpaired_pairs.add(pair)
                else:
                    self.paired_pairs.add(pair)
                continue
            conjugate_count = self.border_pair_count.get(conjugate(pair), 0)
            if count > conjugate_count:
                self.unpaired_pairs.add(pair)
            elif count == conjugate_count:
                self.paired_pairs.add(pair)
                self.paired_pairs.add(conjugate(pair))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------
    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            available=tuple(self.available),
            border_pair_count=dict(self.border_pair_count),
            edge_usage_count=tuple(self.edge_usage_count),
            unpaired_pairs=frozenset(self.unpaired_pairs),
            paired_pairs=frozenset(self.paired_pairs),
            megatile_count=self.count,
        )
