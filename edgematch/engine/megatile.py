"""Recursive assembly of disjoint 2x2 mega-tiles with balanced borders.

The builder grows one mega-tile per recursion level:

  1. Health check: prune when the unpaired-pair count, the border-pair
     diversity or a label's supply budget is out of bounds for the depth.
  2. Seeds: pick candidate top-left tiles (the fixed starter, a forced hint,
     or tiles that can resolve two outstanding unpaired borders at once).
  3. Candidates: grow every internally consistent 2x2 cluster from each seed,
     score it and try the best first, rolling back on failure.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..core.constants import (
    BORDER,
    DEFAULT_HINTS,
    DEFAULT_INTERIOR_SKIP,
    DEFAULT_STARTER,
    TileKind,
)
from ..core.exceptions import ConfigurationError, InvariantViolationError
from ..core.models import BorderPair, MegaTile, OrientedTile, conjugate
from ..data.catalog import TileCatalog
from ..utils.logger import get_logger
from .index import AdjacencyIndex
from .schedule import DIVERSITY_SCHEDULE, UNPAIRED_SCHEDULE, StepSchedule
from .state import SearchState
from .validator import verify_megatiles


LOGGER = get_logger(__name__)

PALINDROME_BONUS = 100
UNPAIRED_MATCH_BONUS = 1000
PAIRED_MATCH_BONUS = 300
DOUBLE_MATCH_PENALTY = 10000
OVERDRAW_PENALTY = 12000


@dataclass
class BuilderConfig:
    """Knobs for the mega-tile search.

    ``target_count`` defaults to one short of the full 7x7 partition of the
    bundled puzzle, where the search is already very slow. Hinted mode
    needs ``target_count`` above every hint's commit count (49 for the
    bundled hints).
    """

    target_count: int = 48
    hinted: bool = False
    # (tile_id, rotation) forced as the very first seed, or None to seed freely
    starter: Optional[Tuple[int, int]] = DEFAULT_STARTER
    # (tile_id, rotation, commit_count) forced seeds used in hinted mode
    hints: Tuple[Tuple[int, int, int], ...] = DEFAULT_HINTS
    interior_skip: int = DEFAULT_INTERIOR_SKIP
    unpaired_schedule: StepSchedule = UNPAIRED_SCHEDULE
    diversity_schedule: StepSchedule = DIVERSITY_SCHEDULE
    random_warmup: int = 3
    seed: Optional[int] = None
    max_nodes: Optional[int] = None


@dataclass
class BuildResult:
    success: bool
    megatiles: List[MegaTile]
    nodes_visited: int
    reason: str
    unpaired_pairs: FrozenSet[BorderPair] = frozenset()
    paired_pairs: FrozenSet[BorderPair] = frozenset()
    best_partial: List[MegaTile] = field(default_factory=list)
    elapsed_seconds: float = 0.0


def hint_fits_unpaired(tile: OrientedTile, unpaired: Iterable[BorderPair]) -> bool:
    """True when two different unpaired pairs can meet the tile's top and left."""

    pairs = list(unpaired)
    for i, first in enumerate(pairs):
        if first[1] != tile.top:
            continue
        for j, second in enumerate(pairs):
            if i != j and second[0] == tile.left:
                return True
    return False


class MegaTileBuilder:
    """Depth-first search for ``target_count`` disjoint, border-balanced mega-tiles."""

    def __init__(
        self,
        config: BuilderConfig,
        catalog: TileCatalog,
        index: Optional[AdjacencyIndex] = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.index = index or AdjacencyIndex(catalog.tiles, skip=config.interior_skip)
        self.eligible_ids: List[int] = list(self.index.tile_ids)
        self.rng = random.Random(config.seed)

        if config.target_count < 1 or config.target_count * 4 > len(self.eligible_ids):
            raise ConfigurationError(
                f"Cannot build {config.target_count} mega-tiles from "
                f"{len(self.eligible_ids)} eligible tiles"
            )

        everything = (TileKind.CORNER, TileKind.EDGE, TileKind.INTERIOR)
        self.total_supply = catalog.label_supply(everything, exclude_rim_labels=True)
        self.rim_reserved = catalog.label_supply((TileKind.CORNER, TileKind.EDGE), exclude_rim_labels=True)
        self.hint_reserved = [0] * catalog.alphabet_size

        self.starter: Optional[OrientedTile] = None
        if config.starter is not None:
            self.starter = self._fixed_seed(*config.starter)
        self.hints: Dict[int, OrientedTile] = {}
        if config.hinted:
            for tile_id, rotation, commit_count in config.hints:
                if commit_count >= config.target_count:
                    raise ConfigurationError(
                        f"Hint tile {tile_id} is due after {commit_count} commits, "
                        f"but the search stops at {config.target_count}"
                    )
                hint = self._fixed_seed(tile_id, rotation)
                self.hints[commit_count] = hint
                # The rim-facing sides of each hint must stay in supply.
                self.hint_reserved[hint.bottom] += 1
                self.hint_reserved[hint.left] += 1

        pinned: Set[int] = {hint.id for hint in self.hints.values()}
        if self.starter is not None:
            pinned.add(self.starter.id)
        self.pinned: FrozenSet[int] = frozenset(pinned)

        self._nodes = 0
        self._budget_exhausted = False
        self._best: List[MegaTile] = []

    def _fixed_seed(self, tile_id: int, rotation: int) -> OrientedTile:
        oriented = self.catalog.oriented(tile_id, rotation)
        if tile_id not in self.eligible_ids:
            raise ConfigurationError(f"Fixed seed tile {tile_id} is not an interior tile")
        if oriented not in self.index.require(oriented.sides):
            raise InvariantViolationError(f"Fixed seed {tile_id}/r{rotation} missing from index")
        return oriented

    # ------------------------------------------------------------------
    # Public entrypoint
    # ------------------------------------------------------------------
    def new_state(self) -> SearchState:
        return SearchState(
            universe_size=self.catalog.universe_size,
            alphabet_size=self.catalog.alphabet_size,
            eligible_ids=self.eligible_ids,
            pinned=self.pinned,
        )

    def build(self) -> BuildResult:
        state = self.new_state()
        self._nodes = 0
        self._budget_exhausted = False
        self._best = []

        LOGGER.info(
            "Building %d mega-tiles from %d interior tiles (hinted=%s)",
            self.config.target_count,
            len(self.eligible_ids),
            self.config.hinted,
        )
        started = time.perf_counter()
        success = self._build_level(state)
        elapsed = time.perf_counter() - started

        if success:
            reason = "target_reached"
            verify_megatiles(
                state.megatiles,
                self.eligible_ids,
                require_complete=self.config.target_count * 4 == len(self.eligible_ids),
            )
            LOGGER.info(
                "Built %d mega-tiles after %d nodes in %.2fs (%d unpaired pair types)",
                state.count,
                self._nodes,
                elapsed,
                len(state.unpaired_pairs),
            )
        else:
            reason = "node_limit" if self._budget_exhausted else "exhausted"
            LOGGER.warning(
                "Mega-tile search ended without reaching %d (%s, deepest %d, %d nodes)",
                self.config.target_count,
                reason,
                len(self._best),
                self._nodes,
            )
        return BuildResult(
            success=success,
            megatiles=list(state.megatiles),
            nodes_visited=self._nodes,
            reason=reason,
            unpaired_pairs=frozenset(state.unpaired_pairs),
            paired_pairs=frozenset(state.paired_pairs),
            best_partial=list(state.megatiles) if success else list(self._best),
            elapsed_seconds=elapsed,
        )

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------
    def _build_level(self, state: SearchState) -> bool:
        if not self.is_healthy(state):
            return False
        if state.count > len(self._best):
            self._best = list(state.megatiles)
        if state.count >= self.config.target_count:
            return True
        if self.config.max_nodes is not None and self._nodes >= self.config.max_nodes:
            self._budget_exhausted = True
            return False
        self._nodes += 1

        seeds = self.seeds(state)
        ranked = self.ranked_candidates(state, seeds)
        LOGGER.debug(
            "Level %d: %d seeds, %d candidates", state.count, len(seeds), len(ranked)
        )
        for megatile in ranked:
            state.commit(megatile)
            if self._build_level(state):
                return True
            state.rollback(megatile)
            if self._budget_exhausted:
                return False
        return False

    # ------------------------------------------------------------------
    # Health check
    # ------------------------------------------------------------------
    def is_healthy(self, state: SearchState) -> bool:
        count = state.count
        unpaired = len(state.unpaired_pairs)
        if unpaired > self.config.unpaired_schedule(count):
            return False
        diversity = state.distinct_pair_types
        if diversity > self.config.diversity_schedule(count):
            return False
        for label, used in enumerate(state.edge_usage_count):
            if label in self.catalog.rim_labels:
                continue
            if used + self.rim_reserved[label] > self.total_supply[label]:
                LOGGER.debug(
                    "Label %d over budget: %d + %d > %d",
                    label,
                    used,
                    self.rim_reserved[label],
                    self.total_supply[label],
                )
                return False
        LOGGER.debug(
            "mega-tiles: %2d, distinct pairs: %2d, unpaired: %2d", count, diversity, unpaired
        )
        return True

    # ------------------------------------------------------------------
    # Seeds
    # ------------------------------------------------------------------
    def seeds(self, state: SearchState) -> List[OrientedTile]:
        count = state.count
        if count == 0 and self.starter is not None:
            return [self.starter]
        if count in self.hints:
            hint = self.hints[count]
            return [hint] if hint_fits_unpaired(hint, state.unpaired_pairs) else []
        if count == 0:
            return [tile for tile in self.index.lookup() if state.is_available(tile.id)]

        seeds: List[OrientedTile] = []
        seen: Set[OrientedTile] = set()
        unpaired = sorted(state.unpaired_pairs)
        for first in unpaired:
            for second in unpaired:
                if first == second:
                    continue
                for tile in self.index.lookup(top=first[1], left=second[0]):
                    if tile in seen or not state.is_available(tile.id):
                        continue
                    seen.add(tile)
                    seeds.append(tile)
        return seeds

    # ------------------------------------------------------------------
    # Candidates & scoring
    # ------------------------------------------------------------------
    def candidates(self, state: SearchState, seeds: Sequence[OrientedTile]) -> Iterator[MegaTile]:
        """Every internally consistent 2x2 cluster grown from ``seeds``."""

        for top_left in seeds:
            for top_right in self.index.lookup(left=top_left.right):
                if top_right.id == top_left.id or not state.is_available(top_right.id):
                    continue
                for bottom_right in self.index.lookup(top=top_right.bottom):
                    if bottom_right.id in (top_left.id, top_right.id):
                        continue
                    if not state.is_available(bottom_right.id):
                        continue
                    for bottom_left in self.index.lookup(top=top_left.bottom, right=bottom_right.left):
                        if bottom_left.id in (top_left.id, top_right.id, bottom_right.id):
                            continue
                        if not state.is_available(bottom_left.id):
                            continue
                        yield MegaTile(
                            top_left=top_left,
                            top_right=top_right,
                            bottom_left=bottom_left,
                            bottom_right=bottom_right,
                        )

    def usage_scores(self, state: SearchState) -> List[int]:
        """Remaining per-label budget once rim and hint needs are set aside."""

        return [
            self.total_supply[label]
            - state.edge_usage_count[label]
            - self.hint_reserved[label]
            - self.rim_reserved[label]
            for label in range(self.catalog.alphabet_size)
        ]

    def score(self, megatile: MegaTile, state: SearchState, usage_scores: Sequence[int]) -> int:
        if state.count < self.config.random_warmup:
            return self.rng.randint(1, 999)

        score = 0
        borders = megatile.borders
        for pair in borders:
            if pair[0] == pair[1]:
                score += PALINDROME_BONUS

        for pool, bonus in (
            (state.unpaired_pairs, UNPAIRED_MATCH_BONUS),
            (state.paired_pairs, PAIRED_MATCH_BONUS),
        ):
            for entry in pool:
                matched = False
                for pair in borders:
                    if entry != conjugate(pair):
                        continue
                    # A second side answering the same entry wastes a pairing.
                    score += -DOUBLE_MATCH_PENALTY if matched else bonus
                    matched = True

        remaining = list(usage_scores)
        for tile in megatile.tiles:
            for side in tile.sides:
                if side == BORDER:
                    continue
                score += remaining[side]
                remaining[side] -= 1
                if remaining[side] < 0:
                    score -= OVERDRAW_PENALTY
        return score

    def ranked_candidates(self, state: SearchState, seeds: Sequence[OrientedTile]) -> List[MegaTile]:
        """Non-negative scoring candidates, best first."""

        usage = self.usage_scores(state)
        scored: List[Tuple[int, MegaTile]] = []
        for megatile in self.candidates(state, seeds):
            value = self.score(megatile, state, usage)
            if value >= 0:
                scored.append((value, megatile))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [megatile for _, megatile in scored]
