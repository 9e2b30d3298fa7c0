"""Deterministic invariant checks for assembled grids and mega-tile sets."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..core.exceptions import InvariantViolationError
from ..core.models import BorderPair, MegaTile, conjugate
from ..utils.logger import get_logger
from .grid import TileGrid


LOGGER = get_logger(__name__)


@dataclass
class PairBalance:
    """Running count of a border pair next to the count of its conjugate."""

    pair: BorderPair
    count: int
    conjugate_count: int

    @property
    def balanced(self) -> bool:
        if self.pair[0] == self.pair[1]:
            return self.count % 2 == 0
        return self.count == self.conjugate_count


def verify_megatiles(
    megatiles: Sequence[MegaTile],
    eligible_ids: Iterable[int],
    require_complete: bool = True,
) -> None:
    """Raise :class:`InvariantViolationError` unless the mega-tiles form a clean partition.

    Each mega-tile must match internally, draw only eligible ids and share
    none with another. With ``require_complete`` every eligible id must be
    used exactly once.
    """

    try:
        _check_internal_matches(megatiles)
        _check_tile_usage(megatiles, set(eligible_ids), require_complete)
    except InvariantViolationError as exc:
        LOGGER.error("Mega-tile verification failed: %s", exc)
        raise


def _check_internal_matches(megatiles: Sequence[MegaTile]) -> None:
    for position, megatile in enumerate(megatiles):
        problems = megatile.internal_mismatches()
        if problems:
            raise InvariantViolationError(
                f"Mega-tile {position} has internal mismatches: {'; '.join(problems)}"
            )


def _check_tile_usage(megatiles: Sequence[MegaTile], eligible: set, require_complete: bool) -> None:
    usage = Counter(tile_id for megatile in megatiles for tile_id in megatile.tile_ids)
    reused = sorted(tile_id for tile_id, count in usage.items() if count > 1)
    if reused:
        raise InvariantViolationError(f"Tiles used more than once: {reused}")
    foreign = sorted(set(usage) - eligible)
    if foreign:
        raise InvariantViolationError(f"Tiles outside the eligible pool: {foreign}")
    if require_complete:
        unused = sorted(eligible - set(usage))
        if unused:
            raise InvariantViolationError(
                f"Used {len(usage)} tiles, expected {len(eligible)}; unused: {unused}"
            )


def verify_grid(grid: TileGrid) -> None:
    """Raise :class:`InvariantViolationError` on any mismatched seam or repeated id."""

    ids = Counter(tile.id for _, _, tile in grid.placed())
    repeated = sorted(tile_id for tile_id, count in ids.items() if count > 1)
    if repeated:
        raise InvariantViolationError(f"Tiles placed more than once: {repeated}")
    mismatches = grid.mismatches()
    if mismatches:
        LOGGER.error("Grid verification failed: %d mismatched seams", len(mismatches))
        raise InvariantViolationError(f"Mismatched seams: {mismatches}")


def summarize_border_pairs(megatiles: Sequence[MegaTile]) -> List[PairBalance]:
    """One entry per border pair type (conjugates reported once), sorted by pair."""

    counts = Counter(pair for megatile in megatiles for pair in megatile.borders)
    summary: List[PairBalance] = []
    reported = set()
    for pair in sorted(counts):
        if pair in reported:
            continue
        partner = conjugate(pair)
        summary.append(
            PairBalance(
                pair=pair,
                count=counts[pair],
                conjugate_count=counts[pair] if pair == partner else counts.get(partner, 0),
            )
        )
        reported.add(pair)
        reported.add(partner)
    return summary
