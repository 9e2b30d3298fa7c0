"""Depth-keyed pruning ceilings for the mega-tile search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

Step = Tuple[int, int, int]


@dataclass(frozen=True)
class StepSchedule:
    """Piecewise-constant ceiling keyed by the number of committed mega-tiles.

    ``steps`` holds ``(first, last, ceiling)`` ranges, inclusive on both ends
    and ordered by ``first``. Counts outside every range use ``default``.
    """

    steps: Tuple[Step, ...]
    default: int

    def __post_init__(self) -> None:
        previous_last = -1
        for first, last, _ in self.steps:
            if first > last or first <= previous_last:
                raise ValueError(f"Steps must be ordered and disjoint, got {self.steps}")
            previous_last = last

    def __call__(self, count: int) -> int:
        for first, last, ceiling in self.steps:
            if first <= count <= last:
                return ceiling
        return self.default

    @classmethod
    def constant(cls, ceiling: int) -> "StepSchedule":
        return cls(steps=(), default=ceiling)

    @classmethod
    def from_points(cls, points: Iterable[Tuple[int, int]], default: int) -> "StepSchedule":
        """Build single-count steps from ``(count, ceiling)`` points, merging equal runs."""

        steps = []
        for count, ceiling in sorted(points):
            if steps and steps[-1][1] == count - 1 and steps[-1][2] == ceiling:
                steps[-1] = (steps[-1][0], count, ceiling)
            else:
                steps.append((count, count, ceiling))
        return cls(steps=tuple(steps), default=default)


UNPAIRED_SCHEDULE = StepSchedule(
    steps=(
        (0, 3, 6),
        (4, 7, 7),
        (8, 15, 8),
        (16, 23, 9),
        (24, 31, 10),
        (32, 39, 14),
        (40, 44, 15),
        (45, 45, 16),
        (46, 46, 17),
        (47, 47, 19),
        (48, 48, 20),
        (49, 49, 22),
    ),
    default=30,
)
"""Ceiling on distinct unpaired border-pair types."""


def _diversity_ceiling(count: int) -> int:
    # Offsets grow by two for every two commits past the warm-up.
    growth = ((count - 3) // 2) * 2
    if count <= 3:
        return 9
    if count <= 6:
        return 12 + growth
    if count <= 40:
        return 13 + growth
    base = {41: 16, 42: 16, 43: 22, 44: 22, 45: 24, 46: 25, 47: 27, 48: 29, 49: 31}[count]
    return base + growth


DIVERSITY_SCHEDULE = StepSchedule.from_points(
    ((count, _diversity_ceiling(count)) for count in range(0, 50)),
    default=30,
)
"""Ceiling on distinct border-pair types seen across all committed mega-tiles."""

PERMISSIVE_SCHEDULE = StepSchedule.constant(10 ** 6)
