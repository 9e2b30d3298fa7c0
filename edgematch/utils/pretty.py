"""Pretty-print helpers for grids and mega-tiles."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, List, Sequence

from ..core.constants import BORDER

if TYPE_CHECKING:
    from ..core.models import MegaTile
    from ..engine.grid import TileGrid
    from ..engine.validator import PairBalance


def label_symbol(label: int) -> str:
    """Letter for a side label (0 -> A); border sides render as ``-``."""
    if label == BORDER:
        return "-"
    return chr(ord("A") + label)


def format_grid(grid: TileGrid) -> str:
    """Three text rows per grid row; a mismatched side is followed by ``!``."""

    lines: List[str] = []
    bad = {cell for pair in grid.mismatches() for cell in pair}
    for r in range(grid.size):
        top, middle, bottom = [], [], []
        for c in range(grid.size):
            tile = grid.cell(r, c)
            if tile is None:
                top.append("+---+")
                middle.append("|   |")
                bottom.append("+---+")
                continue
            flag = "!" if (r, c) in bad else " "
            top.append(f"+ {label_symbol(tile.top)} +")
            middle.append(f"{label_symbol(tile.left)}{flag}  {label_symbol(tile.right)}")
            bottom.append(f"+ {label_symbol(tile.bottom)} +")
        lines.extend((" ".join(top), " ".join(middle), " ".join(bottom)))
    seams = 2 * grid.size * (grid.size - 1)
    lines.append(f"Matches {grid.match_count()}/{seams}")
    return "\n".join(lines)


def format_megatile(megatile: MegaTile) -> str:
    """Outer border letters of a mega-tile plus its member tiles."""

    tl, tr, bl, br = megatile.tiles
    s = label_symbol
    lines = [
        f"+ {s(tl.top)} {s(tr.top)} +",
        f"{s(tl.left)}     {s(tr.right)}",
        f"{s(bl.left)}     {s(br.right)}",
        f"+ {s(bl.bottom)} {s(br.bottom)} +",
    ]
    for tile in megatile.tiles:
        sides = " ".join(s(side) for side in tile.sides)
        lines.append(f"{tile.id}x{tile.rotation}: {sides}")
    problems = megatile.internal_mismatches()
    if problems:
        lines.append("Internal mismatches: " + "; ".join(problems))
    return "\n".join(lines)


def format_pair_summary(summary: Sequence[PairBalance]) -> str:
    lines = ["Border pairs with conjugates:"]
    for entry in summary:
        a, b = (label_symbol(x) for x in entry.pair)
        status = "ok" if entry.balanced else "UNPAIRED"
        if entry.pair[0] == entry.pair[1]:
            lines.append(f"  ({a}, {b})x{entry.count:2}               {status}")
        else:
            lines.append(
                f"  ({a}, {b})x{entry.count:2} ({b}, {a})x{entry.conjugate_count:2}   {status}"
            )
    return "\n".join(lines)


def print_megatiles(megatiles: Sequence[MegaTile], *, stream=None) -> None:
    stream = stream or sys.stdout
    for megatile in megatiles:
        print(format_megatile(megatile), file=stream)
        print(file=stream)
