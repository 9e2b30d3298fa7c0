"""Tile catalog loading and label supply statistics."""

from __future__ import annotations

import csv
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence

from ..core.constants import BORDER, TileKind
from ..core.exceptions import CatalogLoadError, ConfigurationError
from ..core.models import OrientedTile, Tile
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

BUNDLED_CATALOG = Path(__file__).with_name("tiles.csv")
MINI_CATALOG = Path(__file__).with_name("mini_tiles.csv")

FIELDNAMES = ("id", "top", "right", "bottom", "left")


@dataclass
class CatalogConfig:
    """Where to read the catalog from and how labels are numbered."""

    path: Path | str = BUNDLED_CATALOG
    one_based: bool = False


def _parse_label(value: Optional[str], one_based: bool) -> int:
    text = (value or "").strip()
    if not text:
        return BORDER
    label = int(text)
    if label == BORDER:
        return BORDER
    if one_based:
        label -= 1
    if label < 0:
        raise ValueError(f"negative label {text!r}")
    return label


def load_tiles(path: Path | str, one_based: bool = False) -> List[Tile]:
    """Read tile rows from a CSV file with an ``id,top,right,bottom,left`` header.

    Empty fields and ``-1`` mark border sides. With ``one_based`` the labels
    are numbered from 1 and are shifted down to start at 0.
    """

    location = Path(path)
    if not location.exists():
        raise CatalogLoadError(f"Missing tile catalog: {location}")

    tiles: List[Tile] = []
    with location.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        missing = [name for name in FIELDNAMES if name not in (reader.fieldnames or ())]
        if missing:
            raise CatalogLoadError(f"{location}: missing columns {missing}")
        for line_no, row in enumerate(reader, start=2):
            try:
                tiles.append(
                    Tile(
                        id=int(row["id"]),
                        top=_parse_label(row["top"], one_based),
                        right=_parse_label(row["right"], one_based),
                        bottom=_parse_label(row["bottom"], one_based),
                        left=_parse_label(row["left"], one_based),
                    )
                )
            except (TypeError, ValueError) as exc:
                raise CatalogLoadError(f"{location}:{line_no}: {exc}") from exc
    return tiles


class TileCatalog:
    """Read-only collection of tiles addressed by id."""

    def __init__(self, tiles: Sequence[Tile]) -> None:
        if not tiles:
            raise CatalogLoadError("Tile catalog is empty")
        self.tiles: List[Tile] = list(tiles)
        self._by_id: Dict[int, Tile] = {}
        self._kinds: Dict[int, TileKind] = {}
        for tile in self.tiles:
            if tile.id < 0:
                raise CatalogLoadError(f"Negative tile id {tile.id}")
            if tile.id in self._by_id:
                raise CatalogLoadError(f"Duplicate tile id {tile.id}")
            try:
                self._kinds[tile.id] = tile.kind
            except ValueError as exc:
                raise CatalogLoadError(str(exc)) from exc
            self._by_id[tile.id] = tile

        self.universe_size = max(self._by_id) + 1
        labels = [side for tile in self.tiles for side in tile.sides if side != BORDER]
        self.alphabet_size = max(labels) + 1 if labels else 0
        interior_labels = {
            side
            for tile in self.tiles
            if self._kinds[tile.id] == TileKind.INTERIOR
            for side in tile.sides
        }
        self.rim_labels: FrozenSet[int] = frozenset(set(labels) - interior_labels)

        counts = Counter(self._kinds.values())
        LOGGER.debug(
            "Catalog: %d tiles (%d corner, %d edge, %d interior), %d labels",
            len(self.tiles),
            counts[TileKind.CORNER],
            counts[TileKind.EDGE],
            counts[TileKind.INTERIOR],
            self.alphabet_size,
        )

    @classmethod
    def load(cls, config: Optional[CatalogConfig] = None) -> "TileCatalog":
        config = config or CatalogConfig()
        return cls(load_tiles(config.path, one_based=config.one_based))

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._by_id

    def __getitem__(self, tile_id: int) -> Tile:
        try:
            return self._by_id[tile_id]
        except KeyError:
            raise ConfigurationError(f"Unknown tile id {tile_id}") from None

    def kind(self, tile_id: int) -> TileKind:
        return self._kinds[self[tile_id].id]

    def oriented(self, tile_id: int, rotation: int) -> OrientedTile:
        try:
            return OrientedTile(self[tile_id], rotation)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

    def ids_of_kind(self, *kinds: TileKind) -> List[int]:
        return [tile.id for tile in self.tiles if self._kinds[tile.id] in kinds]

    @property
    def interior_ids(self) -> List[int]:
        return self.ids_of_kind(TileKind.INTERIOR)

    def label_supply(self, kinds: Iterable[TileKind], exclude_rim_labels: bool = False) -> List[int]:
        """Count the concrete sides carrying each label on tiles of ``kinds``.

        With ``exclude_rim_labels`` the labels that only ever appear on the
        puzzle rim are zeroed.
        """

        wanted = set(kinds)
        supply = [0] * self.alphabet_size
        for tile in self.tiles:
            if self._kinds[tile.id] not in wanted:
                continue
            for side in tile.sides:
                if side != BORDER:
                    supply[side] += 1
        if exclude_rim_labels:
            for label in self.rim_labels:
                supply[label] = 0
        return supply
