"""CLI entrypoint for the edge-matching puzzle solvers."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Tuple

from edgematch.core.constants import DEFAULT_INTERIOR_SKIP
from edgematch.core.exceptions import EdgeMatchError, InvariantViolationError
from edgematch.data.catalog import BUNDLED_CATALOG, MINI_CATALOG, CatalogConfig, TileCatalog
from edgematch.engine.grid_solver import BACKENDS, GridSolver, GridSolverConfig
from edgematch.engine.megatile import BuilderConfig, MegaTileBuilder
from edgematch.engine.validator import summarize_border_pairs, verify_grid
from edgematch.utils.logger import configure_logging
from edgematch.utils.pretty import format_grid, format_pair_summary, print_megatiles


def parse_pin(text: str) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """Parse ``ROW,COL,TILE,ROTATION`` into a pinned cell entry."""
    try:
        row, col, tile_id, rotation = (int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected ROW,COL,TILE,ROTATION, got {text!r}") from None
    return (row, col), (tile_id, rotation)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search for edge-matching puzzle grids and 2x2 mega-tile partitions",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=BUNDLED_CATALOG,
        help="Tile catalog CSV (id,top,right,bottom,left)",
    )
    parser.add_argument(
        "--mini",
        action="store_true",
        help="Use the bundled 49-tile catalog instead of --catalog",
    )
    parser.add_argument(
        "--one-based",
        action="store_true",
        help="Catalog labels start at 1 (blank fields mark border sides)",
    )
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument("--show", action="store_true", help="Print a text rendering to stderr")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    grid = commands.add_parser("grid", help="Fill a square grid by backtracking")
    grid.add_argument("--size", type=int, required=True, help="Grid side length in cells")
    grid.add_argument(
        "--enforce-border",
        action="store_true",
        help="Require border sides on the outer rim instead of treating it as a wildcard",
    )
    grid.add_argument(
        "--pin",
        type=parse_pin,
        action="append",
        default=[],
        metavar="ROW,COL,TILE,ROT",
        help="Place a tile before searching (repeatable)",
    )
    grid.add_argument("--max-nodes", type=int, help="Give up after this many search nodes")
    grid.add_argument("--backend", choices=BACKENDS, default="backtrack", help="Search backend")
    grid.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="CP-SAT time limit in seconds",
    )

    mega = commands.add_parser("megatiles", help="Assemble balanced 2x2 mega-tiles")
    mega.add_argument(
        "--target",
        type=int,
        default=None,
        help="Number of mega-tiles to build (default 48, or 49 with --hinted)",
    )
    mega.add_argument("--hinted", action="store_true", help="Force the four hint tiles late in the search")
    mega.add_argument("--no-starter", action="store_true", help="Do not force the starter tile first")
    mega.add_argument(
        "--interior-skip",
        type=int,
        default=DEFAULT_INTERIOR_SKIP,
        help="Catalog rows to leave out of the interior pool",
    )
    mega.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    mega.add_argument("--max-nodes", type=int, help="Give up after this many search nodes")
    return parser


def run_grid(args: argparse.Namespace, catalog: TileCatalog) -> Dict[str, Any]:
    config = GridSolverConfig(
        size=args.size,
        enforce_border=args.enforce_border,
        pinned=dict(args.pin),
        max_nodes=args.max_nodes,
        backend=args.backend,
        timeout_seconds=args.timeout,
    )
    result = GridSolver(config, catalog).solve()
    if result.solved:
        verify_grid(result.grid)
    if args.show:
        print(format_grid(result.grid), file=sys.stderr)
    return {
        "solved": result.solved,
        "reason": result.reason,
        "nodes_visited": result.nodes_visited,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
        "grid": result.grid.to_jsonable(),
    }


def run_megatiles(args: argparse.Namespace, catalog: TileCatalog) -> Dict[str, Any]:
    config = BuilderConfig(
        target_count=args.target if args.target is not None else (49 if args.hinted else 48),
        hinted=args.hinted,
        interior_skip=0 if args.mini else args.interior_skip,
        seed=args.seed,
        max_nodes=args.max_nodes,
    )
    if args.no_starter or args.mini:
        config.starter = None
    result = MegaTileBuilder(config, catalog).build()
    shown = result.megatiles if result.success else result.best_partial
    summary = summarize_border_pairs(shown)
    if args.show:
        print_megatiles(shown, stream=sys.stderr)
        print(format_pair_summary(summary), file=sys.stderr)
    return {
        "success": result.success,
        "reason": result.reason,
        "nodes_visited": result.nodes_visited,
        "elapsed_seconds": round(result.elapsed_seconds, 3),
        "megatiles": [megatile.to_jsonable() for megatile in result.megatiles],
        "best_partial_count": len(result.best_partial),
        "unpaired_pairs": sorted(list(pair) for pair in result.unpaired_pairs),
        "border_pairs": [
            {
                "pair": list(entry.pair),
                "count": entry.count,
                "conjugate_count": entry.conjugate_count,
                "balanced": entry.balanced,
            }
            for entry in summary
        ],
    }


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    catalog_config = CatalogConfig(
        path=MINI_CATALOG if args.mini else args.catalog,
        one_based=args.one_based,
    )
    try:
        catalog = TileCatalog.load(catalog_config)
        if args.command == "grid":
            payload = run_grid(args, catalog)
        else:
            payload = run_megatiles(args, catalog)
    except InvariantViolationError as exc:
        logging.getLogger("edgematch").critical("Search bookkeeping is inconsistent: %s", exc)
        return 3
    except EdgeMatchError as exc:
        logging.getLogger("edgematch").error("%s", exc)
        return 2

    output_text = json.dumps(payload, indent=2)
    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)
    return 0 if payload.get("solved", payload.get("success")) else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
