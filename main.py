"""CLI entrypoint for the crossword auto-filler."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from autofill.core.exceptions import CrosswordError, InputError
from autofill.data.lexicon import Lexicon, LexiconConfig
from autofill.engine.filler import BACKENDS, FillConfig, GridFiller
from autofill.engine.strategies import CANDIDATE_ORDERINGS, SLOT_SELECTORS
from autofill.io.progress import make_reporter
from autofill.io.word_store import HttpWordStore
from autofill.utils.logger import configure_logging, get_logger
from autofill.utils.pretty import pretty_print_grid


LOGGER = get_logger("autofill.cli")


def read_grid_file(path: Path) -> Tuple[List[Any], Optional[Dict[str, Any]]]:
    """Read a grid from a text file (one row per line) or a JSON document.

    JSON input is either a list of rows or ``{"grid": [...], "numbering": {...}}``.
    Text rows use ``#`` for blocks, ``.``, ``_`` or a space for blanks and letters
    for pre-filled cells; empty lines are skipped.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"Cannot read grid file {path}: {exc}") from exc

    if path.suffix.lower() == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise InputError(f"Grid file {path} is not valid JSON: {exc}") from exc
        if isinstance(payload, dict):
            return payload.get("grid") or [], payload.get("numbering")
        return payload, None

    rows = [list(line.rstrip("\r\n")) for line in text.splitlines() if line.rstrip("\r\n")]
    return rows, None


def read_numbering_file(path: Path) -> Dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InputError(f"Cannot read numbering file {path}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fill a crossword grid with answers from a lexicon",
    )
    parser.add_argument("--grid", type=Path, help="Grid file (.txt rows or .json)")
    parser.add_argument(
        "--numbering",
        type=Path,
        help='JSON file mapping "row,col" to slot numbers (computed when omitted)',
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--lexicon",
        type=Path,
        help="Word list (.txt, one answer per line) or clue export (.csv/.tsv with an answer column)",
    )
    source.add_argument("--lexicon-url", type=str, help="HTTP endpoint serving the word list")
    parser.add_argument("--min-length", type=int, default=2, help="Shortest answer kept")
    parser.add_argument("--max-length", type=int, default=24, help="Longest answer kept")
    parser.add_argument(
        "--slot-selection",
        type=str,
        choices=sorted(SLOT_SELECTORS),
        default="most_constrained",
        help="Which slot the search fills next",
    )
    parser.add_argument(
        "--candidate-order",
        type=str,
        choices=sorted(CANDIDATE_ORDERINGS),
        default="lexicographic",
        help="Order in which a slot's candidates are tried",
    )
    parser.add_argument("--backend", type=str, choices=BACKENDS, default="backtracking")
    parser.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")
    parser.add_argument("--seed", type=int, default=None, help="Seed for --candidate-order shuffled")
    parser.add_argument(
        "--progress",
        type=str,
        choices=["none", "log", "inline"],
        default="none",
        help="Progress reporting during the search",
    )
    parser.add_argument("--output", type=Path, help="Optional path to JSON output")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--lexicon-stats",
        action="store_true",
        help="Print the number of answers per length and exit",
    )
    return parser


def load_lexicon_from_args(args: argparse.Namespace) -> Lexicon:
    if args.lexicon_url:
        return HttpWordStore(args.lexicon_url).load(args.min_length, args.max_length)
    return Lexicon.from_config(
        LexiconConfig(path=args.lexicon, min_length=args.min_length, max_length=args.max_length)
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = getattr(logging, args.log_level.upper(), logging.INFO)
    configure_logging(level)

    if not args.lexicon_stats and args.grid is None:
        parser.error("--grid is required unless --lexicon-stats is given")

    try:
        lexicon = load_lexicon_from_args(args)
        if args.lexicon_stats:
            counts = {str(length): count for length, count in lexicon.counts_by_length().items()}
            print(json.dumps(counts, indent=2))
            return 0

        rows, numbering = read_grid_file(args.grid)
        if args.numbering:
            numbering = read_numbering_file(args.numbering)

        config = FillConfig(
            slot_selection=args.slot_selection,
            candidate_order=args.candidate_order,
            backend=args.backend,
            timeout_seconds=args.timeout,
            seed=args.seed,
        )
        filler = GridFiller(lexicon, config, reporter=make_reporter(args.progress))
        result = filler.fill(rows, numbering)
    except CrosswordError as exc:
        LOGGER.error("%s", exc)
        return 1

    if result.grid is not None and args.output:
        pretty_print_grid(result.grid, label="Filled grid:", stream=sys.stderr)

    payload: Dict[str, Any] = result.to_jsonable()
    output_text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(output_text, encoding="utf-8")
    else:
        print(output_text)
    return 0 if result.solved else 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
