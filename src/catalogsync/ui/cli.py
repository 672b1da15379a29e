from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from catalogsync.adapters.plan_file import dump_plan
from catalogsync.app import (
    apply_catalog,
    load_summary,
    plan_catalog,
    save_summary,
    summarize_plan,
    summary_counts,
)
from catalogsync.config import configure_logging
from catalogsync.ui.report import apply_lines, emit, plan_lines, summary_lines

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _existing_file(value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_file():
        raise ValueError(f"File not found: {value}")
    return path


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Reconcile product records between the content and commerce stores"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Reconciliation policy TOML (defaults to $CATALOGSYNC_CONFIG or ./catalogsync.toml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan = subparsers.add_parser("plan", help="Compute and save a reconciliation plan")
    plan.add_argument(
        "--output",
        type=str,
        help="Where to write the plan JSON (defaults to the data directory)",
    )
    plan.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="How to print the plan (default: %(default)s)",
    )

    apply = subparsers.add_parser("apply", help="Apply a plan to both stores")
    apply.add_argument(
        "--plan",
        type=str,
        help="Saved plan to apply (computes a fresh plan when omitted)",
    )
    apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the mutations that would be sent without writing anything",
    )
    apply.add_argument(
        "--summary-json",
        type=str,
        help="Write machine-readable counts to this path",
    )

    summary = subparsers.add_parser("summary", help="Print the counts of a plan or apply run")
    source = summary.add_mutually_exclusive_group(required=True)
    source.add_argument("--plan", type=str, help="Plan file to summarise")
    source.add_argument(
        "--from-summary",
        type=str,
        help="Summary JSON written by an earlier apply run",
    )
    summary.add_argument(
        "--json",
        action="store_true",
        help="Print the counts as JSON",
    )

    return parser.parse_args(list(argv))


def _run_plan(args: argparse.Namespace, config_path: Path | None) -> None:
    output = Path(args.output).expanduser() if args.output else None
    plan, path = plan_catalog(output=output, config_path=config_path)
    if args.format == "json":
        sys.stdout.write(dump_plan(plan).decode() + "\n")
    else:
        emit(plan_lines(plan))
    log.info("Plan saved to %s", path)


def _run_apply(args: argparse.Namespace, config_path: Path | None) -> bool:
    plan_path = _existing_file(args.plan) if args.plan else None
    outcome = apply_catalog(plan_path=plan_path, dry_run=args.dry_run, config_path=config_path)
    emit(apply_lines(outcome))
    if args.summary_json:
        save_summary(summary_counts(outcome.plan, outcome.result), Path(args.summary_json))
    return outcome.result.ok


def _run_summary(args: argparse.Namespace) -> None:
    if args.plan:
        counts = summarize_plan(_existing_file(args.plan))
    else:
        counts = load_summary(_existing_file(args.from_summary))
    if args.json:
        sys.stdout.write(json.dumps(counts, indent=2) + "\n")
    else:
        emit(summary_lines(counts))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        config_path = _existing_file(parsed_args.config) if parsed_args.config else None
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "plan":
            _run_plan(parsed_args, config_path)
        elif parsed_args.command == "apply":
            if not _run_apply(parsed_args, config_path):
                log.error("Apply finished with failed changes")
                sys.exit(1)
        elif parsed_args.command == "summary":
            _run_summary(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
