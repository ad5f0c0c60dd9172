"""CLI entrypoint for wallytypes."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import load_config
from .errors import ConfigError, MalformedSourcemap
from .logging import configure_logging
from .models import OutcomeStatus, RunReport
from .orchestrator import Orchestrator
from .sourcemap import load_sourcemap


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallytypes",
        description="Add the exported types of Wally packages to their generated thunks.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to .wallytypes.yml (defaults to the current directory).",
    )
    parser.add_argument(
        "-s",
        "--sourcemap",
        default=None,
        help="Path to the sourcemap generated by `rojo sourcemap`.",
    )
    parser.add_argument(
        "--project-root",
        default=None,
        help="Directory sourcemap file paths are relative to (defaults to the sourcemap's folder).",
    )
    parser.add_argument(
        "--mount-path",
        default=None,
        help="Dotted sourcemap path where packages are mounted, e.g. ReplicatedStorage.Packages.",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum re-export chain depth to follow.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of packages processed in parallel.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show thunk changes without writing them.",
    )
    parser.add_argument(
        "packages",
        nargs="+",
        help="Packages folder(s) to patch, e.g. Packages ServerPackages.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for wallytypes."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(Path(args.config) if args.config else Path.cwd())
    except ConfigError as exc:
        parser.exit(1, f"wallytypes: {exc}\n")

    if args.mount_path is not None:
        config.mount_path = [segment for segment in args.mount_path.split(".") if segment]
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.workers is not None:
        config.workers = args.workers

    sourcemap_path = Path(args.sourcemap) if args.sourcemap else config.sourcemap
    if sourcemap_path is None:
        parser.error("a sourcemap is required (use --sourcemap or set it in .wallytypes.yml)")

    try:
        tree = load_sourcemap(
            sourcemap_path,
            base_dir=Path(args.project_root) if args.project_root else None,
        )
    except MalformedSourcemap as exc:
        parser.exit(1, f"wallytypes: {exc}\n")

    orchestrator = Orchestrator.from_config(config)

    failures = 0
    for folder in args.packages:
        try:
            report = orchestrator.run(folder, tree, dry_run=bool(args.dry_run))
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"wallytypes: {exc}\n")
        _print_report(folder, report, dry_run=bool(args.dry_run))
        failures += len(report.failed)

    if failures:
        parser.exit(1, f"wallytypes: {failures} package(s) failed\n")


def _print_report(folder: str, report: RunReport, *, dry_run: bool) -> None:
    for outcome in report.outcomes:
        if outcome.status is OutcomeStatus.PATCHED:
            verb = "would patch" if dry_run else "patched"
            print(f"{verb} {outcome.name}: {outcome.detail}")
            if outcome.diff:
                print(outcome.diff, end="" if outcome.diff.endswith("\n") else "\n")
        elif outcome.status is OutcomeStatus.FAILED:
            print(f"failed {outcome.name}: {outcome.detail}")
    print(
        f"{folder}: patched={report.patched} unchanged={report.unchanged} "
        f"skipped={report.skipped} failed={len(report.failed)}"
    )


if __name__ == "__main__":
    main(sys.argv[1:])
