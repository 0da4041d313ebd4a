from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .batch import check_scope, run_batch
from .errors import ScopeNotFoundError
from .registry import DEFAULT_REGISTRY
from .report import (
    build_report,
    format_divider,
    format_header,
    format_row,
    format_total,
    save_report_csv,
    save_report_json,
)
from .settings import OptimizeSettings
from .tools import tool_status

PROG = "imgcrush"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Losslessly shrink every image under a directory with external optimizers",
    )
    p.add_argument("directory", nargs="?", help="Root directory to optimize (files are replaced in place)")

    # Tools
    p.add_argument("--tools-dir", default=None, help="Directory searched first for optimizer binaries")
    p.add_argument("--timeout", type=float, default=120.0, help="Seconds per optimizer run (default 120)")
    p.add_argument("--list-tools", action="store_true", help="Show which optimizers were found and exit")

    # Scheduling / candidates
    p.add_argument("-j", "--workers", type=int, default=1, help="Files processed in parallel (default 1)")
    p.add_argument("--temp-dir", default=None, help="Where to create the work directory for candidates")
    p.add_argument("--no-verify", action="store_true", help="Do not decode winners before replacing originals")

    # Reports
    p.add_argument("--json", dest="json_path", default=None, help="Also write a JSON report here")
    p.add_argument("--csv", dest="csv_path", default=None, help="Also write a CSV report here")

    # Logging
    p.add_argument("-v", "--verbose", action="count", default=0, help="More log output (repeatable)")
    p.add_argument("-q", "--quiet", action="store_true", help="Only log errors")

    return p


def configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    tools_dir = Path(args.tools_dir) if args.tools_dir else None

    if args.list_tools:
        for name, found in tool_status(DEFAULT_REGISTRY, tools_dir).items():
            print(f"{name:<12} {found or 'missing'}")
        return 0

    if args.directory is None:
        parser.error("the following arguments are required: directory")

    root = Path(args.directory)
    try:
        check_scope(root)
    except ScopeNotFoundError as exc:
        print(f"{PROG}: error: {exc}", file=sys.stderr)
        return 1

    settings = OptimizeSettings(
        tools_dir=tools_dir,
        timeout=float(args.timeout),
        workers=max(1, int(args.workers)),
        temp_dir=Path(args.temp_dir) if args.temp_dir else None,
        verify_candidates=not bool(args.no_verify),
    )

    print(format_header())
    print(format_divider())
    results, totals = run_batch(
        root,
        settings,
        DEFAULT_REGISTRY,
        on_result=lambda r: print(format_row(r), flush=True),
    )
    print(format_divider())
    print(format_total(totals))

    if args.json_path or args.csv_path:
        report = build_report(results, totals)
        if args.json_path:
            save_report_json(report, Path(args.json_path))
            print("\nReport written:", args.json_path)
        if args.csv_path:
            save_report_csv(report, Path(args.csv_path))
            print("CSV written   :", args.csv_path)

    return 0
