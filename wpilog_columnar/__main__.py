"""
CLI entry point for WPILog Columnar.

Usage:
    python -m wpilog_columnar schema <logfile> [--verbose]
    python -m wpilog_columnar info <logfile> [--lenient]
    python -m wpilog_columnar show <logfile> [-n N] [--columns a,b] [--lenient]
"""

import argparse
import logging
import os
import sys

from .constants import DEFAULT_SHOW_ROWS, MAX_CELL_WIDTH, NAME_COLUMN_WIDTH
from .errors import WpilogError
from .models import ParseOptions
from .pipeline import infer_schema_file, parse_file
from .stats import summarize_column, summarize_table


def _format_cell(value) -> str:
    text = "null" if value is None else str(value)
    if len(text) > MAX_CELL_WIDTH:
        text = text[:MAX_CELL_WIDTH - 3] + "..."
    return text


def cmd_schema(args) -> int:
    schema = infer_schema_file(args.input)
    print(f"{len(schema)} columns in {os.path.basename(args.input)}")
    for entry in schema:
        line = f"  {entry.name:<{NAME_COLUMN_WIDTH}} {entry.column_type.value}"
        if args.verbose:
            line += f"  [id={entry.entry_id} type={entry.type_token!r}"
            if entry.metadata:
                line += f" metadata={entry.metadata!r}"
            line += "]"
        print(line)
    return 0


def cmd_info(args) -> int:
    table = parse_file(args.input, ParseOptions(strict=not args.lenient))
    info = summarize_table(table)

    print(f"File:      {args.input} ({os.path.getsize(args.input):,} bytes)")
    print(f"Version:   {table.header.version_string}")
    if table.header.extra_header:
        print(f"Header:    {table.header.extra_header}")
    print(f"Rows:      {info['rows']:,}")
    print(f"Columns:   {info['columns']} (including {table.column_names[0]})")
    if info["start_us"] is not None:
        print(f"Time:      {info['start_us']} .. {info['end_us']} us "
              f"({info['duration_s']:.3f}s)")
    if info["avg_interval_us"] is not None:
        print(f"Interval:  {info['avg_interval_us']:.1f} us average")
    if table.overwrites:
        print(f"Overwrites: {table.overwrites}")
    if table.skipped:
        print(f"Skipped:   {len(table.skipped)} records")

    print()
    for column in table.columns:
        summary = summarize_column(column)
        line = (f"  {summary.name:<{NAME_COLUMN_WIDTH}} {summary.type_name:<10} "
                f"{summary.null_pct:5.1f}% null")
        if summary.numeric is not None and summary.numeric.count:
            stats = summary.numeric.to_dict()
            line += (f"  mean={stats['mean']:g} std={stats['std']:g} "
                     f"min={stats['min']:g} max={stats['max']:g}")
        print(line)
    return 0


def cmd_show(args) -> int:
    table = parse_file(args.input, ParseOptions(strict=not args.lenient))
    if args.columns:
        try:
            table = table.select(c.strip() for c in args.columns.split(",") if c.strip())
        except KeyError as e:
            print(f"Error: Unknown column: {e.args[0]}", file=sys.stderr)
            return 1

    print("\t".join(table.column_names))
    for row in table.head(args.rows).rows():
        print("\t".join(_format_cell(value) for value in row))
    if table.row_count > args.rows:
        print(f"... {table.row_count - args.rows} more rows")
    return 0


COMMANDS = {
    "schema": cmd_schema,
    "info": cmd_info,
    "show": cmd_show,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wpilog_columnar",
        description="Decode WPILib data logs into a time-aligned table",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- schema command ---
    schema_parser = subparsers.add_parser(
        "schema",
        help="List the columns discovered in a log",
    )
    schema_parser.add_argument("input", help="Path to .wpilog file")

    # --- info command ---
    info_parser = subparsers.add_parser(
        "info",
        help="Summarize rows, time range and per-column statistics",
    )
    info_parser.add_argument("input", help="Path to .wpilog file")

    # --- show command ---
    show_parser = subparsers.add_parser(
        "show",
        help="Print the first rows of the table",
    )
    show_parser.add_argument("input", help="Path to .wpilog file")
    show_parser.add_argument(
        "-n", "--rows",
        type=int,
        default=DEFAULT_SHOW_ROWS,
        help=f"Number of rows to print (default: {DEFAULT_SHOW_ROWS})",
    )
    show_parser.add_argument(
        "--columns", "-c",
        default=None,
        help="Comma-separated column names to print (default: all)",
    )

    for sub in (info_parser, show_parser):
        sub.add_argument(
            "--lenient",
            action="store_true",
            help="Skip malformed data records instead of failing",
        )
    for sub in (schema_parser, info_parser, show_parser):
        sub.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Print entry details and debug logging",
        )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not os.path.exists(args.input):
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    try:
        return COMMANDS[args.command](args)
    except WpilogError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
