#!/usr/bin/env python3
"""
SWITRS database CLI

Command-line interface for building a SQLite collision database from a raw
SWITRS dump, and for inspecting a database that has already been built.
"""

import sys
import logging
import argparse
from pathlib import Path

from switrs_db.config_manager import ConfigManager
from switrs_db.pipeline import PipelineResult, build_database
from switrs_db.store.database import Database

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="switrs-db",
        description="Import SWITRS collision data into SQLite and reconcile road names",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a database from an extracted SWITRS dump
  %(prog)s -d raw/2019 -f berkeley.sqlite3 -s Schemas.yaml

  # Show table statistics of an existing database
  %(prog)s -f berkeley.sqlite3 --stats

  # Print the first 10 collisions with corrected road names
  %(prog)s -f berkeley.sqlite3 --list-collisions 10

  # Write an example schema configuration
  %(prog)s --example-config Schemas.yaml
        """
    )

    parser.add_argument(
        '-d', '--data-path',
        type=Path,
        help='Directory the raw SWITRS dump was extracted to'
    )
    parser.add_argument(
        '-f', '--sqlite-file',
        type=Path,
        help='SQLite database file to write (or read with --stats / --list-collisions)'
    )
    parser.add_argument(
        '-s', '--schema',
        type=Path,
        default=Path('Schemas.yaml'),
        help='Schema configuration YAML file (default: Schemas.yaml)'
    )

    parser.add_argument(
        '--stats',
        action='store_true',
        help='Show table statistics of SQLITE_FILE and exit'
    )
    parser.add_argument(
        '--list-collisions',
        type=int,
        metavar='N',
        help='Print the first N collisions of SQLITE_FILE and exit'
    )
    parser.add_argument(
        '--example-config',
        type=Path,
        metavar='PATH',
        help='Write an example schema configuration and exit'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Minimal output (warnings and errors only)'
    )
    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )
    return parser


def configure_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    if args.example_config:
        ConfigManager().save_example_config(args.example_config)
        return 0

    if not args.sqlite_file:
        parser.error("-f/--sqlite-file is required")

    if args.stats or args.list_collisions is not None:
        try:
            database = Database.open_read_only(args.sqlite_file)
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        with database:
            if args.stats:
                show_statistics(database, args.quiet)
            if args.list_collisions is not None:
                list_collisions(database, args.list_collisions)
        return 0

    if not args.data_path:
        parser.error("-d/--data-path is required to build a database")

    if not args.data_path.is_dir():
        print(f"Error: Data directory not found: {args.data_path}", file=sys.stderr)
        return 1

    try:
        config = ConfigManager(args.schema).load()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = build_database(
            config,
            args.data_path,
            args.sqlite_file,
            show_progress=not args.no_progress and not args.quiet,
        )
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    if not args.quiet:
        print_summary(result)

    return 0


def print_summary(result: PipelineResult) -> None:
    """Print the build summary."""
    print()
    print("=" * 60)
    print(f"Database: {result.name}")
    print("=" * 60)
    print("Tables:")
    for table, count in sorted(result.table_counts.items()):
        print(f"  {table:30s}: {count:8d}")
    print()
    print("Stages:")
    for stats in result.stage_statistics:
        print(
            f"  {stats.stage_name:30s}: {stats.rows_processed:8d} processed, "
            f"{stats.warnings:6d} warnings ({stats.total_time_ms}ms)"
        )
    print()
    print(f"Unresolved road names: {result.unresolved_roads}")
    print(f"New corrections:       {result.new_corrections}")
    print(f"Total time:            {result.total_time_ms / 1000:.1f}s")
    print("=" * 60)


def show_statistics(database: Database, quiet: bool = False) -> None:
    """Show database statistics."""
    stats = database.get_statistics()

    print("\n" + "=" * 60)
    print("Database Statistics")
    print("=" * 60)
    for table, count in stats["tables"].items():
        print(f"  {table:30s}: {count:8d}")

    corrected = stats.get("corrected_roads")
    if corrected and not quiet:
        total = corrected["total"]
        print()
        print("Corrected roads:")
        for key in ("unresolved_primary", "unresolved_secondary"):
            percentage = corrected[key] / total * 100 if total > 0 else 0
            print(f"  {key:30s}: {corrected[key]:8d} ({percentage:5.1f}%)")
    print("=" * 60)


def list_collisions(database: Database, limit: int) -> None:
    """Print the first ``limit`` collisions."""
    for collision in database.iter_collisions(limit=limit):
        primary = collision.corrected_primary_rd or collision.primary_rd
        secondary = collision.corrected_secondary_rd or collision.secondary_rd
        print(
            f"{collision.case_id}  {collision.collision_date or '':10s}  "
            f"{primary} / {secondary}"
        )


if __name__ == '__main__':
    sys.exit(main())
