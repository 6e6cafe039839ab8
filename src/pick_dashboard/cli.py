"""
CLI entry point for Pick Dashboard.

PURPOSE: Command-line interface for the dashboard server, CSV export,
and database setup.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Launch web dashboard (default)
    python -m pick_dashboard

    # Or via CLI command (after install)
    pick-dashboard

    # Run with subcommands
    pick-dashboard dashboard --port 8080          # Launch web dashboard
    pick-dashboard export --date 2024-01-01       # Write CSV to current dir
    pick-dashboard init-db --seed                 # Create tables and sample data
"""

from __future__ import annotations

import argparse
import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING

from .config import Config
from .exporter import build_export
from .filesystem import RealFileSystem
from .models import AggregationMode, InvalidQueryError, ResultQuery
from .row_source import RowSourceError, SqliteRowSource

if TYPE_CHECKING:
    from .filesystem import FileSystem
    from .row_source import RowSource


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def run_dashboard(
    host: str = Config.DEFAULT_HOST,
    port: int = Config.DEFAULT_PORT,
    database: str | None = None,
) -> None:
    """
    Launch the web dashboard.

    Business context: The dashboard is where managers review the day's
    picking performance by order and by worker.

    Args:
        host: Network interface to bind to. Default '127.0.0.1' for
            local-only access. Use '0.0.0.0' for network access.
        port: TCP port for the HTTP server. Default 8000.
        database: SQLite file path. Default: Config.get_database_path().

    Returns:
        None. Blocks until server shutdown (Ctrl+C).

    Raises:
        OSError: If port is already in use.

    Example:
        >>> # From command line:
        >>> # pick-dashboard dashboard --port 3000
        >>> run_dashboard(port=3000)
        🚀 Starting dashboard at http://127.0.0.1:3000
    """
    from .web import run_dashboard as start_web

    _log(f"Starting dashboard at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port, database=database)


def _join_path(directory: str, filename: str) -> str:
    """Join directory and file name with a forward slash."""
    return f"{directory.rstrip('/')}/{filename}" if directory else filename


def run_export(
    query: ResultQuery,
    mode: AggregationMode,
    output_dir: str = ".",
    row_source: RowSource | None = None,
    filesystem: FileSystem | None = None,
) -> str:
    """
    Write the CSV export of a result to a directory.

    Produces the same document as the dashboard's download link: UTF-8
    with a byte-order marker, every field quoted, named
    dashboard_{work_date}_{mode}.csv.

    Business context: Scheduled end-of-day exports feed spreadsheets
    without anyone opening the dashboard.

    Args:
        query: Validated filter criteria.
        mode: Aggregation mode of the export.
        output_dir: Directory to write into; created if missing.
        row_source: Optional RowSource for testability. Defaults to
            SqliteRowSource on Config.get_database_path().
        filesystem: Optional FileSystem for testability. Defaults to
            RealFileSystem.

    Returns:
        Path of the written file.

    Raises:
        RowSourceError: If the database cannot be queried.
        OSError: If the file cannot be written.

    Example:
        >>> run_export(ResultQuery('2024-01-01'), AggregationMode.WORKER, 'out')
        'out/dashboard_2024-01-01_worker.csv'
    """
    source = row_source or SqliteRowSource()
    fs = filesystem or RealFileSystem()

    events = source.fetch_pick_events(query)
    export = build_export(events, query.work_date, mode)

    if output_dir and not fs.exists(output_dir):
        fs.makedirs(output_dir, exist_ok=True)
    path = _join_path(output_dir, export.filename)
    fs.write_bytes(path, export.content)

    _log(f"Wrote {export.row_count} rows to {path}", emoji="📄")
    return path


def run_init_db(database: str | None = None, seed: bool = False) -> SqliteRowSource:
    """
    Create the dashboard tables, optionally with sample stores and workers.

    Args:
        database: SQLite file path. Default: Config.get_database_path().
        seed: Insert Config.SAMPLE_STORES and Config.SAMPLE_WORKERS.

    Returns:
        The initialized SqliteRowSource.

    Raises:
        RowSourceError: If the database cannot be created.
    """
    source = SqliteRowSource(database)
    source.initialize_schema()
    _log(f"Database ready: {source.database_path}", emoji="✅")
    if seed:
        source.seed_master_data()
        _log(
            f"Added {len(Config.SAMPLE_STORES)} stores and "
            f"{len(Config.SAMPLE_WORKERS)} workers",
            emoji="🌱",
        )
    return source


def main() -> int:
    """
    Main CLI entry point for Pick Dashboard.

    Parses command-line arguments and dispatches to the appropriate
    subcommand handler. If no subcommand is specified, launches the
    dashboard with default settings.

    Subcommands:
    - dashboard [--host HOST] [--port PORT] [--db PATH]: Launch web dashboard
    - export --date DATE [--mode MODE] [--store ID] [--worker ID]
      [--output-dir DIR] [--db PATH]: Write a CSV export
    - init-db [--db PATH] [--seed]: Create tables

    Returns:
        Exit code 0 for success, 1 when export or init-db fails.

    Raises:
        SystemExit: On --help or argument parsing errors.

    Example:
        >>> # From command line:
        >>> # pick-dashboard export --date 2024-01-01 --mode worker
        >>> sys.exit(main())  # Typical usage pattern
    """
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog="pick-dashboard",
        description="Pick Dashboard - Picking performance by order and by worker",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Dashboard command
    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Launch web dashboard",
    )
    dashboard_parser.add_argument(
        "--host",
        default=Config.DEFAULT_HOST,
        help=f"Bind address (default: {Config.DEFAULT_HOST})",
    )
    dashboard_parser.add_argument(
        "--port",
        type=int,
        default=Config.DEFAULT_PORT,
        help=f"Port number (default: {Config.DEFAULT_PORT})",
    )
    dashboard_parser.add_argument("--db", default=None, help="SQLite database path")

    # Export command
    export_parser = subparsers.add_parser(
        "export",
        help="Write a CSV export for one work date",
    )
    export_parser.add_argument("--date", required=True, help="Work date (YYYY-MM-DD)")
    export_parser.add_argument(
        "--mode",
        choices=[m.value for m in AggregationMode],
        default=AggregationMode.ORDER.value,
        help="Aggregation mode (default: order)",
    )
    export_parser.add_argument("--store", default=None, help="Store id (default: all)")
    export_parser.add_argument("--worker", default=None, help="Worker id (default: all)")
    export_parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for the CSV file (default: current directory)",
    )
    export_parser.add_argument("--db", default=None, help="SQLite database path")

    # Init command
    init_parser = subparsers.add_parser(
        "init-db",
        help="Create database tables",
    )
    init_parser.add_argument("--db", default=None, help="SQLite database path")
    init_parser.add_argument(
        "--seed",
        action="store_true",
        help="Add sample stores and workers",
    )

    args = parser.parse_args()

    if args.command == "export":
        try:
            query = ResultQuery.from_params(args.date, args.store, args.worker)
            run_export(
                query,
                AggregationMode(args.mode),
                output_dir=args.output_dir,
                row_source=SqliteRowSource(args.db),
            )
        except InvalidQueryError as e:
            _log(str(e), emoji="⚠️")
            return 1
        except (RowSourceError, OSError) as e:
            _log(f"Export failed: {e}", emoji="❌")
            return 1
    elif args.command == "init-db":
        try:
            run_init_db(database=args.db, seed=args.seed)
        except RowSourceError as e:
            _log(f"Database setup failed: {e}", emoji="❌")
            return 1
    elif args.command == "dashboard":
        run_dashboard(host=args.host, port=args.port, database=args.db)
    else:
        # Default: dashboard with default settings
        run_dashboard()

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
