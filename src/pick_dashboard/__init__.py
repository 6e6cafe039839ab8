"""
Pick Dashboard.

PURPOSE: Review order-picking throughput for retail stores.
AI CONTEXT: Aggregates per-pick timestamp records into per-order and
per-worker rollups for tables, bar charts, and CSV export.

PACKAGE STRUCTURE:
- models.py: Data models (PickEvent, OrderAggregate, WorkerAggregate)
- metrics.py: Duration and picking-rate calculations
- aggregation.py: By-order and by-worker rollups
- table.py: Sortable, paginated table state
- exporter.py: CSV serialization with byte-order marker
- row_source.py: SQLite-backed pick event source
- presenters.py: View models and chart rendering
- web/: FastAPI dashboard
- config.py: Configuration constants

QUICK START:
    # Create the database with sample stores and workers
    pick-dashboard init-db --seed

    # Launch dashboard
    pick-dashboard dashboard

    # Export a CSV for one work date
    pick-dashboard export --date 2024-01-01 --mode worker
"""

from pick_dashboard.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
