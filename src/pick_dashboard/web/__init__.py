"""
Web dashboard module for Pick Dashboard.

PURPOSE: FastAPI-based UI for searching and viewing pick results.
AI CONTEXT: Thin HTTP layer - aggregation and paging live in presenters.

FEATURES:
- Search form with work date, worker, and store filters
- Sortable, paginated result tables (20 rows per page)
- Server-side bar charts (matplotlib)
- CSV download and a JSON endpoint for programmatic access

USAGE:
    # Via CLI
    pick-dashboard dashboard

    # Programmatically
    from pick_dashboard.web import create_app
    app = create_app(SqliteRowSource("local.db"))
"""

from .app import create_app, run_dashboard

__all__ = ["create_app", "run_dashboard"]
