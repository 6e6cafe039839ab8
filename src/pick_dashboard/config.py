"""
Configuration for Pick Dashboard.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: Default SQLite database location
- Table: Page size for the paginated result table
- Export: CSV header rows for each aggregation mode
- Web: Dashboard server defaults

ENVIRONMENT VARIABLES:
- PICK_DASHBOARD_DB: Path to the SQLite database (default: local.db)
- PICK_DASHBOARD_PAGE_SIZE: Rows per table page (default: 20)

USAGE:
    from pick_dashboard.config import Config
    db_path = Config.get_database_path()
    page_size = Config.get_page_size()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Pick Dashboard.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    CSV HEADERS:
    Three fixed header rows, one per aggregation mode. Column order here
    is the column order of the exported document.
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    DEFAULT_DATABASE: ClassVar[str] = "local.db"

    # =========================================================================
    # TABLE CONFIGURATION
    # =========================================================================
    PAGE_SIZE: ClassVar[int] = 20

    # =========================================================================
    # WEB CONFIGURATION
    # =========================================================================
    DEFAULT_HOST: ClassVar[str] = "127.0.0.1"
    DEFAULT_PORT: ClassVar[int] = 8000

    # =========================================================================
    # CSV EXPORT CONFIGURATION
    # =========================================================================
    CSV_FILENAME_TEMPLATE: ClassVar[str] = "dashboard_{work_date}_{mode}.csv"

    EACH_PICK_HEADERS: ClassVar[tuple[str, ...]] = (
        "store",
        "worker",
        "order number",
        "item count",
        "work start",
        "work end",
        "move start",
        "shelf arrival",
        "pick start",
        "pack start",
        "pack finished",
        "customer-service start",
        "customer-service end",
    )

    ORDER_HEADERS: ClassVar[tuple[str, ...]] = (
        "store",
        "order number",
        "worker",
        "total items",
        "total duration",
        "picking rate",
    )

    WORKER_HEADERS: ClassVar[tuple[str, ...]] = (
        "store",
        "worker",
        "orders handled",
        "total items",
        "total duration",
        "picking rate",
    )

    # =========================================================================
    # SAMPLE MASTER DATA
    # =========================================================================
    SAMPLE_STORES: ClassVar[tuple[str, ...]] = ("Main", "Station", "Suburb")
    SAMPLE_WORKERS: ClassVar[tuple[str, ...]] = ("Tanaka", "Sato", "Suzuki")

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _database_override: ClassVar[str | None] = None
    _page_size_override: ClassVar[int | None] = None

    @classmethod
    def get_database_path(cls) -> str:
        """
        Get the path of the SQLite database holding orders and pick events.

        Uses a priority system: test overrides first, then the
        PICK_DASHBOARD_DB environment variable, then DEFAULT_DATABASE.

        Business context: Staging and production keep the database outside
        the working directory; local development uses local.db.

        Returns:
            Filesystem path to the database file.

        Example:
            >>> # With env var: PICK_DASHBOARD_DB=/srv/picking.db
            >>> Config.get_database_path()
            '/srv/picking.db'
        """
        if cls._database_override is not None:
            return cls._database_override
        return os.environ.get("PICK_DASHBOARD_DB", cls.DEFAULT_DATABASE)

    @classmethod
    def get_page_size(cls) -> int:
        """
        Get the number of rows shown per result table page.

        Reads PICK_DASHBOARD_PAGE_SIZE when set. Non-numeric or non-positive
        values are ignored with a warning and PAGE_SIZE is used instead.

        Returns:
            Positive page size.

        Example:
            >>> Config.get_page_size()
            20
        """
        if cls._page_size_override is not None:
            return cls._page_size_override
        raw = os.environ.get("PICK_DASHBOARD_PAGE_SIZE", "")
        if not raw:
            return cls.PAGE_SIZE
        try:
            value = int(raw)
        except ValueError:
            logger.warning("Ignoring invalid PICK_DASHBOARD_PAGE_SIZE=%r", raw)
            return cls.PAGE_SIZE
        if value <= 0:
            logger.warning("Ignoring non-positive PICK_DASHBOARD_PAGE_SIZE=%r", raw)
            return cls.PAGE_SIZE
        return value

    @classmethod
    def set_test_overrides(
        cls,
        database: str | None = None,
        page_size: int | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Must call reset_test_overrides() in test teardown to avoid
        affecting other tests.

        Args:
            database: Override for the database path. None to clear.
            page_size: Override for the table page size. None to clear.
        """
        cls._database_override = database
        cls._page_size_override = page_size

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides to use environment variables."""
        cls._database_override = None
        cls._page_size_override = None
