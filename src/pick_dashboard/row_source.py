"""
Row source for Pick Dashboard.

PURPOSE: Fetch pick events and master data for the result view.
AI CONTEXT: The only I/O in the reporting pipeline. Aggregation, tables,
and export consume what this module returns.

DATABASE STRUCTURE (SQLite):
    stores      (id, store_name)
    workers     (id, worker_name)
    orders      (id, store_id, worker_id, order_number, start_time,
                 end_time, is_completed, work_date)
    each_picks  (id, order_id, worker_id, sku_count, move_start,
                 arrive_at_shelf, pick_start, pack_start, pack_finished,
                 customer_service_start, customer_service_finish)

FILTERING:
Only completed orders are returned. work_date, store_id, and worker_id all
filter at the order level, so every pick event of a matching order is
included. worker_id matches the worker who opened the order.

LIFECYCLE:
Create one SqliteRowSource per process and pass it to the web app or CLI.
Each call opens a short-lived connection, so one instance can serve
concurrent requests. Only initialize_schema() may create the database
file; every other call fails with RowSourceError when it is missing.

USAGE:
    source = SqliteRowSource("local.db")
    source.initialize_schema()
    events = source.fetch_pick_events(ResultQuery("2024-01-01"))
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from .config import Config
from .models import STEP_FIELDS, PickEvent, ResultQuery, Store, Worker

__all__ = ["RowSource", "RowSourceError", "SqliteRowSource"]

logger = logging.getLogger(__name__)


class RowSourceError(RuntimeError):
    """Raised when the underlying store cannot be queried."""


class RowSource(Protocol):
    """
    Protocol for pick event and master data access.

    Implementations include SqliteRowSource for production and
    InMemoryRowSource in tests/conftest.py.
    """

    def fetch_pick_events(self, query: ResultQuery) -> list[PickEvent]:
        """
        Return pick events of completed orders matching the query.

        Each row carries both worker_name (the picker) and
        order_worker_name (the worker who opened the order).
        """
        ...

    def list_work_dates(self) -> list[str]:
        """Return distinct work dates with orders, newest first."""
        ...

    def list_stores(self) -> list[Store]:
        """Return all stores ordered by id."""
        ...

    def list_workers(self) -> list[Worker]:
        """Return all workers ordered by id."""
        ...


_SCHEMA = """
CREATE TABLE IF NOT EXISTS stores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    store_name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS workers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    worker_name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    store_id INTEGER NOT NULL REFERENCES stores(id),
    worker_id INTEGER NOT NULL REFERENCES workers(id),
    order_number TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT,
    is_completed INTEGER NOT NULL DEFAULT 0,
    work_date TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS each_picks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id INTEGER NOT NULL REFERENCES orders(id),
    worker_id INTEGER NOT NULL REFERENCES workers(id),
    sku_count INTEGER NOT NULL CHECK (sku_count >= 1),
    move_start TEXT,
    arrive_at_shelf TEXT,
    pick_start TEXT,
    pack_start TEXT,
    pack_finished TEXT,
    customer_service_start TEXT,
    customer_service_finish TEXT
);
CREATE INDEX IF NOT EXISTS idx_orders_work_date ON orders (work_date);
CREATE INDEX IF NOT EXISTS idx_each_picks_order ON each_picks (order_id);
"""

_STEP_COLUMNS = ",\n    ".join(f"p.{name} AS {name}" for name in STEP_FIELDS)

_PICK_EVENTS_SQL = f"""
SELECT
    s.store_name AS store_name,
    pw.worker_name AS worker_name,
    o.order_number AS order_number,
    p.sku_count AS sku_count,
    o.start_time AS order_start_time,
    o.end_time AS order_end_time,
    {_STEP_COLUMNS},
    o.id AS order_id,
    ow.worker_name AS order_worker_name
FROM each_picks p
JOIN orders o ON p.order_id = o.id
JOIN stores s ON o.store_id = s.id
JOIN workers pw ON p.worker_id = pw.id
JOIN workers ow ON o.worker_id = ow.id
WHERE {{conditions}}
ORDER BY o.id, p.id
"""


class SqliteRowSource:
    """
    SQLite-backed RowSource.

    DESIGN PRINCIPLES:
    1. Injected: constructed once and passed explicitly, never global
    2. Short connections: one connection per call, closed afterwards
    3. Logged: query failures recorded, then raised as RowSourceError
    """

    def __init__(self, database_path: str | None = None) -> None:
        """
        Initialize the row source for a database file.

        Args:
            database_path: SQLite file path. Default: Config.get_database_path()
        """
        self.database_path = database_path or Config.get_database_path()

    @contextmanager
    def _connect(self, create: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Open a connection with dict-like rows, committing on success.

        Args:
            create: Create the database file if it does not exist. When
                False the file is opened read-write only.

        Raises:
            RowSourceError: If the file is missing or SQLite reports an error.
        """
        try:
            if create:
                conn = sqlite3.connect(self.database_path)
            else:
                uri = f"{Path(self.database_path).resolve().as_uri()}?mode=rw"
                conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            logger.error(f"Cannot open database {self.database_path}: {e}")
            raise RowSourceError(str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error in {self.database_path}: {e}")
            raise RowSourceError(str(e)) from e
        finally:
            conn.close()

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        """Run a read query and return all rows."""
        with self._connect() as conn:
            return conn.execute(sql, params).fetchall()

    # =========================================================================
    # SCHEMA AND MASTER DATA
    # =========================================================================

    def initialize_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._connect(create=True) as conn:
            conn.executescript(_SCHEMA)
        logger.info(f"Database initialized: {self.database_path}")

    def seed_master_data(
        self,
        store_names: Sequence[str] = Config.SAMPLE_STORES,
        worker_names: Sequence[str] = Config.SAMPLE_WORKERS,
    ) -> None:
        """
        Insert sample stores and workers.

        Args:
            store_names: Store names to insert.
            worker_names: Worker names to insert.
        """
        with self._connect() as conn:
            conn.executemany(
                "INSERT INTO stores (store_name) VALUES (?)",
                [(name,) for name in store_names],
            )
            conn.executemany(
                "INSERT INTO workers (worker_name) VALUES (?)",
                [(name,) for name in worker_names],
            )
        logger.info(f"Seeded {len(store_names)} stores and {len(worker_names)} workers")

    def list_stores(self) -> list[Store]:
        """Return all stores ordered by id."""
        rows = self._query("SELECT id, store_name FROM stores ORDER BY id")
        return [Store(id=row["id"], store_name=row["store_name"]) for row in rows]

    def list_workers(self) -> list[Worker]:
        """Return all workers ordered by id."""
        rows = self._query("SELECT id, worker_name FROM workers ORDER BY id")
        return [Worker(id=row["id"], worker_name=row["worker_name"]) for row in rows]

    def list_work_dates(self) -> list[str]:
        """Return distinct order work dates, newest first."""
        rows = self._query("SELECT DISTINCT work_date FROM orders ORDER BY work_date DESC")
        return [row["work_date"] for row in rows]

    # =========================================================================
    # PICK EVENTS
    # =========================================================================

    def fetch_pick_events(self, query: ResultQuery) -> list[PickEvent]:
        """
        Return pick events of completed orders matching the query.

        Joins each pick event to its order, the order's store, the picker,
        and the order-opening worker. Filters are applied to the order, never
        to individual pick events, so per-order totals and durations stay
        complete.

        Business context: This is the single data fetch behind the result
        page, its charts, and CSV export.

        Args:
            query: Validated work date and optional store/worker filters.

        Returns:
            List of PickEvent ordered by order id, then pick id.

        Raises:
            RowSourceError: If the database cannot be queried.

        Example:
            >>> source.fetch_pick_events(ResultQuery('2024-01-01', store_id=1))
            [PickEvent(store_name='Main', ...)]
        """
        conditions = ["o.work_date = ?", "o.is_completed = 1"]
        params: list[Any] = [query.work_date]
        if query.store_id is not None:
            conditions.append("o.store_id = ?")
            params.append(query.store_id)
        if query.worker_id is not None:
            conditions.append("o.worker_id = ?")
            params.append(query.worker_id)

        sql = _PICK_EVENTS_SQL.format(conditions=" AND ".join(conditions))
        rows = self._query(sql, params)
        events = [PickEvent.from_dict(dict(row)) for row in rows]
        logger.debug(f"Fetched {len(events)} pick events for {query}")
        return events
