"""
Pytest configuration and shared fixtures for Pick Dashboard tests.

This module contains:
- make_event: Factory for PickEvent rows with sensible defaults
- InMemoryRowSource: RowSource fake returning prepared pick events
- MockFileSystem: In-memory filesystem for testing CSV export without I/O
- Shared fixtures available to all test modules
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from typing import Any

import pytest

from pick_dashboard.config import Config
from pick_dashboard.models import PickEvent, ResultQuery, Store, Worker
from pick_dashboard.row_source import SqliteRowSource

WORK_DATE = "2024-01-01"


def make_event(**overrides: Any) -> PickEvent:
    """
    Build a PickEvent for tests.

    Defaults describe one 3-item pick of order 1 at store Main, opened
    and picked by Tanaka, running 09:00 to 10:30 UTC.

    Example:
        >>> make_event(order_id=2, sku_count=5).sku_count
        5
    """
    fields: dict[str, Any] = {
        "store_name": "Main",
        "worker_name": "Tanaka",
        "order_number": "A0000001",
        "sku_count": 3,
        "order_start_time": "2024-01-01T09:00:00Z",
        "order_end_time": "2024-01-01T10:30:00Z",
        "order_id": 1,
        "order_worker_name": "Tanaka",
    }
    fields.update(overrides)
    return PickEvent(**fields)


class InMemoryRowSource:
    """
    RowSource fake backed by lists.

    Returns the prepared events for every query whose work date is known,
    and records each query so tests can assert on filter propagation.
    """

    def __init__(
        self,
        events: Sequence[PickEvent] = (),
        work_dates: Sequence[str] = (WORK_DATE,),
        stores: Sequence[Store] = (),
        workers: Sequence[Worker] = (),
    ) -> None:
        self.events = list(events)
        self.work_dates = list(work_dates)
        self.stores = list(stores)
        self.workers = list(workers)
        self.queries: list[ResultQuery] = []

    def fetch_pick_events(self, query: ResultQuery) -> list[PickEvent]:
        self.queries.append(query)
        if query.work_date not in self.work_dates:
            return []
        return list(self.events)

    def list_work_dates(self) -> list[str]:
        return list(self.work_dates)

    def list_stores(self) -> list[Store]:
        return list(self.stores)

    def list_workers(self) -> list[Worker]:
        return list(self.workers)


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using:
    - _files: dict mapping path -> content (bytes)
    - _dirs: set of directory paths

    FEATURES:
    - No actual I/O operations
    - Easy to inspect state
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = set()

    def exists(self, path: str) -> bool:
        """Check if path is a known file or directory."""
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Raises:
            OSError: If directory exists and exist_ok is False,
                or if path is an existing file.
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        # Create all parent directories
        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def write_bytes(self, path: str, content: bytes) -> None:
        """
        Write bytes to a mock file.

        Raises:
            OSError: If the parent directory does not exist.
        """
        parent = path.rsplit("/", 1)[0] if "/" in path else ""
        if parent and parent not in self._dirs:
            raise OSError(f"Parent directory does not exist: {parent}")
        self._files[path] = content

    def get_file(self, path: str) -> bytes | None:
        """Return file content, or None if the file does not exist."""
        return self._files.get(path)

    def list_files(self) -> list[str]:
        """Return all file paths, sorted."""
        return sorted(self._files)

    def list_dirs(self) -> list[str]:
        """Return all directory paths, sorted."""
        return sorted(self._dirs)


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Create a MockFileSystem for testing.

    Provides a fresh in-memory filesystem instance for each test,
    ensuring test isolation without actual disk I/O.
    """
    return MockFileSystem()


@pytest.fixture(autouse=True)
def reset_config() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()


@pytest.fixture
def sample_events() -> list[PickEvent]:
    """
    Pick events for three orders on 2024-01-01.

    - Order 1 (Main, opened by Tanaka): picks of 3 and 2 items, the second
      by Sato; 09:00 to 10:30
    - Order 2 (Main, opened by Tanaka): 4 items; 11:00 to 11:45
    - Order 3 (Station, opened by Sato): 6 items; 09:00 to 10:00

    Expected rollups:
    - Order 1: total_sku 5, "1 hours 30 minutes", rate "3.3"
    - Tanaka at Main: 2 orders, 9 items, 135 minutes
    - Sato at Station: 1 order, 6 items, rate "6.0"
    """
    return [
        make_event(order_id=1, sku_count=3, move_start="2024-01-01T09:05:00Z"),
        make_event(order_id=1, sku_count=2, worker_name="Sato"),
        make_event(
            order_id=2,
            order_number="A0000002",
            sku_count=4,
            order_start_time="2024-01-01T11:00:00Z",
            order_end_time="2024-01-01T11:45:00Z",
        ),
        make_event(
            order_id=3,
            store_name="Station",
            order_number="B0000001",
            worker_name="Sato",
            order_worker_name="Sato",
            sku_count=6,
            order_start_time="2024-01-01T09:00:00Z",
            order_end_time="2024-01-01T10:00:00Z",
        ),
    ]


@pytest.fixture
def master_data() -> tuple[list[Store], list[Worker]]:
    """Stores and workers matching the sample seed data."""
    stores = [Store(i, name) for i, name in enumerate(Config.SAMPLE_STORES, start=1)]
    workers = [Worker(i, name) for i, name in enumerate(Config.SAMPLE_WORKERS, start=1)]
    return stores, workers


@pytest.fixture
def memory_source(
    sample_events: list[PickEvent],
    master_data: tuple[list[Store], list[Worker]],
) -> InMemoryRowSource:
    """InMemoryRowSource serving sample_events on 2024-01-01."""
    stores, workers = master_data
    return InMemoryRowSource(sample_events, stores=stores, workers=workers)


def insert_order(
    db_path: str,
    *,
    store_id: int,
    worker_id: int,
    order_number: str,
    start_time: str,
    end_time: str | None,
    work_date: str = WORK_DATE,
    completed: bool = True,
    picks: Sequence[tuple[int, int]] = ((1, 1),),
) -> int:
    """
    Insert an order and its pick events directly into a test database.

    Args:
        picks: (picker worker_id, sku_count) per pick event.

    Returns:
        The new order id.
    """
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.execute(
            "INSERT INTO orders (store_id, worker_id, order_number, start_time, "
            "end_time, is_completed, work_date) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (store_id, worker_id, order_number, start_time, end_time, int(completed), work_date),
        )
        order_id = cursor.lastrowid
        conn.executemany(
            "INSERT INTO each_picks (order_id, worker_id, sku_count, move_start) "
            "VALUES (?, ?, ?, ?)",
            [(order_id, picker, sku, start_time) for picker, sku in picks],
        )
        conn.commit()
    finally:
        conn.close()
    assert order_id is not None
    return order_id


@pytest.fixture
def sqlite_source(tmp_path: Any) -> SqliteRowSource:
    """
    SqliteRowSource on a fresh seeded database.

    Stores: 1 Main, 2 Station, 3 Suburb. Workers: 1 Tanaka, 2 Sato,
    3 Suzuki. No orders.
    """
    source = SqliteRowSource(str(tmp_path / "test.db"))
    source.initialize_schema()
    source.seed_master_data()
    return source
