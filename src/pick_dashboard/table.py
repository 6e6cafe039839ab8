"""
Sortable, paginated table state for dashboard results.

PURPOSE: Hold the sort and page cursor of one result table.
AI CONTEXT: Framework-agnostic state machine - the web layer renders it.

STATE:
- Sort: zero or one (column, direction) pair
- Page index: zero-based, always within [0, page_count - 1]
- Page size: fixed per table (Config.PAGE_SIZE by default)

SORT CYCLE:
Clicking a sortable column header advances NONE -> ASC -> DESC -> NONE.
Clicking a different column starts that column's cycle at ASC. Any sort
change returns to the first page.

DERIVED COLUMNS:
Column.value returns the sort key (numbers for duration and rate) while
Column.display renders the cell text, so "9 minutes" sorts before
"10 minutes".

USAGE:
    table = TablePresenter(aggregates, ORDER_COLUMNS)
    table.set_sort("duration_ms")   # ascending
    table.next_page()
    for row in table.visible_rows():
        print(table.cells(row))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from .config import Config

__all__ = [
    "SortDirection",
    "SortSpec",
    "Column",
    "TablePresenter",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SortDirection(str, Enum):
    """Sort state of a single column."""

    NONE = "none"
    ASC = "asc"
    DESC = "desc"

    def next(self) -> SortDirection:
        """Return the direction reached by one header click."""
        return _SORT_TRANSITIONS[self]

    @property
    def indicator(self) -> str:
        """Arrow shown next to the column header."""
        return _SORT_INDICATORS[self]

    @classmethod
    def parse(cls, value: str | None) -> SortDirection:
        """Parse a direction string; empty or unknown values mean NONE."""
        if not value:
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            logger.debug("Ignoring unknown sort direction %r", value)
            return cls.NONE


_SORT_TRANSITIONS: dict[SortDirection, SortDirection] = {
    SortDirection.NONE: SortDirection.ASC,
    SortDirection.ASC: SortDirection.DESC,
    SortDirection.DESC: SortDirection.NONE,
}

_SORT_INDICATORS: dict[SortDirection, str] = {
    SortDirection.NONE: "↕",
    SortDirection.ASC: "↑",
    SortDirection.DESC: "↓",
}


@dataclass(frozen=True)
class SortSpec:
    """Active sort on one column."""

    column: str
    direction: SortDirection


@dataclass(frozen=True)
class Column(Generic[T]):
    """
    Table column definition.

    Attributes:
        key: Stable identifier used in sort state and URLs.
        header: Column title shown to the user.
        value: Returns the row's underlying value, used for sorting.
        display: Renders the cell text. Defaults to str(value), with
            None rendered as an empty cell.
        sortable: Whether header clicks change the sort.
    """

    key: str
    header: str
    value: Callable[[T], Any]
    display: Callable[[T], str] | None = None
    sortable: bool = True

    def render(self, row: T) -> str:
        """Render one cell of this column."""
        if self.display is not None:
            return self.display(row)
        value = self.value(row)
        return "" if value is None else str(value)


class TablePresenter(Generic[T]):
    """
    Sort and pagination state over a fixed row set.

    The row set is copied at construction and never mutated; sorting
    produces a new ordering each time it is requested.
    """

    def __init__(
        self,
        rows: Sequence[T],
        columns: Sequence[Column[T]],
        page_size: int | None = None,
    ) -> None:
        """
        Initialize table state with no sort on the first page.

        Args:
            rows: Rows to display, in their natural (unsorted) order.
            columns: Column definitions, in display order.
            page_size: Rows per page. Default: Config.get_page_size().

        Raises:
            ValueError: If page_size is not positive or column keys repeat.

        Example:
            >>> table = TablePresenter(rows, ORDER_COLUMNS)
            >>> table.page_index
            0
        """
        size = page_size if page_size is not None else Config.get_page_size()
        if size <= 0:
            raise ValueError(f"page_size must be positive, got {size}")
        self.columns: list[Column[T]] = list(columns)
        self._by_key: dict[str, Column[T]] = {c.key: c for c in self.columns}
        if len(self._by_key) != len(self.columns):
            raise ValueError("Column keys must be unique")
        self._rows: list[T] = list(rows)
        self.page_size = size
        self._sort: SortSpec | None = None
        self._page_index = 0

    # =========================================================================
    # SORT
    # =========================================================================

    def _sortable_column(self, key: str) -> Column[T]:
        """
        Look up a column that accepts sorting.

        Raises:
            KeyError: If no column has this key.
            ValueError: If the column is not sortable.
        """
        column = self._by_key[key]
        if not column.sortable:
            raise ValueError(f"Column {key!r} is not sortable")
        return column

    @property
    def sort_state(self) -> list[SortSpec]:
        """Active sort specifications (empty when unsorted)."""
        return [self._sort] if self._sort is not None else []

    def direction_for(self, key: str) -> SortDirection:
        """Current sort direction of a column."""
        if self._sort is not None and self._sort.column == key:
            return self._sort.direction
        return SortDirection.NONE

    def next_direction(self, key: str) -> SortDirection:
        """Direction a header click on this column would produce."""
        return self.direction_for(key).next()

    def sort_indicator(self, key: str) -> str:
        """Arrow for a column header: ↑ ascending, ↓ descending, ↕ unsorted."""
        return self.direction_for(key).indicator

    def set_sort(self, key: str) -> SortDirection:
        """
        Advance a column's sort by one header click.

        Cycles NONE -> ASC -> DESC -> NONE for the clicked column. Only one
        column is sorted at a time, so clicking another column replaces the
        active sort. Returns to the first page.

        Args:
            key: Column key.

        Returns:
            The column's new direction.

        Raises:
            KeyError: If no column has this key.
            ValueError: If the column is not sortable.

        Example:
            >>> table.set_sort('picking_rate')
            <SortDirection.ASC: 'asc'>
            >>> table.set_sort('picking_rate')
            <SortDirection.DESC: 'desc'>
        """
        direction = self.next_direction(key)
        self.apply_sort(key, direction)
        return direction

    def apply_sort(self, key: str, direction: SortDirection) -> None:
        """
        Set a column's sort direction directly.

        Used to restore table state from a request. SortDirection.NONE
        clears the sort. Returns to the first page.

        Raises:
            KeyError: If no column has this key.
            ValueError: If the column is not sortable.
        """
        self._sortable_column(key)
        self._sort = None if direction is SortDirection.NONE else SortSpec(key, direction)
        self._page_index = 0

    def clear_sort(self) -> None:
        """Remove any active sort and return to the first page."""
        self._sort = None
        self._page_index = 0

    def sorted_rows(self) -> list[T]:
        """
        Return every row in the current sort order.

        Sorting is stable and compares Column.value results. Rows whose
        value is None are placed last in both directions.

        Returns:
            New list of rows; the input order when unsorted.
        """
        if self._sort is None:
            return list(self._rows)
        column = self._by_key[self._sort.column]
        present = [row for row in self._rows if column.value(row) is not None]
        missing = [row for row in self._rows if column.value(row) is None]
        present.sort(
            key=column.value,
            reverse=self._sort.direction is SortDirection.DESC,
        )
        return present + missing

    # =========================================================================
    # PAGINATION
    # =========================================================================

    @property
    def row_count(self) -> int:
        """Total rows across all pages."""
        return len(self._rows)

    @property
    def page_index(self) -> int:
        """Zero-based index of the current page."""
        return self._page_index

    @property
    def page_count(self) -> int:
        """Number of pages; at least 1 even with zero rows."""
        return max(1, -(-len(self._rows) // self.page_size))

    @property
    def can_previous_page(self) -> bool:
        """Whether previous_page() would move."""
        return self._page_index > 0

    @property
    def can_next_page(self) -> bool:
        """Whether next_page() would move."""
        return self._page_index < self.page_count - 1

    def next_page(self) -> bool:
        """
        Move to the next page.

        Returns:
            True if the page changed; False (no-op) on the last page.
        """
        if not self.can_next_page:
            return False
        self._page_index += 1
        return True

    def previous_page(self) -> bool:
        """
        Move to the previous page.

        Returns:
            True if the page changed; False (no-op) on the first page.
        """
        if not self.can_previous_page:
            return False
        self._page_index -= 1
        return True

    def go_to_page(self, index: int) -> int:
        """
        Jump to a page, clamping into [0, page_count - 1].

        Returns:
            The page index actually selected.
        """
        self._page_index = min(max(index, 0), self.page_count - 1)
        return self._page_index

    def visible_rows(self) -> list[T]:
        """Rows of the current page, in sort order."""
        start = self._page_index * self.page_size
        return self.sorted_rows()[start : start + self.page_size]

    # =========================================================================
    # RENDERING HELPERS
    # =========================================================================

    def cells(self, row: T) -> list[str]:
        """Rendered cell text of one row, in column order."""
        return [column.render(row) for column in self.columns]

    def range_label(self) -> str:
        """
        Describe the visible slice, e.g. "45 rows, showing 21-40".

        Returns:
            "0 rows" when the table is empty.
        """
        total = len(self._rows)
        if total == 0:
            return "0 rows"
        first = self._page_index * self.page_size + 1
        last = min((self._page_index + 1) * self.page_size, total)
        return f"{total} rows, showing {first}-{last}"

    def page_label(self) -> str:
        """One-based page position, e.g. "2 / 3"."""
        return f"{self._page_index + 1} / {self.page_count}"
