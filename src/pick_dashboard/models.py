"""
Data models for Pick Dashboard.

PURPOSE: Type-safe dataclasses representing the dashboard's domain entities.
AI CONTEXT: These models define the row shapes flowing from the row source
through aggregation to the table, chart, and CSV sinks.

MODEL HIERARCHY:
- PickEvent: One picked item-count record joined to its order (raw row)
- OrderAggregate: Rollup of all pick events sharing an order
- WorkerAggregate: Rollup of all pick events for an order-opening worker at a store
- Store / Worker: Master data listed in the search form
- ResultQuery: Validated filter criteria for one result view
- DisplayState: Aggregation mode and view mode of the result page

SERIALIZATION:
PickEvent has to_dict()/from_dict() for SQL rows and JSON payloads.
Timestamps are ISO 8601 strings; arithmetic happens in metrics.py.

USAGE:
    event = PickEvent.from_dict(row)
    query = ResultQuery.from_params("2024-01-01", store="all", worker="3")
    state = DisplayState().apply(DisplayAction.SET_AGGREGATION, "worker")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .metrics import (
    elapsed_ms,
    format_duration_ms,
    format_rate,
    picking_rate_from_duration,
)

__all__ = [
    "STEP_FIELDS",
    "InvalidQueryError",
    "PickEvent",
    "OrderAggregate",
    "WorkerAggregate",
    "Store",
    "Worker",
    "ResultQuery",
    "AggregationMode",
    "ViewMode",
    "DisplayAction",
    "DisplayState",
]

STEP_FIELDS: tuple[str, ...] = (
    "move_start",
    "arrive_at_shelf",
    "pick_start",
    "pack_start",
    "pack_finished",
    "customer_service_start",
    "customer_service_finish",
)
"""Per-pick workflow step timestamps, in workflow order."""


class InvalidQueryError(ValueError):
    """Raised when result filter or display parameters cannot be parsed."""


def _optional_text(value: Any) -> str | None:
    """Normalize empty values from storage to None."""
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class PickEvent:
    """
    One item-count record captured while fulfilling a single order.

    Each row joins the order (number, store, opening worker, start/end)
    to one of its pick events (picker, item count, step timestamps).

    FIELDS:
    - worker_name: The worker who performed this pick
    - order_worker_name: The worker who opened the order (may differ)
    - order_end_time: None only for orders that are not completed

    INVARIANTS:
    - sku_count >= 1
    """

    store_name: str
    worker_name: str
    order_number: str
    sku_count: int
    order_start_time: str
    order_end_time: str | None
    order_id: int
    order_worker_name: str
    move_start: str | None = None
    arrive_at_shelf: str | None = None
    pick_start: str | None = None
    pack_start: str | None = None
    pack_finished: str | None = None
    customer_service_start: str | None = None
    customer_service_finish: str | None = None

    def __post_init__(self) -> None:
        """
        Validate the item-count invariant.

        Raises:
            ValueError: If sku_count is below 1.
        """
        if self.sku_count < 1:
            raise ValueError(f"sku_count must be >= 1, got {self.sku_count}")

    def step_times(self) -> list[str | None]:
        """Return the seven step timestamps in workflow order."""
        return [getattr(self, name) for name in STEP_FIELDS]

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize pick event to a JSON-compatible dictionary.

        Returns:
            Dict with every field keyed by its column name. Missing
            step timestamps are None.
        """
        data: dict[str, Any] = {
            "store_name": self.store_name,
            "worker_name": self.worker_name,
            "order_number": self.order_number,
            "sku_count": self.sku_count,
            "order_start_time": self.order_start_time,
            "order_end_time": self.order_end_time,
        }
        for name in STEP_FIELDS:
            data[name] = getattr(self, name)
        data["order_id"] = self.order_id
        data["order_worker_name"] = self.order_worker_name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PickEvent:
        """
        Build a pick event from a storage row or JSON payload.

        Normalizes input: empty strings become None for optional
        timestamps, missing names become empty strings, and numeric
        columns are coerced to int.

        Business context: The row source may hand back sqlite3.Row
        mappings or plain dicts; both normalize to the same immutable
        record so aggregation never has to guard against mixed types.

        Args:
            data: Mapping with the PickEvent column names.

        Returns:
            New PickEvent instance.

        Raises:
            KeyError: If sku_count, order_id, or order_start_time is missing.
            ValueError: If sku_count is not a positive integer, or
                order_start_time is None or blank.

        Example:
            >>> event = PickEvent.from_dict({
            ...     'store_name': 'Main', 'worker_name': 'Sato',
            ...     'order_number': 'A0000001', 'sku_count': 3,
            ...     'order_start_time': '2024-01-01T09:00:00Z',
            ...     'order_end_time': '', 'order_id': 7,
            ...     'order_worker_name': 'Tanaka',
            ... })
            >>> event.order_end_time is None
            True
        """
        steps = {name: _optional_text(data.get(name)) for name in STEP_FIELDS}
        start_time = _optional_text(data["order_start_time"])
        if start_time is None:
            raise ValueError(f"order_start_time is missing for order {data.get('order_id')}")
        return cls(
            store_name=data.get("store_name") or "",
            worker_name=data.get("worker_name") or "",
            order_number=data.get("order_number") or "",
            sku_count=int(data["sku_count"]),
            order_start_time=start_time,
            order_end_time=_optional_text(data.get("order_end_time")),
            order_id=int(data["order_id"]),
            order_worker_name=data.get("order_worker_name") or "",
            **steps,
        )


@dataclass
class OrderAggregate:
    """
    Rollup of all pick events sharing one order_id.

    store_name, order_number, worker_name (the order-opening worker), and
    the start/end times come from the first pick event seen for the order;
    total_sku is the sum over every pick event of the order.
    """

    order_id: int
    store_name: str
    order_number: str
    worker_name: str
    total_sku: int
    start_time: str
    end_time: str | None

    @property
    def duration_ms(self) -> int:
        """Elapsed order time in milliseconds (0 when unmeasurable)."""
        return elapsed_ms(self.start_time, self.end_time)

    @property
    def duration_display(self) -> str:
        """
        Format order duration as human-readable string.

        Returns:
            String like "45 minutes" or "1 hours 30 minutes".

        Example:
            >>> agg = OrderAggregate(7, 'Main', 'A0000007', 'Tanaka', 5,
            ...     '2024-01-01T09:00:00Z', '2024-01-01T10:30:00Z')
            >>> agg.duration_display
            '1 hours 30 minutes'
        """
        return format_duration_ms(self.duration_ms)

    @property
    def picking_rate(self) -> float:
        """Items picked per hour of order duration."""
        return picking_rate_from_duration(self.total_sku, self.duration_ms)

    @property
    def picking_rate_display(self) -> str:
        """Picking rate rounded to one decimal place, e.g. "3.3"."""
        return format_rate(self.picking_rate)


@dataclass
class WorkerAggregate:
    """
    Rollup of pick events for one (store_name, order-opening worker) pair.

    order_count counts distinct orders and total_time_ms counts each
    order's duration once; total_sku sums every pick event.
    """

    store_name: str
    worker_name: str
    order_count: int
    total_sku: int
    total_time_ms: int

    @property
    def duration_display(self) -> str:
        """Summed order time, e.g. "2 hours 5 minutes"."""
        return format_duration_ms(self.total_time_ms)

    @property
    def picking_rate(self) -> float:
        """Items picked per hour of summed order time."""
        return picking_rate_from_duration(self.total_sku, self.total_time_ms)

    @property
    def picking_rate_display(self) -> str:
        """Picking rate rounded to one decimal place."""
        return format_rate(self.picking_rate)


@dataclass(frozen=True)
class Store:
    """Store master record."""

    id: int
    store_name: str


@dataclass(frozen=True)
class Worker:
    """Worker master record."""

    id: int
    worker_name: str


def _parse_filter_id(value: str | int | None, label: str) -> int | None:
    """
    Parse a store/worker filter value from the search form.

    Args:
        value: Raw form value. None, "" and "all" mean no filter.
        label: Field name used in the error message.

    Returns:
        Positive integer id, or None for no filter.

    Raises:
        InvalidQueryError: If value is not a positive integer.
    """
    if value is None or value == "" or value == "all":
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidQueryError(f"Invalid {label} filter: {value!r}") from e
    if parsed <= 0:
        raise InvalidQueryError(f"Invalid {label} filter: {value!r}")
    return parsed


@dataclass(frozen=True)
class ResultQuery:
    """
    Validated filter criteria for one dashboard result view.

    The row source filters completed orders by work_date and, when set,
    by the order's store_id and worker_id.
    """

    work_date: str
    store_id: int | None = None
    worker_id: int | None = None

    def __post_init__(self) -> None:
        """
        Validate work_date format.

        Raises:
            InvalidQueryError: If work_date is not a YYYY-MM-DD date.
        """
        try:
            datetime.strptime(self.work_date, "%Y-%m-%d")
        except (TypeError, ValueError) as e:
            raise InvalidQueryError(f"Invalid work date: {self.work_date!r}") from e

    @classmethod
    def from_params(
        cls,
        work_date: str,
        store: str | int | None = None,
        worker: str | int | None = None,
    ) -> ResultQuery:
        """
        Build a query from raw search-form values.

        Args:
            work_date: Date string in YYYY-MM-DD format.
            store: Store id, or "all"/None for every store.
            worker: Worker id, or "all"/None for every worker.

        Returns:
            Validated ResultQuery.

        Raises:
            InvalidQueryError: If any value fails validation.

        Example:
            >>> ResultQuery.from_params('2024-01-01', store='all', worker='2')
            ResultQuery(work_date='2024-01-01', store_id=None, worker_id=2)
        """
        return cls(
            work_date=work_date,
            store_id=_parse_filter_id(store, "store"),
            worker_id=_parse_filter_id(worker, "worker"),
        )


class AggregationMode(str, Enum):
    """User-selected rollup granularity."""

    ORDER = "order"
    WORKER = "worker"
    EACH_PICK = "each_pick"

    @classmethod
    def parse(cls, value: str | None) -> AggregationMode:
        """
        Parse a mode string, defaulting to ORDER when empty.

        Raises:
            InvalidQueryError: If value names no known mode.
        """
        if not value:
            return cls.ORDER
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidQueryError(f"Unknown aggregation mode: {value!r}") from e


class ViewMode(str, Enum):
    """Result rendering: paginated table or bar chart."""

    TABLE = "table"
    BAR = "bar"

    @classmethod
    def parse(cls, value: str | None) -> ViewMode:
        """
        Parse a view mode string, defaulting to TABLE when empty.

        Raises:
            InvalidQueryError: If value names no known view mode.
        """
        if not value:
            return cls.TABLE
        try:
            return cls(value)
        except ValueError as e:
            raise InvalidQueryError(f"Unknown view mode: {value!r}") from e


class DisplayAction(str, Enum):
    """Transitions accepted by DisplayState.apply()."""

    SET_AGGREGATION = "set_aggregation"
    SET_VIEW_MODE = "set_view_mode"


@dataclass(frozen=True)
class DisplayState:
    """
    Aggregation mode and view mode of the result page.

    Immutable: apply() returns a new state. Each action has exactly one
    entry in _DISPLAY_TRANSITIONS; unknown values raise InvalidQueryError.
    """

    aggregation: AggregationMode = AggregationMode.ORDER
    view_mode: ViewMode = ViewMode.TABLE

    @property
    def supports_chart(self) -> bool:
        """Per-pick rows have no bar chart."""
        return self.aggregation is not AggregationMode.EACH_PICK

    def apply(self, action: DisplayAction | str, value: str) -> DisplayState:
        """
        Return the state reached by applying one display action.

        Args:
            action: DisplayAction member or its string value.
            value: New aggregation mode or view mode string.

        Returns:
            New DisplayState. The receiver is never modified.

        Raises:
            InvalidQueryError: If action or value is unknown.

        Example:
            >>> DisplayState().apply(DisplayAction.SET_VIEW_MODE, 'bar').view_mode
            <ViewMode.BAR: 'bar'>
        """
        try:
            transition = _DISPLAY_TRANSITIONS[DisplayAction(action)]
        except ValueError as e:
            raise InvalidQueryError(f"Unknown display action: {action!r}") from e
        return transition(self, value)


_DISPLAY_TRANSITIONS: dict[DisplayAction, Callable[[DisplayState, str], DisplayState]] = {
    DisplayAction.SET_AGGREGATION: lambda state, value: replace(
        state, aggregation=AggregationMode.parse(value)
    ),
    DisplayAction.SET_VIEW_MODE: lambda state, value: replace(
        state, view_mode=ViewMode.parse(value)
    ),
}
