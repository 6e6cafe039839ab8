"""
Presenters for Pick Dashboard.

PURPOSE: Testable business logic layer between the row source and the UI.
AI CONTEXT: Presenters fetch once per request, aggregate, and hand back
view models - no HTTP, no HTML.

DESIGN PRINCIPLES:
1. Presenters receive an injected RowSource, return view models
2. No dependencies on specific UI framework
3. Unit-testable with an in-memory row source
4. Each presenter focuses on one dashboard view

USAGE:
    presenter = DashboardPresenter(row_source)
    result = presenter.get_result(query, DisplayState(), sort="picking_rate", direction="desc")
    for row in result.table.visible_rows():
        print(result.table.cells(row))
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .aggregation import aggregate_by_order, aggregate_by_worker
from .exporter import CsvExport, build_export
from .metrics import InvalidTimestampError, parse_timestamp, round_rate
from .models import (
    AggregationMode,
    DisplayState,
    InvalidQueryError,
    OrderAggregate,
    PickEvent,
    ResultQuery,
    Store,
    ViewMode,
    Worker,
    WorkerAggregate,
)
from .table import Column, SortDirection, TablePresenter

if TYPE_CHECKING:
    from .row_source import RowSource

__all__ = [
    "EACH_PICK_COLUMNS",
    "ORDER_COLUMNS",
    "WORKER_COLUMNS",
    "format_timestamp",
    "SearchFormViewModel",
    "DashboardResult",
    "DashboardPresenter",
    "ChartPresenter",
    "order_chart_data",
    "worker_chart_data",
]

logger = logging.getLogger(__name__)

# Chart colors
RATE_COLOR = "#374151"
SKU_COLOR = "#9ca3af"


def _timestamp_key(value: str | None) -> datetime | None:
    """Sort key for a timestamp cell; None when absent or unparseable."""
    try:
        return parse_timestamp(value)
    except InvalidTimestampError:
        return None


def format_timestamp(value: str | None) -> str:
    """
    Format an ISO timestamp for a table cell.

    Shows date and time in the timestamp's own offset. Absent values
    render as an empty cell; unparseable values are shown as stored.

    Example:
        >>> format_timestamp('2024-01-01T09:00:00Z')
        '2024-01-01 09:00:00'
    """
    if not value:
        return ""
    parsed = _timestamp_key(value)
    if parsed is None:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S")


EACH_PICK_COLUMNS: list[Column[PickEvent]] = [
    Column("store_name", "store", lambda r: r.store_name),
    Column("order_number", "order number", lambda r: r.order_number),
    Column("worker_name", "worker", lambda r: r.worker_name),
    Column("sku_count", "item count", lambda r: r.sku_count),
    Column(
        "order_start_time",
        "work start",
        lambda r: _timestamp_key(r.order_start_time),
        display=lambda r: format_timestamp(r.order_start_time),
    ),
    Column(
        "order_end_time",
        "work end",
        lambda r: _timestamp_key(r.order_end_time),
        display=lambda r: format_timestamp(r.order_end_time),
    ),
]

ORDER_COLUMNS: list[Column[OrderAggregate]] = [
    Column("store_name", "store", lambda r: r.store_name),
    Column("order_number", "order number", lambda r: r.order_number),
    Column("worker_name", "worker", lambda r: r.worker_name),
    Column("total_sku", "total items", lambda r: r.total_sku),
    Column(
        "duration_ms",
        "total duration",
        lambda r: r.duration_ms,
        display=lambda r: r.duration_display,
    ),
    Column(
        "picking_rate",
        "picking rate",
        lambda r: r.picking_rate,
        display=lambda r: f"{r.picking_rate_display}/h",
    ),
]

WORKER_COLUMNS: list[Column[WorkerAggregate]] = [
    Column("store_name", "store", lambda r: r.store_name),
    Column("worker_name", "worker", lambda r: r.worker_name),
    Column("order_count", "orders handled", lambda r: r.order_count),
    Column("total_sku", "total items", lambda r: r.total_sku),
    Column(
        "total_time_ms",
        "total duration",
        lambda r: r.total_time_ms,
        display=lambda r: r.duration_display,
    ),
    Column(
        "picking_rate",
        "picking rate",
        lambda r: r.picking_rate,
        display=lambda r: f"{r.picking_rate_display}/h",
    ),
]


@dataclass
class SearchFormViewModel:
    """View model for the search form: selectable dates, workers, stores."""

    work_dates: list[str] = field(default_factory=list)
    stores: list[Store] = field(default_factory=list)
    workers: list[Worker] = field(default_factory=list)

    @property
    def has_dates(self) -> bool:
        """False when no orders exist yet; the search button is disabled."""
        return len(self.work_dates) > 0


@dataclass
class DashboardResult:
    """
    Complete view model for one result page.

    table holds the rows of the active aggregation mode with its sort and
    page cursor already restored from the request.
    """

    query: ResultQuery
    state: DisplayState
    table: TablePresenter[Any]
    event_count: int
    store_label: str
    worker_label: str

    @property
    def is_empty(self) -> bool:
        """True when the query matched no pick events."""
        return self.event_count == 0

    @property
    def show_chart(self) -> bool:
        """True when the bar view is selected and the mode supports it."""
        return self.state.view_mode is ViewMode.BAR and self.state.supports_chart


def build_table(
    events: Sequence[PickEvent],
    mode: AggregationMode,
    page_size: int | None = None,
) -> TablePresenter[Any]:
    """
    Aggregate pick events for a mode and wrap them in a table.

    Args:
        events: Raw pick events.
        mode: Aggregation mode selecting rows and columns.
        page_size: Rows per page. Default: Config.get_page_size().

    Returns:
        TablePresenter over PickEvent, OrderAggregate, or WorkerAggregate rows.
    """
    if mode is AggregationMode.EACH_PICK:
        return TablePresenter(events, EACH_PICK_COLUMNS, page_size)
    if mode is AggregationMode.ORDER:
        return TablePresenter(aggregate_by_order(events), ORDER_COLUMNS, page_size)
    return TablePresenter(aggregate_by_worker(events), WORKER_COLUMNS, page_size)


def _filter_label(selected: int | None, names: dict[int, str], all_label: str) -> str:
    """Name of the selected store/worker, or all_label when unfiltered."""
    if selected is None:
        return all_label
    return names.get(selected, f"#{selected}")


class DashboardPresenter:
    """
    Presenter for the search form and result page.

    Transforms row source data into view models ready for rendering.
    """

    def __init__(self, row_source: RowSource, page_size: int | None = None) -> None:
        """
        Initialize dashboard presenter with its data dependency.

        Business context: The row source is created once per process and
        injected, so tests can substitute an in-memory source and the web
        app never reaches for a global database handle.

        Args:
            row_source: RowSource used for every fetch.
            page_size: Rows per table page. Default: Config.get_page_size().

        Example:
            >>> presenter = DashboardPresenter(SqliteRowSource('local.db'))
            >>> form = presenter.get_search_form()
        """
        self.row_source = row_source
        self.page_size = page_size

    def get_search_form(self) -> SearchFormViewModel:
        """
        Load the options of the search form.

        Returns:
            SearchFormViewModel with work dates (newest first), stores, and
            workers.
        """
        return SearchFormViewModel(
            work_dates=self.row_source.list_work_dates(),
            stores=self.row_source.list_stores(),
            workers=self.row_source.list_workers(),
        )

    def get_result(
        self,
        query: ResultQuery,
        state: DisplayState | None = None,
        sort: str | None = None,
        direction: str | None = None,
        page: int = 0,
    ) -> DashboardResult:
        """
        Build the result page for a query and display state.

        Fetches pick events once, aggregates them for the active mode, and
        restores the table's sort and page from request parameters. The
        page index is clamped into the valid range.

        Business context: Managers switch between per-order, per-worker,
        and per-pick views of the same day. Each switch recomputes the
        rollup from a fresh fetch; nothing is cached between requests.

        Args:
            query: Validated filter criteria.
            state: Aggregation and view mode. Default: per-order table.
            sort: Column key to sort by, or None for input order.
            direction: "asc" or "desc"; anything else leaves rows unsorted.
            page: Zero-based page index requested.

        Returns:
            DashboardResult view model.

        Raises:
            InvalidQueryError: If sort names a column the mode does not have
                or a column that cannot be sorted.
            RowSourceError: If the row source fails.

        Example:
            >>> result = presenter.get_result(ResultQuery('2024-01-01'))
            >>> result.table.page_label()
            '1 / 1'
        """
        display = state or DisplayState()
        events = self.row_source.fetch_pick_events(query)
        table = build_table(events, display.aggregation, self.page_size)

        if sort:
            try:
                table.apply_sort(sort, SortDirection.parse(direction))
            except (KeyError, ValueError) as e:
                raise InvalidQueryError(f"Cannot sort by {sort!r}") from e
        table.go_to_page(page)

        stores = {s.id: s.store_name for s in self.row_source.list_stores()}
        workers = {w.id: w.worker_name for w in self.row_source.list_workers()}

        logger.info(
            "Result %s mode=%s rows=%d",
            query.work_date,
            display.aggregation.value,
            table.row_count,
        )
        return DashboardResult(
            query=query,
            state=display,
            table=table,
            event_count=len(events),
            store_label=_filter_label(query.store_id, stores, "all stores"),
            worker_label=_filter_label(query.worker_id, workers, "all workers"),
        )

    def build_export(self, query: ResultQuery, mode: AggregationMode) -> CsvExport:
        """
        Fetch pick events and render them as a CSV export.

        Args:
            query: Validated filter criteria.
            mode: Aggregation mode of the export.

        Returns:
            CsvExport named dashboard_{work_date}_{mode}.csv.
        """
        events = self.row_source.fetch_pick_events(query)
        return build_export(events, query.work_date, mode)


def order_chart_data(aggregates: Sequence[OrderAggregate]) -> list[dict[str, Any]]:
    """
    Build per-order bar chart data.

    Returns:
        One dict per order with name (order number), picking_rate rounded
        to one decimal, total_sku, and worker_name.
    """
    return [
        {
            "name": agg.order_number,
            "picking_rate": round_rate(agg.picking_rate),
            "total_sku": agg.total_sku,
            "worker_name": agg.worker_name,
        }
        for agg in aggregates
    ]


def worker_chart_data(aggregates: Sequence[WorkerAggregate]) -> list[dict[str, Any]]:
    """
    Build per-worker bar chart data.

    Returns:
        One dict per worker group with name (worker), store_name,
        picking_rate rounded to one decimal, total_sku, and order_count.
    """
    return [
        {
            "name": agg.worker_name,
            "store_name": agg.store_name,
            "picking_rate": round_rate(agg.picking_rate),
            "total_sku": agg.total_sku,
            "order_count": agg.order_count,
        }
        for agg in aggregates
    ]


class ChartPresenter:
    """
    Presenter for bar chart images.

    Uses matplotlib for server-side chart rendering.
    Returns PNG images as bytes.
    """

    def __init__(self, row_source: RowSource) -> None:
        """
        Initialize chart presenter with its data dependency.

        Args:
            row_source: RowSource used for every fetch.
        """
        self.row_source = row_source

    def render_chart(self, query: ResultQuery, mode: AggregationMode) -> bytes:
        """
        Render the bar chart for an aggregation mode.

        Args:
            query: Validated filter criteria.
            mode: ORDER or WORKER.

        Returns:
            PNG image bytes.

        Raises:
            InvalidQueryError: If mode is EACH_PICK, which has no chart.
        """
        if mode is AggregationMode.EACH_PICK:
            raise InvalidQueryError("Per-pick rows have no bar chart")
        events = self.row_source.fetch_pick_events(query)
        if mode is AggregationMode.ORDER:
            return self.render_order_chart(aggregate_by_order(events))
        return self.render_worker_chart(aggregate_by_worker(events))

    def _render_empty(self) -> Any:
        """
        Render placeholder chart when there is no data.

        Returns:
            Matplotlib figure.
        """
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(8, 3))
        ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14)
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.axis("off")
        return fig

    def _to_png(self, fig: Any) -> bytes:
        """Serialize a figure to PNG bytes and close it."""
        import matplotlib.pyplot as plt

        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()

    def render_order_chart(self, aggregates: Sequence[OrderAggregate]) -> bytes:
        """
        Render picking rate per order as a vertical bar chart PNG.

        Business context: Slow orders stand out as short bars, which
        points managers at orders worth reviewing step by step.

        Args:
            aggregates: Per-order rollups.

        Returns:
            PNG image bytes, 1000x400 pixels at 100 DPI, or a "No data"
            placeholder when aggregates is empty.
        """
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        data = order_chart_data(aggregates)
        if not data:
            return self._to_png(self._render_empty())

        fig, ax = plt.subplots(figsize=(10, 4))
        positions = range(len(data))
        ax.bar(positions, [d["picking_rate"] for d in data], color=RATE_COLOR)
        ax.set_xticks(list(positions))
        ax.set_xticklabels([d["name"] for d in data], rotation=45, ha="right", fontsize=8)
        ax.set_ylabel("Picking rate (items/h)")
        ax.set_title("Picking Rate by Order")
        ax.grid(axis="y", linestyle="--", alpha=0.5)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        return self._to_png(fig)

    def render_worker_chart(self, aggregates: Sequence[WorkerAggregate]) -> bytes:
        """
        Render picking rate and total items per worker as a bar chart PNG.

        Picking rate uses the left axis, total items the right axis, with
        the two bars of each worker side by side.

        Args:
            aggregates: Per-worker rollups.

        Returns:
            PNG image bytes, or a "No data" placeholder when empty.
        """
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        data = worker_chart_data(aggregates)
        if not data:
            return self._to_png(self._render_empty())

        fig, ax = plt.subplots(figsize=(10, 4))
        width = 0.4
        positions = list(range(len(data)))
        ax.bar(
            [p - width / 2 for p in positions],
            [d["picking_rate"] for d in data],
            width=width,
            color=RATE_COLOR,
            label="Picking rate",
        )
        ax.set_ylabel("Picking rate (items/h)")

        ax_items = ax.twinx()
        ax_items.bar(
            [p + width / 2 for p in positions],
            [d["total_sku"] for d in data],
            width=width,
            color=SKU_COLOR,
            label="Total items",
        )
        ax_items.set_ylabel("Total items")

        ax.set_xticks(positions)
        ax.set_xticklabels(
            [f"{d['name']}\n{d['store_name']}" for d in data],
            rotation=45,
            ha="right",
            fontsize=8,
        )
        ax.set_title("Picking Rate by Worker")
        ax.grid(axis="y", linestyle="--", alpha=0.5)
        handles = ax.get_legend_handles_labels()[0] + ax_items.get_legend_handles_labels()[0]
        ax.legend(handles=handles, loc="upper right")
        return self._to_png(fig)
