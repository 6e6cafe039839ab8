"""
CSV export for Pick Dashboard.

PURPOSE: Serialize raw, per-order, or per-worker rows into a CSV document.
AI CONTEXT: Pure transformation to bytes - writing or sending the file is
the caller's job.

DOCUMENT FORMAT:
- UTF-8 with a leading byte-order marker so spreadsheet tools pick UTF-8
- First line is the fixed header for the aggregation mode
- Every field wrapped in double quotes, embedded quotes doubled
- Lines joined by a single "\\n", no trailing newline
- File name: dashboard_{work_date}_{mode}.csv

NUMERIC FIELDS:
Durations and rates go through metrics.py, the same helpers the table
uses, so exported values match what the dashboard shows.

USAGE:
    export = build_export(events, "2024-01-01", AggregationMode.WORKER)
    Path(export.filename).write_bytes(export.content)
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .aggregation import aggregate_by_order, aggregate_by_worker
from .config import Config
from .models import AggregationMode, OrderAggregate, PickEvent, WorkerAggregate
from .table import Column

__all__ = [
    "BOM",
    "EACH_PICK_CSV_COLUMNS",
    "ORDER_CSV_COLUMNS",
    "WORKER_CSV_COLUMNS",
    "CsvExport",
    "to_csv",
    "parse_csv",
    "export_filename",
    "build_export",
]

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def _text(value: Any) -> str:
    """Render a field, with absent values as an empty string."""
    return "" if value is None else str(value)


def _pick_columns() -> list[Column[PickEvent]]:
    """Build per-pick CSV columns from EACH_PICK_HEADERS."""
    attributes = (
        "store_name",
        "worker_name",
        "order_number",
        "sku_count",
        "order_start_time",
        "order_end_time",
        "move_start",
        "arrive_at_shelf",
        "pick_start",
        "pack_start",
        "pack_finished",
        "customer_service_start",
        "customer_service_finish",
    )
    return [
        Column(
            key=attribute,
            header=header,
            value=lambda row, attr=attribute: getattr(row, attr),
            display=lambda row, attr=attribute: _text(getattr(row, attr)),
        )
        for attribute, header in zip(attributes, Config.EACH_PICK_HEADERS, strict=True)
    ]


EACH_PICK_CSV_COLUMNS: list[Column[PickEvent]] = _pick_columns()

ORDER_CSV_COLUMNS: list[Column[OrderAggregate]] = [
    Column("store_name", Config.ORDER_HEADERS[0], lambda r: r.store_name),
    Column("order_number", Config.ORDER_HEADERS[1], lambda r: r.order_number),
    Column("worker_name", Config.ORDER_HEADERS[2], lambda r: r.worker_name),
    Column("total_sku", Config.ORDER_HEADERS[3], lambda r: r.total_sku),
    Column(
        "duration_ms",
        Config.ORDER_HEADERS[4],
        lambda r: r.duration_ms,
        display=lambda r: r.duration_display,
    ),
    Column(
        "picking_rate",
        Config.ORDER_HEADERS[5],
        lambda r: r.picking_rate,
        display=lambda r: r.picking_rate_display,
    ),
]

WORKER_CSV_COLUMNS: list[Column[WorkerAggregate]] = [
    Column("store_name", Config.WORKER_HEADERS[0], lambda r: r.store_name),
    Column("worker_name", Config.WORKER_HEADERS[1], lambda r: r.worker_name),
    Column("order_count", Config.WORKER_HEADERS[2], lambda r: r.order_count),
    Column("total_sku", Config.WORKER_HEADERS[3], lambda r: r.total_sku),
    Column(
        "total_time_ms",
        Config.WORKER_HEADERS[4],
        lambda r: r.total_time_ms,
        display=lambda r: r.duration_display,
    ),
    Column(
        "picking_rate",
        Config.WORKER_HEADERS[5],
        lambda r: r.picking_rate,
        display=lambda r: r.picking_rate_display,
    ),
]


@dataclass(frozen=True)
class CsvExport:
    """A rendered CSV document ready to be saved or downloaded."""

    filename: str
    content: bytes
    row_count: int


def to_csv(rows: Sequence[Any], columns: Sequence[Column[Any]]) -> bytes:
    """
    Serialize rows into a quoted, BOM-prefixed CSV document.

    Writes the column headers as the first line, then one line per row
    with each cell rendered by Column.render(). All fields are quoted;
    double quotes inside a field are doubled.

    Business context: Managers open exports in spreadsheet tools, which
    guess the character set from the byte-order marker. Store and worker
    names are frequently non-ASCII.

    Args:
        rows: Rows of a single shape (PickEvent, OrderAggregate, or
            WorkerAggregate).
        columns: Column definitions for that shape.

    Returns:
        UTF-8 bytes starting with the byte-order marker.

    Example:
        >>> data = to_csv(aggs, ORDER_CSV_COLUMNS)
        >>> data[:3]
        b'\\xef\\xbb\\xbf'
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([column.header for column in columns])
    for row in rows:
        writer.writerow([column.render(row) for column in columns])
    content = buffer.getvalue().removesuffix("\n")
    return (BOM + content).encode("utf-8")


def parse_csv(content: bytes) -> list[list[str]]:
    """
    Parse a document produced by to_csv() back into rows of fields.

    Args:
        content: CSV bytes, with or without the byte-order marker.

    Returns:
        List of rows (header first), each a list of field strings.
    """
    text = content.decode("utf-8").removeprefix(BOM)
    return list(csv.reader(io.StringIO(text, newline="")))


def export_filename(work_date: str, mode: AggregationMode | str) -> str:
    """
    Build the download file name for an export.

    Example:
        >>> export_filename('2024-01-01', AggregationMode.WORKER)
        'dashboard_2024-01-01_worker.csv'
    """
    mode_value = AggregationMode(mode).value
    return Config.CSV_FILENAME_TEMPLATE.format(work_date=work_date, mode=mode_value)


def build_export(
    events: Sequence[PickEvent],
    work_date: str,
    mode: AggregationMode | str,
) -> CsvExport:
    """
    Aggregate pick events for a mode and render them as CSV.

    Business context: Exports use the same aggregation and metric helpers
    as the on-screen table, so a manager's spreadsheet agrees with the
    dashboard they were looking at.

    Args:
        events: Raw pick events for one result query.
        work_date: Work date of the query, used in the file name.
        mode: Aggregation mode selecting row shape and header set.

    Returns:
        CsvExport with file name, document bytes, and data row count.

    Example:
        >>> export = build_export(events, '2024-01-01', 'order')
        >>> export.filename
        'dashboard_2024-01-01_order.csv'
    """
    aggregation = AggregationMode(mode)
    rows: Sequence[Any]
    columns: Sequence[Column[Any]]
    if aggregation is AggregationMode.EACH_PICK:
        rows, columns = events, EACH_PICK_CSV_COLUMNS
    elif aggregation is AggregationMode.ORDER:
        rows, columns = aggregate_by_order(events), ORDER_CSV_COLUMNS
    else:
        rows, columns = aggregate_by_worker(events), WORKER_CSV_COLUMNS

    filename = export_filename(work_date, aggregation)
    logger.info("Exporting %d %s rows to %s", len(rows), aggregation.value, filename)
    return CsvExport(filename=filename, content=to_csv(rows, columns), row_count=len(rows))
