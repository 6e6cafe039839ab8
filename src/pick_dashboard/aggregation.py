"""
Aggregation of raw pick events into dashboard rollups.

PURPOSE: Group PickEvent rows by order and by order-opening worker.
AI CONTEXT: Pure data transformation - no I/O, no formatting.

ROLLUPS:
- By order: one OrderAggregate per distinct order_id, in first-seen order
- By worker: one WorkerAggregate per (store_name, order_worker_name),
  in first-seen order

DEDUPLICATION RULES (by worker):
- total_sku sums every pick event
- order_count counts distinct order_ids
- total_time_ms sums each distinct order's duration exactly once

USAGE:
    orders = aggregate_by_order(events)
    workers = aggregate_by_worker(events)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .metrics import elapsed_ms
from .models import OrderAggregate, PickEvent, WorkerAggregate

__all__ = ["aggregate_by_order", "aggregate_by_worker"]

logger = logging.getLogger(__name__)


def aggregate_by_order(rows: Iterable[PickEvent]) -> list[OrderAggregate]:
    """
    Roll pick events up into one aggregate per order.

    The first pick event seen for an order_id seeds the aggregate's store,
    order number, opening worker, and start/end time; every pick event of
    the order, including the first, adds its sku_count to total_sku.

    Business context: The per-order view answers "how long did this order
    take and how fast was it picked". Orders are listed in the order the
    row source returned them.

    Args:
        rows: Pick events for one result query.

    Returns:
        List of OrderAggregate in first-seen order_id order. Empty if rows
        is empty.

    Example:
        >>> aggs = aggregate_by_order(events)
        >>> sum(a.total_sku for a in aggs) == sum(e.sku_count for e in events)
        True
    """
    by_order: dict[int, OrderAggregate] = {}
    count = 0
    for row in rows:
        count += 1
        existing = by_order.get(row.order_id)
        if existing is not None:
            existing.total_sku += row.sku_count
            continue
        by_order[row.order_id] = OrderAggregate(
            order_id=row.order_id,
            store_name=row.store_name,
            order_number=row.order_number,
            worker_name=row.order_worker_name,
            total_sku=row.sku_count,
            start_time=row.order_start_time,
            end_time=row.order_end_time,
        )
    logger.debug("Aggregated %d pick events into %d orders", count, len(by_order))
    return list(by_order.values())


def _order_durations(rows: Sequence[PickEvent]) -> dict[int, int]:
    """
    Map each order_id to its elapsed milliseconds.

    Times are taken from the first pick event seen for each order, since
    all pick events of an order carry identical order start/end times.
    """
    durations: dict[int, int] = {}
    for row in rows:
        if row.order_id not in durations:
            durations[row.order_id] = elapsed_ms(row.order_start_time, row.order_end_time)
    return durations


def aggregate_by_worker(rows: Iterable[PickEvent]) -> list[WorkerAggregate]:
    """
    Roll pick events up into one aggregate per worker and store.

    Groups on (store_name, order_worker_name): orders are attributed to the
    worker who opened them, not to whoever performed each pick. Tracks the
    set of order_ids seen per group so order_count and total_time_ms count
    each order once, while total_sku still sums every pick event.

    Business context: The per-worker view compares pickers' throughput over
    the day. Double counting an order's duration for each of its picks would
    make multi-pick orders look slow.

    Args:
        rows: Pick events for one result query.

    Returns:
        List of WorkerAggregate in first-seen group order. Empty if rows is
        empty.

    Example:
        >>> aggs = aggregate_by_worker(events)
        >>> aggs[0].order_count
        1
    """
    events = list(rows)
    durations = _order_durations(events)

    groups: dict[tuple[str, str], WorkerAggregate] = {}
    order_sets: dict[tuple[str, str], set[int]] = {}
    for row in events:
        key = (row.store_name, row.order_worker_name)
        group = groups.get(key)
        if group is None:
            groups[key] = WorkerAggregate(
                store_name=row.store_name,
                worker_name=row.order_worker_name,
                order_count=1,
                total_sku=row.sku_count,
                total_time_ms=durations[row.order_id],
            )
            order_sets[key] = {row.order_id}
            continue

        group.total_sku += row.sku_count
        seen = order_sets[key]
        if row.order_id not in seen:
            seen.add(row.order_id)
            group.order_count = len(seen)
            group.total_time_ms += durations[row.order_id]

    logger.debug("Aggregated %d pick events into %d worker groups", len(events), len(groups))
    return list(groups.values())
