"""
Filter / Sort / Search Pipeline

Builds the working set the staff sees from projected orders. Each filter
is an independent predicate stage; only the stages whose filter is set are
active and they are AND-combined, so their order never changes the
result. A single stable sort stage follows.

Author: Khalil Bannouri
Version: 1.0.0
"""

import re
from typing import Callable, Iterable, Optional, Sequence

from staff_console.models import OrderPriority, SortDirection, SortField
from staff_console.schemas import StaffOrder, StaffOrderFilters

Predicate = Callable[[StaffOrder], bool]

PRIORITY_RANK = {
    OrderPriority.URGENT: 3,
    OrderPriority.HIGH: 2,
    OrderPriority.NORMAL: 1,
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def table_number_value(table_number: Optional[str]) -> int:
    """Leading integer of a table label; labels without one sort as 0."""
    if not table_number:
        return 0
    match = _LEADING_INT.match(table_number)
    return int(match.group(1)) if match else 0


# =============================================================================
# FILTER STAGES
# =============================================================================

def _search_stage(term: str) -> Predicate:
    needle = term.strip().lower()

    def matches(order: StaffOrder) -> bool:
        haystack = (order.order_number, order.table_number, order.customer_name)
        return any(needle in value.lower() for value in haystack if value)

    return matches


def build_stages(filters: StaffOrderFilters, staff_id: Optional[str]) -> list[tuple[str, Predicate]]:
    """Active predicate stages for the given filters, in canonical order."""
    stages: list[tuple[str, Predicate]] = []

    if filters.search and filters.search.strip():
        stages.append(("search", _search_stage(filters.search)))
    if filters.status:
        statuses = set(filters.status)
        stages.append(("status", lambda o: o.status in statuses))
    if filters.priority:
        priorities = set(filters.priority)
        stages.append(("priority", lambda o: o.priority in priorities))
    if filters.urgency:
        levels = set(filters.urgency)
        stages.append(("urgency", lambda o: o.urgency_level in levels))
    if filters.source:
        sources = set(filters.source)
        stages.append(("source", lambda o: o.source in sources))
    if filters.assigned_to_me:
        stages.append(("assigned_to_me", lambda o: staff_id is not None and o.assigned_staff == staff_id))
    if filters.is_overdue:
        stages.append(("is_overdue", lambda o: o.is_overdue))
    if filters.is_delayed:
        stages.append(("is_delayed", lambda o: o.delayed_minutes > 0))
    if filters.has_special_requests:
        stages.append(("has_special_requests", lambda o: o.has_special_requests))
    if filters.has_allergy_warnings:
        stages.append(("has_allergy_warnings", lambda o: bool(o.allergy_warnings)))
    if filters.table_number:
        table = filters.table_number.strip()
        stages.append(("table_number", lambda o: (o.table_number or "").strip() == table))
    if filters.min_amount is not None or filters.max_amount is not None:
        low, high = filters.min_amount, filters.max_amount
        stages.append((
            "amount_range",
            lambda o: (low is None or o.total_amount >= low) and (high is None or o.total_amount <= high),
        ))
    if filters.min_wait_time is not None or filters.max_wait_time is not None:
        shortest, longest = filters.min_wait_time, filters.max_wait_time
        stages.append((
            "wait_time_range",
            lambda o: (shortest is None or o.actual_wait_time >= shortest)
            and (longest is None or o.actual_wait_time <= longest),
        ))

    return stages


def apply_stages(orders: Iterable[StaffOrder], stages: Sequence[tuple[str, Predicate]]) -> list[StaffOrder]:
    result = list(orders)
    for _, predicate in stages:
        result = [o for o in result if predicate(o)]
    return result


# =============================================================================
# SORT STAGE
# =============================================================================

SORT_KEYS: dict[SortField, Callable[[StaffOrder], object]] = {
    SortField.ORDER_TIME: lambda o: o.order_time,
    SortField.PRIORITY: lambda o: PRIORITY_RANK.get(o.priority, 0),
    SortField.STATUS: lambda o: o.status.value,
    SortField.TABLE_NUMBER: lambda o: table_number_value(o.table_number),
    SortField.TOTAL_AMOUNT: lambda o: o.total_amount,
}


def sort_orders(
    orders: Iterable[StaffOrder],
    field: SortField = SortField.ORDER_TIME,
    direction: SortDirection = SortDirection.ASC,
) -> list[StaffOrder]:
    """Stable single-key sort; equal keys keep their input order either way."""
    return sorted(orders, key=SORT_KEYS[field], reverse=direction == SortDirection.DESC)


def build_working_set(
    orders: Iterable[StaffOrder],
    filters: Optional[StaffOrderFilters],
    staff_id: Optional[str],
) -> list[StaffOrder]:
    """Filter then sort projected orders."""
    filters = filters or StaffOrderFilters()
    filtered = apply_stages(orders, build_stages(filters, staff_id))
    return sort_orders(filtered, filters.sort_by, filters.sort_direction)
