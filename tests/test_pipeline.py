"""
Tests for the filter / sort / search pipeline.
"""

from itertools import permutations

import pytest

from staff_console.engine.pipeline import (
    apply_stages,
    build_stages,
    build_working_set,
    sort_orders,
    table_number_value,
)
from staff_console.engine.projector import project_orders
from staff_console.models import (
    OrderPriority,
    OrderSource,
    OrderStatus,
    SortDirection,
    SortField,
    UrgencyLevel,
)
from staff_console.schemas import OrderItem, StaffOrderFilters

from tests.conftest import NOW, make_order


@pytest.fixture
def orders():
    raw = [
        make_order("ord-101", OrderStatus.PENDING, OrderPriority.NORMAL, minutes_ago=3,
                   table_number="12", total_amount=18.0, customer_name="Alice Martin"),
        make_order("ord-102", OrderStatus.PREPARING, OrderPriority.HIGH, minutes_ago=25,
                   table_number="7", total_amount=42.5, assigned_staff="staff-001",
                   customer_name="Bruno Costa"),
        make_order("ord-103", OrderStatus.PROCESSING, OrderPriority.URGENT, minutes_ago=40,
                   table_number="A1", total_amount=65.0, is_overdue=True, overdue_minutes=10,
                   source=OrderSource.DELIVERY, customer_name="Chen Wei",
                   items=[OrderItem(item_id="1", name="Pad Thai", allergens=["peanut"])]),
        make_order("ord-104", OrderStatus.READY, OrderPriority.HIGH, minutes_ago=15,
                   table_number="3", total_amount=42.5, special_instructions="Extra napkins",
                   customer_name="Dana Scott"),
    ]
    return project_orders(raw, NOW, "staff-001")


def ids(orders):
    return [o.order_id for o in orders]


class TestFilters:
    def test_no_filters_keeps_everything(self, orders):
        assert len(build_working_set(orders, None, "staff-001")) == 4

    def test_only_set_filters_are_active(self):
        stages = build_stages(StaffOrderFilters(search="ali", is_overdue=True), "staff-001")
        assert [name for name, _ in stages] == ["search", "is_overdue"]

    def test_search_is_case_insensitive_over_number_table_customer(self, orders):
        assert ids(build_working_set(orders, StaffOrderFilters(search="BRUNO"), None)) == ["ord-102"]
        assert ids(build_working_set(orders, StaffOrderFilters(search="a1"), None)) == ["ord-103"]
        assert ids(build_working_set(orders, StaffOrderFilters(search="104"), None)) == ["ord-104"]

    def test_status_and_priority(self, orders):
        filters = StaffOrderFilters(
            status=[OrderStatus.PREPARING, OrderStatus.READY],
            priority=[OrderPriority.HIGH],
        )
        assert set(ids(build_working_set(orders, filters, None))) == {"ord-102", "ord-104"}

    def test_urgency_source_overdue_delayed(self, orders):
        assert ids(build_working_set(orders, StaffOrderFilters(urgency=[UrgencyLevel.EMERGENCY]), None)) == ["ord-103"]
        assert ids(build_working_set(orders, StaffOrderFilters(source=[OrderSource.DELIVERY]), None)) == ["ord-103"]
        assert ids(build_working_set(orders, StaffOrderFilters(is_overdue=True), None)) == ["ord-103"]
        assert ids(build_working_set(orders, StaffOrderFilters(is_delayed=True), None)) == ["ord-103"]

    def test_assigned_to_me(self, orders):
        filters = StaffOrderFilters(assigned_to_me=True)
        assert ids(build_working_set(orders, filters, "staff-001")) == ["ord-102"]
        assert build_working_set(orders, filters, None) == []

    def test_special_requests_and_allergies(self, orders):
        assert ids(build_working_set(orders, StaffOrderFilters(has_special_requests=True), None)) == ["ord-104"]
        assert ids(build_working_set(orders, StaffOrderFilters(has_allergy_warnings=True), None)) == ["ord-103"]

    def test_table_amount_and_wait_ranges(self, orders):
        assert ids(build_working_set(orders, StaffOrderFilters(table_number="7"), None)) == ["ord-102"]
        amount = StaffOrderFilters(min_amount=40, max_amount=50)
        assert set(ids(build_working_set(orders, amount, None))) == {"ord-102", "ord-104"}
        wait = StaffOrderFilters(min_wait_time=10, max_wait_time=30)
        assert set(ids(build_working_set(orders, wait, None))) == {"ord-102", "ord-104"}

    def test_stage_order_does_not_change_result(self, orders):
        filters = StaffOrderFilters(
            priority=[OrderPriority.HIGH, OrderPriority.URGENT],
            min_amount=40,
            min_wait_time=10,
        )
        stages = build_stages(filters, None)
        expected = set(ids(apply_stages(orders, stages)))
        for ordering in permutations(stages):
            assert set(ids(apply_stages(orders, list(ordering)))) == expected


class TestSort:
    def test_default_is_oldest_first(self, orders):
        assert ids(build_working_set(orders, StaffOrderFilters(), None)) == [
            "ord-103", "ord-102", "ord-104", "ord-101",
        ]

    def test_priority_desc(self, orders):
        result = sort_orders(orders, SortField.PRIORITY, SortDirection.DESC)
        assert ids(result)[0] == "ord-103"
        assert ids(result)[-1] == "ord-101"

    def test_sort_is_stable_for_equal_keys(self, orders):
        """ord-102 and ord-104 share an amount and keep their input order"""
        asc = sort_orders(orders, SortField.TOTAL_AMOUNT, SortDirection.ASC)
        desc = sort_orders(orders, SortField.TOTAL_AMOUNT, SortDirection.DESC)
        assert ids(asc) == ["ord-101", "ord-102", "ord-104", "ord-103"]
        assert ids(desc) == ["ord-103", "ord-102", "ord-104", "ord-101"]

    def test_table_number_sorts_numerically(self, orders):
        result = sort_orders(orders, SortField.TABLE_NUMBER, SortDirection.ASC)
        assert ids(result) == ["ord-103", "ord-104", "ord-102", "ord-101"]

    def test_sort_field_accepts_camel_case_names(self):
        filters = StaffOrderFilters.model_validate({"sortBy": "tableNumber", "sortDirection": "desc"})
        assert filters.sort_by == SortField.TABLE_NUMBER
        assert filters.sort_direction == SortDirection.DESC


@pytest.mark.parametrize("label,value", [
    ("12", 12),
    (" 7b", 7),
    ("A1", 0),
    ("", 0),
    (None, 0),
])
def test_table_number_value(label, value):
    assert table_number_value(label) == value
