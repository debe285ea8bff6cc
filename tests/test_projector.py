"""
Tests for the derived-state projector.
"""

from datetime import timedelta

import pytest

from staff_console.engine.projector import (
    badge_thresholds,
    project_order,
    wait_badge_for,
)
from staff_console.models import OrderPriority, OrderStatus, UrgencyLevel, WaitBadge
from staff_console.schemas import OrderItem

from tests.conftest import NOW, make_order


class TestCapabilityFlags:
    """Capability flags follow the order status"""

    def test_preparing_high_priority_order(self):
        """PREPARING + HIGH, not overdue: HIGH urgency, can mark ready, cannot start cooking"""
        order = make_order(status=OrderStatus.PREPARING, priority=OrderPriority.HIGH, is_overdue=False)
        view = project_order(order, NOW, "staff-001")

        assert view.urgency_level == UrgencyLevel.HIGH
        assert view.can_mark_ready is True
        assert view.can_start_cooking is False
        assert view.can_complete is False

    @pytest.mark.parametrize("status", [OrderStatus.CONFIRMED, OrderStatus.PROCESSING])
    def test_can_start_cooking(self, status):
        assert project_order(make_order(status=status), NOW, "s").can_start_cooking

    @pytest.mark.parametrize("status", [OrderStatus.READY, OrderStatus.DELIVERED])
    def test_can_complete(self, status):
        assert project_order(make_order(status=status), NOW, "s").can_complete

    def test_accept_and_reject(self):
        pending = project_order(make_order(status=OrderStatus.PENDING), NOW, "s")
        confirmed = project_order(make_order(status=OrderStatus.CONFIRMED), NOW, "s")
        assert pending.can_accept and pending.can_reject
        assert confirmed.can_accept and not confirmed.can_reject

    def test_assign_to_self_needs_staff_and_no_assignee(self):
        assert project_order(make_order(), NOW, "staff-001").can_assign_to_self
        assert not project_order(make_order(), NOW, None).can_assign_to_self
        assert not project_order(make_order(assigned_staff="staff-002"), NOW, "staff-001").can_assign_to_self


class TestUrgency:
    """Server overdue flag dominates staff priority"""

    def test_overdue_is_emergency_even_for_normal_priority(self):
        order = make_order(priority=OrderPriority.NORMAL, is_overdue=True, overdue_minutes=7)
        view = project_order(order, NOW, "s")
        assert view.urgency_level == UrgencyLevel.EMERGENCY
        assert view.delayed_minutes == 7

    def test_priority_levels(self):
        assert project_order(make_order(priority=OrderPriority.URGENT), NOW, "s").urgency_level == UrgencyLevel.URGENT
        assert project_order(make_order(priority=OrderPriority.HIGH), NOW, "s").urgency_level == UrgencyLevel.HIGH
        assert project_order(make_order(priority=OrderPriority.NORMAL), NOW, "s").urgency_level == UrgencyLevel.NORMAL

    def test_delay_is_zero_when_not_overdue(self):
        order = make_order(is_overdue=False, overdue_minutes=12)
        assert project_order(order, NOW, "s").delayed_minutes == 0

    def test_priority_reason_only_for_raised_priority(self):
        assert project_order(make_order(priority=OrderPriority.NORMAL), NOW, "s").priority_reason is None
        assert project_order(make_order(priority=OrderPriority.HIGH), NOW, "s").priority_reason


class TestTimes:
    """Whole-minute wait and remaining times"""

    def test_wait_time_in_whole_minutes(self):
        order = make_order(minutes_ago=12)
        assert project_order(order, NOW + timedelta(seconds=59), "s").actual_wait_time == 12
        assert project_order(order, NOW + timedelta(seconds=60), "s").actual_wait_time == 13

    def test_remaining_time(self):
        order = make_order(estimated_in_minutes=10)
        assert project_order(order, NOW, "s").estimated_remaining_time == 10
        assert project_order(order, NOW + timedelta(minutes=25), "s").estimated_remaining_time == 0

    def test_remaining_time_without_estimate(self):
        assert project_order(make_order(estimated_in_minutes=None), NOW, "s").estimated_remaining_time == 0


class TestPurity:
    """Identical inputs give identical output and leave the order untouched"""

    def test_projection_is_idempotent(self):
        order = make_order(status=OrderStatus.PROCESSING, priority=OrderPriority.URGENT, minutes_ago=33)
        first = project_order(order, NOW, "staff-001")
        second = project_order(order, NOW, "staff-001")
        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_source_order_not_modified(self):
        order = make_order()
        before = order.model_dump()
        project_order(order, NOW, "staff-001")
        assert order.model_dump() == before

    def test_reprojecting_a_projection_is_stable(self):
        view = project_order(make_order(), NOW, "staff-001")
        assert project_order(view, NOW, "staff-001") == view


class TestExtras:
    def test_allergy_warnings_are_deduplicated(self):
        items = [
            OrderItem(item_id="1", name="Pizza", allergens=["gluten", "dairy"]),
            OrderItem(item_id="2", name="Tiramisu", allergens=["dairy", "egg"]),
        ]
        view = project_order(make_order(items=items), NOW, "s")
        assert view.allergy_warnings == ["gluten", "dairy", "egg"]

    def test_special_requests_from_items_or_order(self):
        items = [OrderItem(item_id="1", name="Salad", special_requests="No onions")]
        assert project_order(make_order(items=items), NOW, "s").has_special_requests
        assert project_order(make_order(special_instructions="Birthday"), NOW, "s").has_special_requests
        assert not project_order(make_order(), NOW, "s").has_special_requests

    @pytest.mark.parametrize("minutes,badge", [
        (5, None),
        (20, WaitBadge.WAITING),
        (30, WaitBadge.HIGH),
        (44, WaitBadge.HIGH),
        (45, WaitBadge.URGENT),
        (60, WaitBadge.EMERGENCY),
    ])
    def test_wait_badge_tiers(self, minutes, badge):
        assert wait_badge_for(minutes) == badge
        assert project_order(make_order(minutes_ago=minutes), NOW, "s").wait_badge == badge

    def test_badge_thresholds_from_settings(self):
        tiers = badge_thresholds(15, [25, 40, 50])
        assert wait_badge_for(15, tiers) == WaitBadge.WAITING
        assert wait_badge_for(41, tiers) == WaitBadge.URGENT
        assert wait_badge_for(50, tiers) == WaitBadge.EMERGENCY
