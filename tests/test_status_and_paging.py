"""
Tests for the status transition table, status parsing and page clamping.
"""

import pytest

from storefront.errors import InvalidTransition, ValidationError
from storefront.models.status import (
    ITEM_TRANSITIONS,
    OrderItemStatus,
    OrderStatus,
    can_transition,
    ensure_transition,
    parse_status,
)
from storefront.services.pagination import Page


class TestTransitionTable:

    @pytest.mark.parametrize("target", [
        OrderItemStatus.DELIVERED,
        OrderItemStatus.COMPLETED,
        OrderItemStatus.CANCELLED,
    ])
    def test_pending_moves_forward(self, target):
        assert can_transition(OrderItemStatus.PENDING, target)

    @pytest.mark.parametrize("current", [
        OrderItemStatus.DELIVERED,
        OrderItemStatus.COMPLETED,
        OrderItemStatus.CANCELLED,
    ])
    def test_everything_else_is_terminal(self, current):
        assert ITEM_TRANSITIONS[current] == frozenset()
        assert not any(can_transition(current, target) for target in OrderItemStatus)

    def test_nothing_moves_back_to_pending(self):
        assert not any(can_transition(s, OrderItemStatus.PENDING) for s in OrderItemStatus)

    def test_ensure_transition_reports_current_status(self):
        with pytest.raises(InvalidTransition) as exc_info:
            ensure_transition(OrderItemStatus.COMPLETED, OrderItemStatus.DELIVERED)

        assert exc_info.value.current_status == "COMPLETED"
        assert "Current status: COMPLETED" in exc_info.value.message
        assert exc_info.value.status_code == 403

    def test_ensure_transition_custom_message(self):
        with pytest.raises(InvalidTransition) as exc_info:
            ensure_transition("CANCELLED", OrderItemStatus.COMPLETED, "Invalid status transition")
        assert exc_info.value.message == "Invalid status transition"


class TestParseStatus:

    def test_case_insensitive(self):
        assert parse_status(OrderStatus, "paid") is OrderStatus.PAID

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_means_no_filter(self, raw):
        assert parse_status(OrderStatus, raw) is None

    def test_unknown_lists_allowed_values(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_status(OrderItemStatus, "lost")
        assert exc_info.value.message == "Invalid status. Allowed: PENDING, DELIVERED, COMPLETED, CANCELLED"


class TestPage:

    def test_defaults(self):
        page = Page.from_params()
        assert (page.page, page.size, page.offset) == (1, 10, 0)

    def test_clamps_to_bounds(self):
        page = Page.from_params(page=0, size=500)
        assert (page.page, page.size) == (1, 100)

        page = Page.from_params(page=-3, size=0)
        assert (page.page, page.size) == (1, 1)

    def test_offset(self):
        assert Page.from_params(page=3, size=20).offset == 40

    def test_garbage_falls_back_to_defaults(self):
        page = Page.from_params(page="abc", size="x")
        assert (page.page, page.size) == (1, 10)
