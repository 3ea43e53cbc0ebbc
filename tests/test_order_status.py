import pytest

from order_status import (
    InvalidTransition, OrderStatus, advance, can_cancel, can_transition,
    is_terminal, next_status, status_style,
)


def test_missing_status_is_pending():
    assert OrderStatus.parse(None) is OrderStatus.PENDING
    assert OrderStatus.parse("") is OrderStatus.PENDING
    assert next_status(None) is OrderStatus.CONFIRMED


def test_linear_flow():
    assert next_status("pending") is OrderStatus.CONFIRMED
    assert next_status("confirmed") is OrderStatus.PREPARING
    assert next_status("preparing") is OrderStatus.READY
    assert next_status("ready") is OrderStatus.DELIVERED
    assert next_status("delivered") is None
    assert next_status("cancelled") is None


def test_unknown_status_has_no_next():
    assert next_status("shipped") is None
    assert not can_cancel("shipped")
    assert not is_terminal("shipped")


def test_only_pending_can_be_cancelled():
    assert can_cancel("pending")
    for status in ("confirmed", "preparing", "ready", "delivered", "cancelled"):
        assert not can_cancel(status)


def test_no_skipping_steps():
    assert can_transition("pending", "confirmed")
    assert not can_transition("pending", "ready")
    assert not can_transition("delivered", "pending")


def test_terminal_states():
    assert is_terminal("delivered")
    assert is_terminal(OrderStatus.CANCELLED)
    assert not is_terminal("ready")


def test_advance_raises_on_invalid_transition():
    assert advance("ready", "delivered") is OrderStatus.DELIVERED
    with pytest.raises(InvalidTransition) as exc:
        advance("confirmed", "cancelled")
    assert exc.value.current is OrderStatus.CONFIRMED
    assert exc.value.target is OrderStatus.CANCELLED


def test_advance_rejects_unknown_status():
    with pytest.raises(ValueError):
        advance("pending", "teleported")


def test_status_styles():
    assert status_style("pending").label == "Pending"
    assert status_style("cancelled").color_key == "danger"
    assert status_style("ready").color_key == "info"
    assert status_style("weird").label == "Unknown"
    assert OrderStatus.DELIVERED.label == "Delivered"
