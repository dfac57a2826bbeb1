"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from storefront.order.events import (
    OrderFulfilled,
    OrderNoteAdded,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockStateChanged,
)
from storefront.order.order import Order

_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderStatusChanged": OrderStatusChanged,
    "OrderPaymentStatusChanged": OrderPaymentStatusChanged,
    "OrderFulfilled": OrderFulfilled,
    "OrderNoteAdded": OrderNoteAdded,
    "OrderStockStateChanged": OrderStockStateChanged,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _placed_order():
    return Order.place(
        number="240307-00042",
        lines=[
            {
                "product_id": "prod-1",
                "variant_id": "var-1",
                "product_title": "Classic Mug",
                "sku": "MUG",
                "quantity": 2,
                "unit_price": 5000.0,
                "line_total": 10000.0,
            }
        ],
        pricing={"subtotal": 10000.0, "grand_total": 10000.0, "currency": "AMD"},
        customer_id="cust-001",
    )


# ---------------------------------------------------------------------------
# Given steps — Order
# ---------------------------------------------------------------------------
@given("a pending order", target_fixture="order")
def pending_order():
    order = _placed_order()
    order._events.clear()
    return order


@given("a completed order", target_fixture="order")
def completed_order():
    order = _placed_order()
    order.change_status("processing")
    order.change_status("completed")
    order._events.clear()
    return order


@given("a cancelled order", target_fixture="order")
def cancelled_order():
    order = _placed_order()
    order.change_status("cancelled")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("an {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"
