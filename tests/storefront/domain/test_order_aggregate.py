"""Tests for the Order aggregate — placement, status axes and timeline."""

import pytest
from protean.exceptions import ValidationError
from storefront.order.events import (
    OrderFulfilled,
    OrderNoteAdded,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockStateChanged,
)
from storefront.order.order import Order, OrderStatus, PaymentStatus, StockState


def _lines():
    return [
        {
            "product_id": "prod-1",
            "variant_id": "var-1",
            "product_title": "Classic Tee",
            "variant_title": "color: black, size: M",
            "sku": "TEE-1-1",
            "quantity": 2,
            "unit_price": 5000.0,
            "line_total": 10000.0,
        }
    ]


def _pricing():
    return {
        "subtotal": 10000.0,
        "discount_total": 0.0,
        "shipping_total": 0.0,
        "tax_total": 0.0,
        "grand_total": 10000.0,
        "currency": "AMD",
    }


def _order(**kwargs):
    order = Order.place(number="240101-00001", lines=_lines(), pricing=_pricing(), **kwargs)
    order._events.clear()
    return order


class TestPlace:
    def test_place_creates_pending_order(self):
        order = Order.place(
            number="240101-00001",
            lines=_lines(),
            pricing=_pricing(),
            cart_id="cart-1",
            shipping_address={"address_line": "1 Abovyan St", "city": "Yerevan", "country": "AM"},
        )

        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.fulfillment_status == "unfulfilled"
        assert order.stock_state == StockState.RESERVED.value
        assert order.pricing.grand_total == 10000.0
        assert order.shipping_address.city == "Yerevan"
        assert isinstance(order._events[-1], OrderPlaced)

    def test_first_payment_is_pending(self):
        order = _order()
        assert len(order.payments) == 1
        payment = order.payments[0]
        assert payment.status == "pending"
        assert payment.amount == 10000.0
        assert payment.provider == "idram"

    def test_created_timeline_entry(self):
        order = _order(cart_id="cart-1")
        assert order.timeline_kinds() == ["order.created"]
        assert order.timeline[0].payload() == {"cart_id": "cart-1"}

    def test_items_are_denormalized(self):
        item = _order().items[0]
        assert item.product_title == "Classic Tee"
        assert item.variant_title == "color: black, size: M"
        assert item.line_total == 10000.0

    def test_order_needs_items(self):
        with pytest.raises(ValidationError):
            Order.place(number="240101-00001", lines=[], pricing=_pricing())


class TestStatus:
    def test_pending_to_processing_to_completed(self):
        order = _order()
        order.change_status("processing")
        order.change_status("completed")

        assert order.status == "completed"
        assert order.completed_at is not None
        assert isinstance(order._events[-1], OrderStatusChanged)

    def test_cancel_sets_timestamp(self):
        order = _order()
        order.change_status("cancelled", note="customer request")

        assert order.cancelled_at is not None
        entry = [e for e in order.timeline if e.kind == "order.status.changed"][0]
        assert entry.payload() == {"old_status": "pending", "new_status": "cancelled", "note": "customer request"}

    def test_completed_is_terminal(self):
        order = _order()
        order.change_status("processing")
        order.change_status("completed")
        with pytest.raises(ValidationError):
            order.change_status("cancelled")

    def test_pending_cannot_jump_to_completed(self):
        with pytest.raises(ValidationError):
            _order().change_status("completed")

    def test_unknown_status(self):
        with pytest.raises(ValidationError) as exc_info:
            _order().change_status("shipped")
        assert "status" in exc_info.value.messages

    def test_same_status_is_a_no_op(self):
        order = _order()
        assert order.change_status("pending") is False
        assert order._events == []


class TestPayment:
    def test_paid(self):
        order = _order()
        order.change_payment_status("paid", transaction_id="txn-1")

        assert order.payment_status == "paid"
        assert order.paid_at is not None
        assert order.payments[0].status == "paid"
        assert order.payments[0].provider_transaction_id == "txn-1"
        assert "payment.paid" in order.timeline_kinds()
        assert isinstance(order._events[-1], OrderPaymentStatusChanged)

    def test_failed_then_retried(self):
        order = _order()
        order.change_payment_status("failed", error_message="declined")
        order.change_payment_status("pending")
        order.change_payment_status("paid")

        assert order.payment_status == "paid"
        assert order.timeline_kinds()[-3:] == ["payment.failed", "payment.pending", "payment.paid"]

    def test_refund_requires_paid(self):
        with pytest.raises(ValidationError):
            _order().change_payment_status("refunded")

    def test_cancelled_order_cannot_be_paid(self):
        order = _order()
        order.change_status("cancelled")
        with pytest.raises(ValidationError):
            order.change_payment_status("paid")


class TestFulfillment:
    def test_fulfil(self):
        order = _order()
        order.change_fulfillment_status("fulfilled")

        assert order.fulfilled_at is not None
        assert "order.fulfilled" in order.timeline_kinds()
        assert isinstance(order._events[-1], OrderFulfilled)

    def test_cancelled_order_cannot_be_fulfilled(self):
        order = _order()
        order.change_status("cancelled")
        with pytest.raises(ValidationError):
            order.change_fulfillment_status("fulfilled")

    def test_cannot_unfulfil(self):
        order = _order()
        order.change_fulfillment_status("fulfilled")
        with pytest.raises(ValidationError):
            order.change_fulfillment_status("unfulfilled")


class TestNotesAndStock:
    def test_admin_note(self):
        order = _order()
        order.add_admin_note("Call before delivery")

        assert order.admin_notes == "Call before delivery"
        assert "order.note.added" in order.timeline_kinds()
        assert isinstance(order._events[-1], OrderNoteAdded)

    def test_stock_state_moves_forward_only(self):
        order = _order()
        order.mark_stock("committed")
        order.mark_stock("released")

        assert order.stock_state == "released"
        assert isinstance(order._events[-1], OrderStockStateChanged)
        with pytest.raises(ValidationError):
            order.mark_stock("reserved")
