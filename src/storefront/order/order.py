"""Order aggregate — the settled record of a checkout.

An order is created once and afterwards only appended to. It tracks three
independent status axes plus what happened to the stock it holds:

    status:             pending → processing → completed
                        pending | processing → cancelled
    payment_status:     pending → paid | failed, failed → pending | paid,
                        paid → refunded
    fulfillment_status: unfulfilled → fulfilled
    stock_state:        reserved → committed (paid) | released (cancelled),
                        committed → released (paid order cancelled)

Every change is written to the order's ``timeline`` (the append-only audit
log shown to admins) and raised as a domain event.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront import config
from storefront.domain import storefront
from storefront.order.events import (
    OrderFulfilled,
    OrderNoteAdded,
    OrderPaymentStatusChanged,
    OrderPlaced,
    OrderStatusChanged,
    OrderStockStateChanged,
)


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class FulfillmentStatus(Enum):
    UNFULFILLED = "unfulfilled"
    FULFILLED = "fulfilled"


class StockState(Enum):
    RESERVED = "reserved"
    COMMITTED = "committed"
    RELEASED = "released"


_STATUS_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PENDING, PaymentStatus.PAID},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),  # Terminal
}

_STOCK_TRANSITIONS = {
    StockState.RESERVED: {StockState.COMMITTED, StockState.RELEASED},
    StockState.COMMITTED: {StockState.RELEASED},
    StockState.RELEASED: set(),
}

# Timeline entry kinds
ORDER_CREATED = "order.created"
ORDER_STATUS_CHANGED = "order.status.changed"
PAYMENT_EVENT_PREFIX = "payment."  # payment.paid, payment.failed, payment.pending, payment.refunded
ORDER_FULFILLED = "order.fulfilled"
ORDER_NOTE_ADDED = "order.note.added"
STOCK_STATE_CHANGED = "order.stock.changed"


def _parse(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field_name: [f"Invalid {field_name} '{value}'. Must be one of: {allowed}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order goes, captured as entered at checkout."""

    full_name = String(max_length=200)
    phone = String(max_length=50)
    address_line = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    region = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(required=True, max_length=100)


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Order totals, locked at checkout."""

    subtotal = Float(default=0.0)
    discount_total = Float(default=0.0)
    shipping_total = Float(default=0.0)
    tax_total = Float(default=0.0)
    grand_total = Float(default=0.0)
    currency = String(max_length=3, default="AMD")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    """A purchased line, denormalized so later catalog edits do not touch it."""

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    product_title = String(required=True, max_length=255)
    variant_title = String(max_length=255)
    sku = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)
    image_url = String(max_length=500)


@storefront.entity(part_of="Order")
class Payment:
    provider = String(required=True, max_length=50)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="AMD")
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    provider_transaction_id = String(max_length=255)
    error_message = String(max_length=500)
    created_at = DateTime()
    completed_at = DateTime()
    failed_at = DateTime()


@storefront.entity(part_of="Order")
class TimelineEntry:
    kind = String(required=True, max_length=50)
    data = Text()  # JSON
    actor = String(max_length=100)
    occurred_at = DateTime(required=True)

    def payload(self):
        return json.loads(self.data) if self.data else {}


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    number = String(required=True, max_length=20)
    customer_id = Identifier()
    cart_id = Identifier()
    email = String(max_length=255)
    phone = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    fulfillment_status = String(choices=FulfillmentStatus, default=FulfillmentStatus.UNFULFILLED.value)
    stock_state = String(choices=StockState, default=StockState.RESERVED.value)
    items = HasMany(OrderItem)
    payments = HasMany(Payment)
    timeline = HasMany(TimelineEntry)
    pricing = ValueObject(OrderPricing)
    shipping_address = ValueObject(ShippingAddress)
    billing_address = ValueObject(ShippingAddress)
    shipping_method = String(max_length=50)
    payment_method = String(max_length=50)
    notes = Text()
    admin_notes = Text()
    paid_at = DateTime()
    fulfilled_at = DateTime()
    cancelled_at = DateTime()
    completed_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        number,
        lines,
        pricing,
        customer_id=None,
        cart_id=None,
        shipping_address=None,
        billing_address=None,
        shipping_method=None,
        payment_method=None,
        email=None,
        phone=None,
        notes=None,
    ):
        """Create a pending order.

        Args:
            lines: dicts with product_id, variant_id, product_title,
                variant_title, sku, quantity, unit_price, line_total.
            pricing: dict with subtotal, discount_total, shipping_total,
                tax_total, grand_total, currency.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        currency = pricing.get("currency") or config.CURRENCY
        provider = payment_method or config.DEFAULT_PAYMENT_PROVIDER

        order = cls(
            number=number,
            customer_id=customer_id,
            cart_id=cart_id,
            email=email,
            phone=phone,
            pricing=OrderPricing(**pricing),
            shipping_address=ShippingAddress(**shipping_address) if shipping_address else None,
            billing_address=ShippingAddress(**billing_address) if billing_address else None,
            shipping_method=shipping_method,
            payment_method=provider,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(OrderItem(**line))

        order.add_payments(
            Payment(
                provider=provider,
                amount=order.pricing.grand_total,
                currency=currency,
                status=PaymentStatus.PENDING.value,
                created_at=now,
            )
        )
        order._record(ORDER_CREATED, {"cart_id": str(cart_id) if cart_id else None}, at=now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                number=number,
                customer_id=str(customer_id) if customer_id else None,
                cart_id=str(cart_id) if cart_id else None,
                items=json.dumps(lines),
                grand_total=order.pricing.grand_total,
                currency=currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Timeline
    # -------------------------------------------------------------------
    def _record(self, kind, data, actor=None, at=None):
        at = at or datetime.now(UTC)
        self.add_timeline(
            TimelineEntry(
                kind=kind,
                data=json.dumps(data),
                actor=actor,
                occurred_at=at,
            )
        )
        self.updated_at = at

    def timeline_kinds(self):
        return [entry.kind for entry in sorted(self.timeline, key=lambda e: e.occurred_at)]

    @property
    def current_payment(self):
        return self.payments[-1] if self.payments else None

    # -------------------------------------------------------------------
    # Status axes
    # -------------------------------------------------------------------
    def change_status(self, new_status, note=None, actor=None):
        current = OrderStatus(self.status)
        target = _parse(OrderStatus, new_status, "status")
        if target == current:
            return False
        if target not in _STATUS_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot move order from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        if target == OrderStatus.CANCELLED:
            self.cancelled_at = now
        elif target == OrderStatus.COMPLETED:
            self.completed_at = now

        data = {"old_status": current.value, "new_status": target.value, "note": note}
        self._record(ORDER_STATUS_CHANGED, data, actor=actor, at=now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                status=target.value,
                note=note,
            )
        )
        return True

    def change_payment_status(self, new_status, transaction_id=None, error_message=None, actor=None):
        current = PaymentStatus(self.payment_status)
        target = _parse(PaymentStatus, new_status, "payment_status")
        if target == current:
            return False
        if target not in _PAYMENT_TRANSITIONS[current]:
            raise ValidationError(
                {"payment_status": [f"Cannot move payment from {current.value} to {target.value}"]}
            )
        if target == PaymentStatus.PAID and self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"payment_status": ["A cancelled order cannot be marked as paid"]})

        now = datetime.now(UTC)
        self.payment_status = target.value
        payment = self.current_payment
        if payment is not None:
            payment.status = target.value
            if transaction_id:
                payment.provider_transaction_id = transaction_id
            if target == PaymentStatus.PAID:
                payment.completed_at = now
            elif target == PaymentStatus.FAILED:
                payment.failed_at = now
                payment.error_message = error_message
        if target == PaymentStatus.PAID:
            self.paid_at = now

        data = {"old_status": current.value, "new_status": target.value, "transaction_id": transaction_id}
        if error_message:
            data["error"] = error_message
        self._record(f"{PAYMENT_EVENT_PREFIX}{target.value}", data, actor=actor, at=now)
        self.raise_(
            OrderPaymentStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                status=target.value,
            )
        )
        return True

    def change_fulfillment_status(self, new_status, actor=None):
        current = FulfillmentStatus(self.fulfillment_status)
        target = _parse(FulfillmentStatus, new_status, "fulfillment_status")
        if target == current:
            return False
        if target != FulfillmentStatus.FULFILLED:
            raise ValidationError({"fulfillment_status": ["A fulfilled order cannot be unfulfilled"]})
        if self.status == OrderStatus.CANCELLED.value:
            raise ValidationError({"fulfillment_status": ["A cancelled order cannot be fulfilled"]})

        now = datetime.now(UTC)
        self.fulfillment_status = target.value
        self.fulfilled_at = now

        self._record(ORDER_FULFILLED, {}, actor=actor, at=now)
        self.raise_(OrderFulfilled(order_id=str(self.id), fulfilled_at=now))
        return True

    def add_admin_note(self, note, actor=None):
        self.admin_notes = note
        self._record(ORDER_NOTE_ADDED, {"note": note}, actor=actor)
        self.raise_(OrderNoteAdded(order_id=str(self.id), note=note))

    # -------------------------------------------------------------------
    # Stock holds
    # -------------------------------------------------------------------
    def mark_stock(self, new_state):
        current = StockState(self.stock_state)
        target = StockState(new_state)
        if target not in _STOCK_TRANSITIONS[current]:
            raise ValidationError({"stock_state": [f"Cannot move stock from {current.value} to {target.value}"]})

        self.stock_state = target.value
        self._record(STOCK_STATE_CHANGED, {"old_state": current.value, "new_state": target.value})
        self.raise_(
            OrderStockStateChanged(
                order_id=str(self.id),
                previous_state=current.value,
                state=target.value,
            )
        )

    # -------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------
    def summary(self):
        return {
            "id": str(self.id),
            "number": self.number,
            "status": self.status,
            "payment_status": self.payment_status,
            "fulfillment_status": self.fulfillment_status,
            "subtotal": self.pricing.subtotal,
            "total": self.pricing.grand_total,
            "currency": self.pricing.currency,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
