"""Admin order management — update command, handler and lookups.

Status changes are applied payment first, then order status, then
fulfillment, so a single update can confirm a payment and move the order to
processing in one go. Stock follows: a confirmed payment commits the hold,
a cancellation releases it (or restores stock already committed).
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.numbering import find_order_by_number
from storefront.order.order import Order, OrderStatus, PaymentStatus
from storefront.order.stock import commit_order_stock, release_order_stock

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class UpdateOrder:
    order_id = Identifier(required=True)
    status = String(max_length=20)
    payment_status = String(max_length=20)
    fulfillment_status = String(max_length=20)
    transaction_id = String(max_length=255)
    error_message = String(max_length=500)
    note = Text()  # Reason attached to a status change
    admin_notes = Text()
    actor = String(max_length=100)


def order_by_number(number):
    order = find_order_by_number(number)
    if order is None:
        raise ObjectNotFoundError(f"Order {number} does not exist")
    return order


def order_detail(order):
    """Full admin view of an order."""
    detail = order.summary()
    detail.update(
        {
            "customer_id": str(order.customer_id) if order.customer_id else None,
            "email": order.email,
            "phone": order.phone,
            "stock_state": order.stock_state,
            "shipping_method": order.shipping_method,
            "payment_method": order.payment_method,
            "notes": order.notes,
            "admin_notes": order.admin_notes,
            "discount_total": order.pricing.discount_total,
            "shipping_total": order.pricing.shipping_total,
            "tax_total": order.pricing.tax_total,
            "items": [
                {
                    "product_id": str(item.product_id),
                    "variant_id": str(item.variant_id),
                    "product_title": item.product_title,
                    "variant_title": item.variant_title,
                    "sku": item.sku,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "line_total": item.line_total,
                    "image_url": item.image_url,
                }
                for item in order.items
            ],
            "timeline": [
                {
                    "kind": entry.kind,
                    "data": entry.payload(),
                    "actor": entry.actor,
                    "occurred_at": entry.occurred_at.isoformat(),
                }
                for entry in sorted(order.timeline, key=lambda e: e.occurred_at)
            ],
            "paid_at": order.paid_at.isoformat() if order.paid_at else None,
            "fulfilled_at": order.fulfilled_at.isoformat() if order.fulfilled_at else None,
            "cancelled_at": order.cancelled_at.isoformat() if order.cancelled_at else None,
        }
    )
    return detail


@storefront.command_handler(part_of=Order)
class OrderAdministrationHandler:
    @handle(UpdateOrder)
    def update_order(self, command):
        if not any(
            value is not None
            for value in (command.status, command.payment_status, command.fulfillment_status, command.admin_notes)
        ):
            raise ValidationError({"order": ["Nothing to update"]})

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        loaded = {}

        if command.payment_status:
            order.change_payment_status(
                command.payment_status,
                transaction_id=command.transaction_id,
                error_message=command.error_message,
                actor=command.actor,
            )
            if order.payment_status == PaymentStatus.PAID.value:
                commit_order_stock(order, loaded)

        if command.status:
            order.change_status(command.status, note=command.note, actor=command.actor)
            if order.status == OrderStatus.CANCELLED.value:
                release_order_stock(order, loaded)

        if command.fulfillment_status:
            order.change_fulfillment_status(command.fulfillment_status, actor=command.actor)

        if command.admin_notes is not None:
            order.add_admin_note(command.admin_notes, actor=command.actor)

        repo.add(order)

        logger.info(
            "order_updated",
            order_id=str(order.id),
            status=order.status,
            payment_status=order.payment_status,
            fulfillment_status=order.fulfillment_status,
            stock_state=order.stock_state,
        )
        return order_detail(order)
