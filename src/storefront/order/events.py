"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A checkout produced a new pending order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    number = String(required=True)
    customer_id = Identifier()
    cart_id = Identifier()
    items = Text(required=True)  # JSON list of order lines
    grand_total = Float(required=True)
    currency = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along its main status axis."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)
    note = Text()


@storefront.event(part_of="Order")
class OrderPaymentStatusChanged:
    """The order's payment was confirmed, failed, retried or refunded."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    status = String(required=True)


@storefront.event(part_of="Order")
class OrderFulfilled:
    """The order was handed over for delivery."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    fulfilled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderNoteAdded:
    """An admin attached a note to the order."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    note = Text(required=True)


@storefront.event(part_of="Order")
class OrderStockStateChanged:
    """The order's stock hold was committed or released."""

    __version__ = "v1"

    order_id = Identifier(required=True)
    previous_state = String(required=True)
    state = String(required=True)
