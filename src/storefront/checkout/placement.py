"""Checkout — turns a cart (or a guest's inline lines) into a pending order.

Everything is validated against the live catalog before anything is
written. The order, the stock holds and the cart conversion then go through
the same unit of work: if any step fails, none of them are kept.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront import config
from storefront.cart.cart import Cart
from storefront.cart.management import require_active_cart
from storefront.domain import storefront
from storefront.order.numbering import allocate_order_number
from storefront.order.order import Order
from storefront.order.stock import reserve_order_stock
from storefront.payments import get_gateway
from storefront.pricing import engine as pricing
from storefront.product.lookup import find_sellable
from storefront.settings.discount import current_global_discount
from storefront.shared.exceptions import InsufficientStockError
from storefront.shared.money import round_amount

logger = structlog.get_logger(__name__)

NEXT_ACTION = "redirect"


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier()
    guest_token = String(max_length=255)
    cart_id = Identifier()  # Optional: must match the owner's active cart
    items = Text()  # JSON: guest lines [{product_id, variant_id, quantity}]
    shipping_address = Text()  # JSON: address dict
    billing_address = Text()  # JSON: address dict
    shipping_method = String(max_length=50)
    payment_method = String(max_length=50)
    email = String(max_length=255)
    phone = String(max_length=50)
    notes = Text()


def _json(raw, field_name):
    if not raw:
        return None
    try:
        return json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        raise ValidationError({field_name: ["Malformed JSON"]}) from None


ADDRESS_FIELDS = {
    "full_name": ("full_name", "fullName", "name"),
    "phone": ("phone",),
    "address_line": ("address_line", "addressLine", "address"),
    "city": ("city",),
    "region": ("region", "state"),
    "postal_code": ("postal_code", "postalCode", "zip"),
    "country": ("country",),
}


def _address(raw, field_name):
    """Address dict with the keys the order stores; camelCase input is accepted."""
    data = _json(raw, field_name)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValidationError({field_name: ["Address must be an object"]})

    address = {}
    for target, aliases in ADDRESS_FIELDS.items():
        value = next((data[alias] for alias in aliases if data.get(alias)), None)
        if value is not None:
            address[target] = str(value)
    return address


def _guest_lines(raw):
    lines = _json(raw, "items")
    if not isinstance(lines, list):
        raise ValidationError({"items": ["Items must be a list"]})

    merged = {}
    for index, line in enumerate(lines):
        if not isinstance(line, dict) or not line.get("product_id") or not line.get("variant_id"):
            raise ValidationError({"items": [f"Line {index + 1} needs a product_id and a variant_id"]})
        quantity = line.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Line {index + 1} needs a whole quantity of at least 1"]})

        key = str(line["variant_id"])
        if key in merged:
            merged[key]["quantity"] += quantity
        else:
            merged[key] = {
                "product_id": str(line["product_id"]),
                "variant_id": key,
                "quantity": quantity,
            }
    return list(merged.values())


def _line_source(command):
    """``(cart, lines)`` — the persisted cart is None for inline guest lines."""
    if command.items:
        lines = _guest_lines(command.items)
        cart = None
    else:
        cart = require_active_cart(command.customer_id, command.guest_token)
        if command.cart_id and str(command.cart_id) != str(cart.id):
            raise ObjectNotFoundError(f"Cart {command.cart_id} does not exist")
        lines = [
            {"product_id": str(item.product_id), "variant_id": str(item.variant_id), "quantity": item.quantity}
            for item in cart.items
        ]

    if not lines:
        raise ValidationError({"cart": ["Cart is empty"]})
    return cart, lines


def _priced_lines(lines, loaded):
    """Validate every line against the live catalog and price it."""
    resolved = [(line, *find_sellable(line["product_id"], line["variant_id"], loaded)) for line in lines]

    shortages = [
        f"Insufficient stock for SKU '{variant.sku}': {variant.available} available, {line['quantity']} requested"
        for line, _, variant in resolved
        if line["quantity"] > variant.available
    ]
    if shortages:
        raise InsufficientStockError({"quantity": shortages})

    global_discount = current_global_discount()
    priced = []
    for line, product, variant in resolved:
        price = pricing.resolve(variant, product, global_discount)
        priced.append(
            {
                "product_id": str(product.id),
                "variant_id": str(variant.id),
                "product_title": product.title,
                "variant_title": variant.describe() or None,
                "sku": variant.sku,
                "quantity": line["quantity"],
                "unit_price": price.final_price,
                "line_total": round_amount(price.final_price * line["quantity"], price.currency),
                "image_url": variant.image_url,
            }
        )
    return priced


def _totals(priced):
    subtotal = round_amount(sum(line["line_total"] for line in priced))
    # Shipping, tax and order-level discounts are not charged yet
    discount_total = shipping_total = tax_total = 0.0
    return {
        "subtotal": subtotal,
        "discount_total": discount_total,
        "shipping_total": shipping_total,
        "tax_total": tax_total,
        "grand_total": round_amount(subtotal - discount_total + shipping_total + tax_total),
        "currency": config.CURRENCY,
    }


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart, lines = _line_source(command)

        loaded = {}
        priced = _priced_lines(lines, loaded)
        totals = _totals(priced)

        order = Order.place(
            number=allocate_order_number(),
            lines=priced,
            pricing=totals,
            customer_id=command.customer_id,
            cart_id=cart.id if cart is not None else None,
            shipping_address=_address(command.shipping_address, "shipping_address"),
            billing_address=_address(command.billing_address, "billing_address"),
            shipping_method=command.shipping_method,
            payment_method=command.payment_method,
            email=command.email,
            phone=command.phone,
            notes=command.notes,
        )
        reserve_order_stock(order, loaded)

        if cart is not None:
            cart.convert(order.id)
            current_domain.repository_for(Cart).add(cart)

        current_domain.repository_for(Order).add(order)

        intent = get_gateway().create_intent(
            order_number=order.number,
            amount=order.pricing.grand_total,
            currency=order.pricing.currency,
            provider=order.payment_method,
        )
        logger.info(
            "order_placed",
            order_id=str(order.id),
            number=order.number,
            grand_total=order.pricing.grand_total,
            line_count=len(priced),
            guest=cart is None,
        )
        return {
            "order": order.summary(),
            "payment": intent.as_dict(),
            "next_action": NEXT_ACTION,
        }
