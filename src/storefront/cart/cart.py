"""Cart aggregate — a shopper's line items before checkout.

A cart belongs to either a registered customer or a guest token, expires a
fixed number of days after it was opened, and records each line's price at
the moment it was added. That snapshot is informative only: checkout prices
lines from the live catalog.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront import config
from storefront.cart.events import (
    CartConverted,
    CartExpired,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CartOpened,
    CartsMerged,
)
from storefront.domain import storefront
from storefront.shared.exceptions import InsufficientStockError


class CartStatus(Enum):
    ACTIVE = "Active"
    CONVERTED = "Converted"
    MERGED = "Merged"
    EXPIRED = "Expired"


def _as_utc(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@storefront.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price_snapshot = Float(required=True, min_value=0.0)  # Write-once
    added_at = DateTime()

    def to_dict(self):
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id),
            "quantity": self.quantity,
            "price_snapshot": self.price_snapshot,
        }


@storefront.aggregate
class Cart:
    customer_id = Identifier()  # Empty for guest carts
    guest_token = String(max_length=255)
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    expires_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_an_owner(self):
        if not self.customer_id and not self.guest_token:
            raise ValidationError({"owner": ["A cart belongs to a customer or a guest token"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, customer_id=None, guest_token=None, ttl_days=None):
        now = datetime.now(UTC)
        ttl = config.CART_TTL_DAYS if ttl_days is None else ttl_days
        cart = cls(
            customer_id=customer_id,
            guest_token=None if customer_id else guest_token,
            status=CartStatus.ACTIVE.value,
            expires_at=now + timedelta(days=ttl),
            created_at=now,
            updated_at=now,
        )
        cart.raise_(
            CartOpened(
                cart_id=str(cart.id),
                customer_id=str(customer_id) if customer_id else None,
                expires_at=cart.expires_at,
            )
        )
        return cart

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_expired(self, now=None):
        now = now or datetime.now(UTC)
        return self.expires_at is not None and _as_utc(self.expires_at) <= now

    def line_for_variant(self, variant_id):
        return next((i for i in self.items if str(i.variant_id) == str(variant_id)), None)

    def line(self, line_id):
        item = next((i for i in self.items if str(i.id) == str(line_id)), None)
        if item is None:
            raise ObjectNotFoundError(f"Cart line {line_id} does not exist")
        return item

    def _ensure_active(self, action):
        if self.status != CartStatus.ACTIVE.value:
            raise ValidationError({"status": [f"Cannot {action} a cart that is {self.status.lower()}"]})

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, variant_id, quantity, unit_price, available):
        """Add ``quantity`` of a variant, merging with an existing line for it.

        ``available`` is the live sellable stock; the merged quantity must
        fit in it.
        """
        self._ensure_active("add items to")

        existing = self.line_for_variant(variant_id)
        wanted = quantity + (existing.quantity if existing else 0)
        if wanted > available:
            raise InsufficientStockError({"quantity": [f"Insufficient stock: {available} available, {wanted} requested"]})

        now = datetime.now(UTC)
        if existing:
            existing.quantity = wanted
            item = existing
        else:
            item = CartItem(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                price_snapshot=unit_price,
                added_at=now,
            )
            self.add_items(item)
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variant_id=str(variant_id),
                quantity=item.quantity,
                price_snapshot=item.price_snapshot,
            )
        )
        return item

    def update_item(self, line_id, quantity, available):
        self._ensure_active("update")
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.line(line_id)
        if quantity > available:
            raise InsufficientStockError(
                {"quantity": [f"Insufficient stock: {available} available, {quantity} requested"]}
            )

        previous = item.quantity
        item.quantity = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )
        return item

    def remove_item(self, line_id):
        self._ensure_active("remove items from")

        item = self.line(line_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(line_id)))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def absorb(self, guest_cart):
        """Fold a guest cart's lines into this one after the guest signs in.

        Lines for the same variant add up and keep this cart's snapshot.
        """
        self._ensure_active("merge into")
        guest_cart._ensure_active("merge")

        now = datetime.now(UTC)
        for guest_item in guest_cart.items:
            existing = self.line_for_variant(guest_item.variant_id)
            if existing:
                existing.quantity += guest_item.quantity
            else:
                self.add_items(
                    CartItem(
                        product_id=guest_item.product_id,
                        variant_id=guest_item.variant_id,
                        quantity=guest_item.quantity,
                        price_snapshot=guest_item.price_snapshot,
                        added_at=guest_item.added_at or now,
                    )
                )
        self.updated_at = now

        guest_cart.status = CartStatus.MERGED.value
        guest_cart.updated_at = now

        self.raise_(
            CartsMerged(
                cart_id=str(self.id),
                source_cart_id=str(guest_cart.id),
                items_merged_count=len(guest_cart.items),
            )
        )

    def convert(self, order_id):
        self._ensure_active("check out")
        if not self.items:
            raise ValidationError({"cart": ["Cart is empty"]})

        self.status = CartStatus.CONVERTED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(CartConverted(cart_id=str(self.id), order_id=str(order_id)))

    def expire(self):
        self._ensure_active("expire")

        self.status = CartStatus.EXPIRED.value
        self.updated_at = datetime.now(UTC)

        self.raise_(CartExpired(cart_id=str(self.id)))
