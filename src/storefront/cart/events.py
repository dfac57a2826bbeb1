"""Domain events for the Cart aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from storefront.domain import storefront


@storefront.event(part_of="Cart")
class CartOpened:
    """A shopper's cart was created."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    customer_id = Identifier()
    expires_at = DateTime(required=True)


@storefront.event(part_of="Cart")
class CartItemAdded:
    """A variant was added to the cart, or its line quantity grew."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True)
    price_snapshot = Float(required=True)


@storefront.event(part_of="Cart")
class CartItemQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartsMerged:
    """A guest cart was folded into a customer's cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    source_cart_id = Identifier(required=True)
    items_merged_count = Integer(required=True)


@storefront.event(part_of="Cart")
class CartConverted:
    """The cart was checked out into an order."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@storefront.event(part_of="Cart")
class CartExpired:
    """The cart passed its expiry and can no longer be used."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
