"""Cart line management — commands and handler.

Every change re-reads the variant from the live catalog: it must still be
sellable and the resulting line quantity must fit in its available stock.
"""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.cart.management import load_or_open_cart, require_active_cart
from storefront.domain import storefront
from storefront.product.lookup import find_sellable


@storefront.command(part_of="Cart")
class AddCartItem:
    customer_id = Identifier()
    guest_token = String(max_length=255)
    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    customer_id = Identifier()
    guest_token = String(max_length=255)
    line_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.command(part_of="Cart")
class RemoveCartItem:
    customer_id = Identifier()
    guest_token = String(max_length=255)
    line_id = Identifier(required=True)


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        _, variant = find_sellable(command.product_id, command.variant_id)

        cart = load_or_open_cart(command.customer_id, command.guest_token)
        item = cart.add_item(
            product_id=command.product_id,
            variant_id=command.variant_id,
            quantity=command.quantity,
            unit_price=variant.price,
            available=variant.available,
        )
        current_domain.repository_for(Cart).add(cart)
        return item.to_dict()

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = require_active_cart(command.customer_id, command.guest_token)
        line = cart.line(command.line_id)
        _, variant = find_sellable(line.product_id, line.variant_id)

        item = cart.update_item(command.line_id, command.quantity, available=variant.available)
        current_domain.repository_for(Cart).add(cart)
        return item.to_dict()

    @handle(RemoveCartItem)
    def remove_cart_item(self, command):
        cart = require_active_cart(command.customer_id, command.guest_token)
        cart.remove_item(command.line_id)
        current_domain.repository_for(Cart).add(cart)
