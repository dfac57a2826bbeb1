"""Cart ownership — get-or-create, guest merge, and the owner lookup the
other cart and checkout handlers share."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart, CartStatus
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class OpenCart:
    """Return the owner's active cart, creating it when there is none."""

    customer_id = Identifier()
    guest_token = String(max_length=255)


@storefront.command(part_of="Cart")
class MergeGuestCart:
    """Fold a guest's cart into the cart of the customer they signed in as."""

    customer_id = Identifier(required=True)
    guest_token = String(required=True, max_length=255)


def _owner_filter(customer_id=None, guest_token=None):
    if customer_id:
        return {"customer_id": str(customer_id)}
    if guest_token:
        return {"guest_token": guest_token}
    raise ValidationError({"owner": ["A customer id or a guest token is required"]})


def find_active_cart(customer_id=None, guest_token=None):
    """The owner's active, unexpired cart, or None.

    Carts found past their expiry are marked expired on the way.
    """
    repo = current_domain.repository_for(Cart)
    carts = repo._dao.query.filter(
        status=CartStatus.ACTIVE.value,
        **_owner_filter(customer_id, guest_token),
    ).all().items

    current = None
    for cart in carts:
        if cart.is_expired():
            cart.expire()
            repo.add(cart)
            logger.info("cart_expired", cart_id=str(cart.id))
        elif current is None:
            current = cart
    return current


def load_or_open_cart(customer_id=None, guest_token=None):
    cart = find_active_cart(customer_id, guest_token)
    if cart is None:
        cart = Cart.open(customer_id=customer_id, guest_token=guest_token)
    return cart


def require_active_cart(customer_id=None, guest_token=None):
    cart = find_active_cart(customer_id, guest_token)
    if cart is None:
        raise ObjectNotFoundError("Cart does not exist")
    return cart


@storefront.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(OpenCart)
    def open_cart(self, command):
        cart = load_or_open_cart(command.customer_id, command.guest_token)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = load_or_open_cart(customer_id=command.customer_id)

        guest_cart = find_active_cart(guest_token=command.guest_token)
        if guest_cart is not None:
            cart.absorb(guest_cart)
            repo.add(guest_cart)
            logger.info("guest_cart_merged", cart_id=str(cart.id), guest_cart_id=str(guest_cart.id))

        repo.add(cart)
        return str(cart.id)
