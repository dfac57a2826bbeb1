"""Application tests for placing orders from carts and guest lines."""

import json

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from storefront.cart.cart import Cart, CartStatus
from storefront.cart.items import AddCartItem
from storefront.cart.management import OpenCart
from storefront.checkout.placement import PlaceOrder
from storefront.order.order import Order, StockState
from storefront.payments import set_gateway
from storefront.payments.fake_adapter import FakeGateway
from storefront.payments.port import PaymentGateway
from storefront.product.lifecycle import DeleteProduct, UnpublishProduct
from storefront.settings.discount import SetGlobalDiscount
from storefront.shared.exceptions import InsufficientStockError

ADDRESS = {"fullName": "Ani Petrosyan", "addressLine": "1 Abovyan St", "city": "Yerevan", "country": "AM"}


def _add(product_id, variant_id, quantity, customer_id="cust-001"):
    command = AddCartItem(customer_id=customer_id, product_id=product_id, variant_id=variant_id, quantity=quantity)
    current_domain.process(command, asynchronous=False)


def _place(**kwargs):
    kwargs.setdefault("shipping_address", json.dumps(ADDRESS))
    return current_domain.process(PlaceOrder(**kwargs), asynchronous=False)


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


@pytest.fixture()
def two_line_cart(create_product, first_variant):
    mug_id = create_product(slug="mug", variants=[{"price": 5000, "sku": "MUG", "stock": 10}])
    tee_id = create_product(slug="tee", variants=[{"price": 8000, "sku": "TEE", "stock": 3}])
    mug = first_variant(mug_id)
    tee = first_variant(tee_id)
    _add(mug_id, mug.id, 2)
    _add(tee_id, tee.id, 1)
    return {"mug": (mug_id, mug.id), "tee": (tee_id, tee.id)}


class TestPlaceOrderFromCart:
    def test_order_totals_and_statuses(self, two_line_cart):
        result = _place(customer_id="cust-001")

        order = result["order"]
        assert order["subtotal"] == 18000
        assert order["total"] == 18000
        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["fulfillment_status"] == "unfulfilled"
        assert result["next_action"] == "redirect"

    def test_stock_is_reserved(self, two_line_cart, load_product):
        _place(customer_id="cust-001")

        mug = load_product(two_line_cart["mug"][0]).variants[0]
        tee = load_product(two_line_cart["tee"][0]).variants[0]
        assert (mug.stock, mug.stock_reserved) == (10, 2)
        assert (tee.stock, tee.stock_reserved) == (3, 1)

        order = _orders()[0]
        assert order.stock_state == StockState.RESERVED.value

    def test_cart_is_converted(self, two_line_cart):
        _place(customer_id="cust-001")

        cart = current_domain.repository_for(Cart)._dao.query.filter(customer_id="cust-001").all().items[0]
        assert cart.status == CartStatus.CONVERTED.value

    def test_order_keeps_line_details_and_address(self, two_line_cart):
        _place(customer_id="cust-001", email="ani@example.com")

        order = _orders()[0]
        assert sorted(item.sku for item in order.items) == ["MUG", "TEE"]
        assert order.shipping_address.full_name == "Ani Petrosyan"
        assert order.shipping_address.city == "Yerevan"
        assert order.email == "ani@example.com"
        assert order.timeline_kinds() == ["order.created"]

    def test_global_discount_applies_to_lines(self, two_line_cart):
        current_domain.process(SetGlobalDiscount(discount_percent=10), asynchronous=False)

        order = _place(customer_id="cust-001")["order"]
        assert order["total"] == 16200

    def test_cart_id_must_match(self, two_line_cart):
        with pytest.raises(ObjectNotFoundError):
            _place(customer_id="cust-001", cart_id="some-other-cart")

    def test_empty_cart(self):
        current_domain.process(OpenCart(customer_id="cust-001"), asynchronous=False)
        with pytest.raises(ValidationError) as exc_info:
            _place(customer_id="cust-001")
        assert exc_info.value.messages == {"cart": ["Cart is empty"]}

    def test_no_cart(self):
        with pytest.raises(ObjectNotFoundError):
            _place(customer_id="cust-001")


class TestAtomicity:
    def test_unpublished_line_rejects_whole_order(self, two_line_cart, load_product):
        current_domain.process(UnpublishProduct(product_id=two_line_cart["tee"][0]), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            _place(customer_id="cust-001")

        assert _orders() == []
        assert load_product(two_line_cart["mug"][0]).variants[0].stock_reserved == 0
        cart = current_domain.repository_for(Cart)._dao.query.filter(customer_id="cust-001").all().items[0]
        assert cart.status == CartStatus.ACTIVE.value

    def test_deleted_product_rejects_whole_order(self, two_line_cart):
        current_domain.process(DeleteProduct(product_id=two_line_cart["mug"][0]), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            _place(customer_id="cust-001")
        assert _orders() == []

    def test_shortage_rejects_whole_order(self, create_product, first_variant, load_product):
        product_id = create_product(slug="mug", variants=[{"price": 100, "sku": "MUG", "stock": 2}])
        variant_id = first_variant(product_id).id

        items = json.dumps([{"product_id": product_id, "variant_id": variant_id, "quantity": 3}])
        with pytest.raises(InsufficientStockError):
            _place(items=items)

        assert _orders() == []
        assert load_product(product_id).variants[0].stock_reserved == 0


class TestGuestCheckout:
    def test_inline_lines_are_merged_by_variant(self, create_product, first_variant, load_product):
        product_id = create_product(slug="mug", variants=[{"price": 100, "sku": "MUG", "stock": 5}])
        variant_id = first_variant(product_id).id
        items = [
            {"product_id": product_id, "variant_id": variant_id, "quantity": 1},
            {"product_id": product_id, "variant_id": variant_id, "quantity": 2},
        ]

        result = _place(items=json.dumps(items), email="guest@example.com")

        order = _orders()[0]
        assert len(order.items) == 1
        assert order.items[0].quantity == 3
        assert order.cart_id is None
        assert result["order"]["total"] == 300
        assert load_product(product_id).variants[0].stock_reserved == 3

    def test_malformed_lines(self):
        with pytest.raises(ValidationError):
            _place(items=json.dumps([{"product_id": "p-1", "quantity": 1}]))

        with pytest.raises(ValidationError):
            _place(items="not json")


class TestPaymentIntent:
    def test_placeholder_intent_by_default(self, two_line_cart):
        payment = _place(customer_id="cust-001")["payment"]
        assert payment["provider"] == "idram"
        assert payment["payment_url"] is None

    def test_gateway_receives_order_total(self, two_line_cart):
        gateway = FakeGateway(payment_url_base="https://pay.example.com/checkout")
        set_gateway(gateway)

        result = _place(customer_id="cust-001", payment_method="arca")

        number = result["order"]["number"]
        assert result["payment"]["payment_url"] == f"https://pay.example.com/checkout/{number}"
        assert result["payment"]["provider"] == "arca"
        assert gateway.calls[0]["amount"] == 18000

    def test_gateway_failure_rolls_back_the_order(self, two_line_cart, load_product):
        class UnreachableGateway(PaymentGateway):
            def create_intent(self, order_number, amount, currency, provider):
                raise ConnectionError("payment provider unreachable")

        set_gateway(UnreachableGateway())

        with pytest.raises(ConnectionError):
            _place(customer_id="cust-001")

        assert _orders() == []
        mug_id, _ = two_line_cart["mug"]
        assert load_product(mug_id).variants[0].stock_reserved == 0
        cart = current_domain.repository_for(Cart)._dao.query.filter(customer_id="cust-001").all().items[0]
        assert cart.status == CartStatus.ACTIVE.value
