"""FastAPI endpoints for the storefront.

Shoppers are identified by headers: ``X-Customer-Id`` once signed in,
``X-Guest-Token`` before that. Every write goes through a domain command.
"""

import json

from fastapi import APIRouter, Header, Query
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddAttributeValueRequest,
    AddCartItemRequest,
    CreateCategoryRequest,
    CreateProductRequest,
    DefineAttributeRequest,
    DiscountRequest,
    DiscountResponse,
    IdResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    StatusResponse,
    UpdateCartItemRequest,
    UpdateOrderRequest,
    UpdateProductRequest,
)
from storefront.attribute.management import (
    AddAttributeValue,
    DefineAttribute,
    RemoveAttributeValue,
    attribute_view,
    require_attribute,
)
from storefront.cart.cart import Cart
from storefront.cart.items import AddCartItem, RemoveCartItem, UpdateCartItem
from storefront.cart.management import MergeGuestCart, OpenCart
from storefront.cart.view import cart_view
from storefront.category.management import CreateCategory
from storefront.checkout.placement import PlaceOrder
from storefront.order.administration import UpdateOrder, order_by_number, order_detail
from storefront.order.listing import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, admin_orders, customer_order, customer_orders
from storefront.product.discount import SetProductDiscount
from storefront.product.lifecycle import DeleteProduct, PublishProduct, UnpublishProduct
from storefront.product.listing import product_card, product_cards
from storefront.product.upsert import CreateProduct, UpdateProduct
from storefront.settings.discount import SetGlobalDiscount

product_router = APIRouter(prefix="/products", tags=["products"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


def _owner(customer_id, guest_token):
    if not customer_id and not guest_token:
        raise ValidationError({"owner": ["Send an X-Customer-Id or an X-Guest-Token header"]})
    return {"customer_id": customer_id, "guest_token": guest_token}


def _dump(items):
    return json.dumps([item.model_dump() for item in items]) if items is not None else None


def _current_cart_view(cart_id):
    return cart_view(current_domain.repository_for(Cart).get(cart_id))


# --- Storefront catalog ---


@product_router.get("")
async def list_products(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[dict]:
    return product_cards(limit=limit, offset=offset)


@product_router.get("/{slug}")
async def get_product(slug: str) -> dict:
    return product_card(slug)


# --- Cart ---


@cart_router.get("")
async def get_cart(
    x_customer_id: str | None = Header(None),
    x_guest_token: str | None = Header(None),
) -> dict:
    cart_id = current_domain.process(OpenCart(**_owner(x_customer_id, x_guest_token)), asynchronous=False)
    return _current_cart_view(cart_id)


@cart_router.post("/items", status_code=201)
async def add_cart_item(
    body: AddCartItemRequest,
    x_customer_id: str | None = Header(None),
    x_guest_token: str | None = Header(None),
) -> dict:
    owner = _owner(x_customer_id, x_guest_token)
    command = AddCartItem(
        **owner,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _current_cart_view(current_domain.process(OpenCart(**owner), asynchronous=False))


@cart_router.patch("/items/{line_id}")
async def update_cart_item(
    line_id: str,
    body: UpdateCartItemRequest,
    x_customer_id: str | None = Header(None),
    x_guest_token: str | None = Header(None),
) -> dict:
    owner = _owner(x_customer_id, x_guest_token)
    current_domain.process(UpdateCartItem(**owner, line_id=line_id, quantity=body.quantity), asynchronous=False)
    return _current_cart_view(current_domain.process(OpenCart(**owner), asynchronous=False))


@cart_router.delete("/items/{line_id}")
async def remove_cart_item(
    line_id: str,
    x_customer_id: str | None = Header(None),
    x_guest_token: str | None = Header(None),
) -> dict:
    owner = _owner(x_customer_id, x_guest_token)
    current_domain.process(RemoveCartItem(**owner, line_id=line_id), asynchronous=False)
    return _current_cart_view(current_domain.process(OpenCart(**owner), asynchronous=False))


@cart_router.post("/merge")
async def merge_guest_cart(
    x_customer_id: str = Header(...),
    x_guest_token: str = Header(...),
) -> dict:
    command = MergeGuestCart(customer_id=x_customer_id, guest_token=x_guest_token)
    cart_id = current_domain.process(command, asynchronous=False)
    return _current_cart_view(cart_id)


# --- Orders ---


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def create_order(
    body: PlaceOrderRequest,
    x_customer_id: str | None = Header(None),
    x_guest_token: str | None = Header(None),
) -> PlaceOrderResponse:
    if body.items is None:
        _owner(x_customer_id, x_guest_token)
    command = PlaceOrder(
        customer_id=x_customer_id,
        guest_token=x_guest_token,
        cart_id=body.cart_id,
        items=_dump(body.items),
        shipping_address=body.shipping_address.model_dump_json() if body.shipping_address else None,
        billing_address=body.billing_address.model_dump_json() if body.billing_address else None,
        shipping_method=body.shipping_method,
        payment_method=body.payment_method,
        email=body.email,
        phone=body.phone,
        notes=body.notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return PlaceOrderResponse(**result)


@order_router.get("")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = Query(None),
    x_customer_id: str | None = Header(None),
) -> dict:
    return customer_orders(x_customer_id, page=page, limit=limit, status=status)


@order_router.get("/{number}")
async def get_order(number: str, x_customer_id: str | None = Header(None)) -> dict:
    order = customer_order(number, x_customer_id)
    summary = order.summary()
    summary["items"] = [
        {
            "product_title": item.product_title,
            "variant_title": item.variant_title,
            "sku": item.sku,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "line_total": item.line_total,
        }
        for item in order.items
    ]
    return summary


# --- Admin: attributes and categories ---


@admin_router.post("/attributes", status_code=201, response_model=IdResponse)
async def define_attribute(body: DefineAttributeRequest) -> IdResponse:
    command = DefineAttribute(
        key=body.key,
        name=json.dumps(body.name, ensure_ascii=False) if body.name else None,
        position=body.position,
        filterable=body.filterable,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.get("/attributes/{key}")
async def get_attribute(key: str, locale: str = Query("en", max_length=5)) -> dict:
    return attribute_view(require_attribute(key), locale)


@admin_router.post("/attributes/{attribute_id}/values", status_code=201, response_model=IdResponse)
async def add_attribute_value(attribute_id: str, body: AddAttributeValueRequest) -> IdResponse:
    command = AddAttributeValue(
        attribute_id=attribute_id,
        value=body.value,
        labels=json.dumps(body.labels, ensure_ascii=False) if body.labels else None,
        position=body.position,
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.delete("/attributes/{attribute_id}/values/{value_id}", response_model=StatusResponse)
async def remove_attribute_value(attribute_id: str, value_id: str) -> StatusResponse:
    current_domain.process(RemoveAttributeValue(attribute_id=attribute_id, value_id=value_id), asynchronous=False)
    return StatusResponse()


@admin_router.post("/categories", status_code=201, response_model=IdResponse)
async def create_category(body: CreateCategoryRequest) -> IdResponse:
    command = CreateCategory(slug=body.slug, title=body.title, requires_sizing=body.requires_sizing)
    return IdResponse(id=current_domain.process(command, asynchronous=False))


# --- Admin: products and discounts ---


@admin_router.post("/products", status_code=201, response_model=IdResponse)
async def create_product(body: CreateProductRequest) -> IdResponse:
    command = CreateProduct(
        title=body.title,
        slug=body.slug,
        description=body.description,
        brand=body.brand,
        category_id=body.category_id,
        discount_percent=body.discount_percent,
        published=body.published,
        variants=_dump(body.variants),
        labels=_dump(body.labels),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.put("/products/{product_id}", response_model=IdResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> IdResponse:
    command = UpdateProduct(
        product_id=product_id,
        title=body.title,
        slug=body.slug,
        description=body.description,
        brand=body.brand,
        category_id=body.category_id,
        discount_percent=body.discount_percent,
        variants=_dump(body.variants),
        labels=_dump(body.labels),
    )
    return IdResponse(id=current_domain.process(command, asynchronous=False))


@admin_router.put("/products/{product_id}/publish", response_model=StatusResponse)
async def publish_product(product_id: str) -> StatusResponse:
    current_domain.process(PublishProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/unpublish", response_model=StatusResponse)
async def unpublish_product(product_id: str) -> StatusResponse:
    current_domain.process(UnpublishProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@admin_router.delete("/products/{product_id}", response_model=StatusResponse)
async def delete_product(product_id: str) -> StatusResponse:
    current_domain.process(DeleteProduct(product_id=product_id), asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/discount", response_model=DiscountResponse)
async def set_product_discount(product_id: str, body: DiscountRequest) -> DiscountResponse:
    command = SetProductDiscount(product_id=product_id, discount_percent=body.discount_percent)
    return DiscountResponse(discount_percent=current_domain.process(command, asynchronous=False))


@admin_router.put("/settings/global-discount", response_model=DiscountResponse)
async def set_global_discount(body: DiscountRequest) -> DiscountResponse:
    command = SetGlobalDiscount(discount_percent=body.discount_percent)
    return DiscountResponse(discount_percent=current_domain.process(command, asynchronous=False))


# --- Admin: orders ---


@admin_router.get("/orders")
async def list_all_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = Query(None),
    payment_status: str | None = Query(None),
) -> dict:
    return admin_orders(page=page, limit=limit, status=status, payment_status=payment_status)


@admin_router.get("/orders/{number}")
async def get_order_detail(number: str) -> dict:
    return order_detail(order_by_number(number))


@admin_router.patch("/orders/{order_id}")
async def update_order(order_id: str, body: UpdateOrderRequest) -> dict:
    command = UpdateOrder(order_id=order_id, actor="admin", **body.model_dump())
    return current_domain.process(command, asynchronous=False)
