"""Pydantic request/response schemas for the storefront API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# --- Catalog admin ---


class DefineAttributeRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "key": "color",
                    "name": {"en": "Color", "hy": "Գույն", "ru": "Цвет"},
                    "position": 0,
                    "filterable": True,
                }
            ]
        }
    }

    key: str = Field(..., max_length=50)
    name: dict[str, str] | None = None
    position: int = Field(0, ge=0)
    filterable: bool = True


class AddAttributeValueRequest(BaseModel):
    value: str = Field(..., max_length=100)
    labels: dict[str, str] | None = None
    position: int | None = Field(None, ge=0)


class CreateCategoryRequest(BaseModel):
    slug: str = Field(..., max_length=200)
    title: str = Field(..., max_length=255)
    requires_sizing: bool | None = None


class VariantTemplateRequest(BaseModel):
    price: float = Field(..., gt=0)
    sku: str | None = Field(None, max_length=100)
    compare_at_price: float | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    colors: list[str] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    color_stocks: dict[str, int] = Field(default_factory=dict)
    size_stocks: dict[str, int] = Field(default_factory=dict)
    published: bool = True
    image_url: str | None = Field(None, max_length=500)


class LabelRequest(BaseModel):
    kind: str = "text"
    value: str = Field(..., max_length=50)
    position: str = "top-left"
    color: str | None = Field(None, max_length=30)


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Classic Tee",
                    "slug": "classic-tee",
                    "category_id": "cat-clothing",
                    "variants": [
                        {
                            "price": 8000,
                            "sku": "TEE",
                            "colors": ["black", "white"],
                            "sizes": ["S", "M"],
                            "size_stocks": {"S": 4, "M": 6},
                        }
                    ],
                    "labels": [{"kind": "text", "value": "New"}],
                }
            ]
        }
    }

    title: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=200)
    description: str | None = None
    brand: str | None = Field(None, max_length=100)
    category_id: str | None = None
    discount_percent: float = Field(0.0, ge=0, le=100)
    published: bool = False
    variants: list[VariantTemplateRequest]
    labels: list[LabelRequest] | None = None


class UpdateProductRequest(BaseModel):
    title: str | None = Field(None, max_length=255)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    brand: str | None = Field(None, max_length=100)
    category_id: str | None = None
    discount_percent: float | None = Field(None, ge=0, le=100)
    variants: list[VariantTemplateRequest] | None = None
    labels: list[LabelRequest] | None = None


class DiscountRequest(BaseModel):
    discount_percent: float = Field(..., ge=0, le=100)


# --- Cart ---


class AddCartItemRequest(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int


# --- Orders ---


class AddressRequest(BaseModel):
    full_name: str | None = Field(None, max_length=200)
    phone: str | None = Field(None, max_length=50)
    address_line: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    region: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str = Field(..., max_length=100)


class GuestLineRequest(BaseModel):
    product_id: str
    variant_id: str
    quantity: int = Field(1, ge=1)


class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "ani@example.am",
                    "phone": "+37491000000",
                    "shipping_address": {"address_line": "1 Abovyan St", "city": "Yerevan", "country": "AM"},
                    "shipping_method": "courier",
                    "payment_method": "idram",
                }
            ]
        }
    }

    cart_id: str | None = None
    items: list[GuestLineRequest] | None = None
    shipping_address: AddressRequest | None = None
    billing_address: AddressRequest | None = None
    shipping_method: str | None = Field(None, max_length=50)
    payment_method: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    notes: str | None = None


class UpdateOrderRequest(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    fulfillment_status: str | None = None
    transaction_id: str | None = Field(None, max_length=255)
    error_message: str | None = Field(None, max_length=500)
    note: str | None = None
    admin_notes: str | None = None


# --- Responses ---


class IdResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class DiscountResponse(BaseModel):
    discount_percent: float


class PlaceOrderResponse(BaseModel):
    order: dict[str, Any]
    payment: dict[str, Any]
    next_action: str
