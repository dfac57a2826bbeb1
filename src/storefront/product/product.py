"""Product aggregate root with Variant and ProductLabel entities.

Variants are never edited one by one: the admin describes variant templates,
the expander turns them into concrete variants and ``replace_variants``
reconciles them with what is already stored. Stock holds taken at checkout
live on the variant (``stock_reserved``) and move through
reserve → commit (payment confirmed) or reserve → release (order cancelled).
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.product.events import (
    ProductCreated,
    ProductDeleted,
    ProductDetailsUpdated,
    ProductDiscountChanged,
    ProductLabelsChanged,
    ProductPublished,
    ProductUnpublished,
    StockCommitted,
    StockReleased,
    StockReserved,
    StockRestored,
    VariantsRegenerated,
)
from storefront.shared.exceptions import InsufficientStockError


class ProductStatus(Enum):
    ACTIVE = "Active"
    DELETED = "Deleted"


class LabelKind(Enum):
    TEXT = "text"
    PERCENTAGE = "percentage"


class LabelPosition(Enum):
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


def option_signature(options):
    """Order-insensitive identity of an options combination."""
    return tuple(sorted((o["attribute_key"], str(o["value"]).lower()) for o in options))


@storefront.entity(part_of="Product")
class Variant:
    sku = String(required=True, max_length=100)
    price = Float(required=True, min_value=0.01)
    compare_at_price = Float(min_value=0.0)
    stock = Integer(default=0, min_value=0)
    stock_reserved = Integer(default=0, min_value=0)
    options = Text()  # JSON: list of {attribute_key, value_id, value}
    published = Boolean(default=True)
    position = Integer(default=0)
    image_url = String(max_length=500)

    @property
    def available(self):
        """Units that can still be promised to a new order."""
        return max((self.stock or 0) - (self.stock_reserved or 0), 0)

    def option_list(self):
        return json.loads(self.options) if self.options else []

    def signature(self):
        return option_signature(self.option_list())

    def describe(self):
        """Human readable options, e.g. ``color: black, size: M``."""
        return ", ".join(f"{o['attribute_key']}: {o['value']}" for o in self.option_list())


@storefront.entity(part_of="Product")
class ProductLabel:
    kind = String(choices=LabelKind, default=LabelKind.TEXT.value)
    value = String(required=True, max_length=50)
    position = String(choices=LabelPosition, default=LabelPosition.TOP_LEFT.value)
    color = String(max_length=30)


@storefront.aggregate
class Product:
    title = String(required=True, max_length=255)
    slug = String(required=True, max_length=200)
    description = Text()
    brand = String(max_length=100)
    category_id = Identifier()
    discount_percent = Float(default=0.0, min_value=0.0, max_value=100.0)
    variants = HasMany(Variant)
    labels = HasMany(ProductLabel)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    published = Boolean(default=False)
    published_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def variant_options_must_be_unique(self):
        seen = set()
        for variant in self.variants:
            signature = variant.signature()
            if signature in seen:
                raise ValidationError({"variants": [f"Options combination ({variant.describe()}) is used twice"]})
            seen.add(signature)

    @invariant.post
    def variant_skus_must_be_unique(self):
        skus = [v.sku for v in self.variants]
        duplicates = sorted({sku for sku in skus if skus.count(sku) > 1})
        if duplicates:
            raise ValidationError({"variants": [f"SKU '{sku}' is used by more than one variant" for sku in duplicates]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        title,
        slug,
        description=None,
        brand=None,
        category_id=None,
        discount_percent=0.0,
        published=False,
    ):
        now = datetime.now(UTC)
        product = cls(
            title=title,
            slug=slug,
            description=description,
            brand=brand,
            category_id=category_id,
            discount_percent=discount_percent or 0.0,
            published=published,
            published_at=now if published else None,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                title=title,
                slug=slug,
                category_id=category_id,
                published=published,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------
    def update_details(self, title=None, slug=None, description=None, brand=None, category_id=None):
        self._ensure_not_deleted()

        if title is not None:
            self.title = title
        if slug is not None:
            self.slug = slug
        if description is not None:
            self.description = description
        if brand is not None:
            self.brand = brand
        if category_id is not None:
            self.category_id = category_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                title=self.title,
                slug=self.slug,
                category_id=self.category_id,
            )
        )

    def replace_labels(self, labels):
        """Swap the display badges for ``labels`` (dicts with kind, value, position, color)."""
        for existing in list(self.labels):
            self.remove_labels(existing)
        for data in labels:
            self.add_labels(
                ProductLabel(
                    kind=data.get("kind") or data.get("type") or LabelKind.TEXT.value,
                    value=str(data["value"]).strip(),
                    position=data.get("position") or LabelPosition.TOP_LEFT.value,
                    color=data.get("color"),
                )
            )
        self.updated_at = datetime.now(UTC)

        self.raise_(ProductLabelsChanged(product_id=str(self.id), label_count=len(self.labels)))

    # -------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------
    def replace_variants(self, expanded):
        """Make the stored variants match a freshly expanded set.

        A new variant whose options match an existing one takes over that
        variant's identity and reserved quantity, so carts and open orders
        keep pointing at it. Existing variants with no counterpart are
        dropped, unless open orders still hold stock on them.
        """
        self._ensure_not_deleted()

        existing = {variant.signature(): variant for variant in self.variants}
        wanted = set()

        with atomic_change(self):
            for item in expanded:
                options = [o.as_dict() for o in item.options]
                signature = option_signature(options)
                wanted.add(signature)

                current = existing.get(signature)
                if current is None:
                    self.add_variants(
                        Variant(
                            sku=item.sku,
                            price=item.price,
                            compare_at_price=item.compare_at_price,
                            stock=item.stock,
                            stock_reserved=0,
                            options=json.dumps(options, ensure_ascii=False),
                            published=item.published,
                            position=item.position,
                            image_url=item.image_url,
                        )
                    )
                    continue

                if item.stock < (current.stock_reserved or 0):
                    raise ValidationError(
                        {
                            "variants": [
                                f"Stock for SKU '{item.sku}' cannot drop below the "
                                f"{current.stock_reserved} units held by open orders"
                            ]
                        }
                    )
                current.sku = item.sku
                current.price = item.price
                current.compare_at_price = item.compare_at_price
                current.stock = item.stock
                current.options = json.dumps(options, ensure_ascii=False)
                current.published = item.published
                current.position = item.position
                current.image_url = item.image_url

            for variant in list(self.variants):
                if variant.signature() in wanted:
                    continue
                if variant.stock_reserved:
                    raise ValidationError(
                        {"variants": [f"Variant '{variant.sku}' has stock held by open orders and cannot be removed"]}
                    )
                self.remove_variants(variant)

        self.updated_at = datetime.now(UTC)

        self.raise_(
            VariantsRegenerated(
                product_id=str(self.id),
                variant_count=len(self.variants),
                skus=json.dumps(sorted(v.sku for v in self.variants)),
            )
        )

    def find_variant(self, variant_id):
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def is_sellable(self, variant):
        """A variant can be bought only while it and its product are live."""
        return (
            variant is not None
            and bool(variant.published)
            and self.status == ProductStatus.ACTIVE.value
            and bool(self.published)
        )

    # -------------------------------------------------------------------
    # Pricing and lifecycle
    # -------------------------------------------------------------------
    def set_discount(self, percent):
        self._ensure_not_deleted()

        previous = self.discount_percent or 0.0
        self.discount_percent = percent
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductDiscountChanged(
                product_id=str(self.id),
                previous_percent=previous,
                discount_percent=percent,
            )
        )

    def publish(self):
        self._ensure_not_deleted()
        if self.published:
            raise ValidationError({"published": ["Product is already published"]})
        if not self.variants:
            raise ValidationError({"variants": ["Product must have at least one variant to be published"]})

        now = datetime.now(UTC)
        self.published = True
        self.published_at = now
        self.updated_at = now

        self.raise_(ProductPublished(product_id=str(self.id), published_at=now))

    def unpublish(self):
        self._ensure_not_deleted()
        if not self.published:
            raise ValidationError({"published": ["Product is not published"]})

        self.published = False
        self.updated_at = datetime.now(UTC)

        self.raise_(ProductUnpublished(product_id=str(self.id)))

    def delete(self):
        self._ensure_not_deleted()

        now = datetime.now(UTC)
        self.status = ProductStatus.DELETED.value
        self.published = False
        self.updated_at = now

        self.raise_(ProductDeleted(product_id=str(self.id), deleted_at=now))

    def _ensure_not_deleted(self):
        if self.status == ProductStatus.DELETED.value:
            raise ValidationError({"status": ["Deleted products cannot be changed"]})

    # -------------------------------------------------------------------
    # Stock holds
    # -------------------------------------------------------------------
    def _variant_or_error(self, variant_id):
        variant = self.find_variant(variant_id)
        if variant is None:
            raise ValidationError({"variant_id": [f"Variant {variant_id} does not belong to product {self.id}"]})
        return variant

    def reserve_stock(self, variant_id, quantity, order_id):
        """Put ``quantity`` units on hold for an order without touching ``stock``."""
        variant = self._variant_or_error(variant_id)
        if variant.available < quantity:
            raise InsufficientStockError(
                {
                    "quantity": [
                        f"Insufficient stock for SKU '{variant.sku}': "
                        f"{variant.available} available, {quantity} requested"
                    ]
                }
            )

        variant.stock_reserved = (variant.stock_reserved or 0) + quantity
        self.raise_(
            StockReserved(
                product_id=str(self.id),
                variant_id=str(variant.id),
                order_id=str(order_id),
                quantity=quantity,
                stock_reserved=variant.stock_reserved,
            )
        )

    def commit_stock(self, variant_id, quantity, order_id):
        """Turn a hold into a deduction once payment is confirmed."""
        variant = self._variant_or_error(variant_id)
        held = min(variant.stock_reserved or 0, quantity)

        variant.stock_reserved = (variant.stock_reserved or 0) - held
        variant.stock = max((variant.stock or 0) - quantity, 0)
        self.raise_(
            StockCommitted(
                product_id=str(self.id),
                variant_id=str(variant.id),
                order_id=str(order_id),
                quantity=quantity,
                stock=variant.stock,
            )
        )

    def release_stock(self, variant_id, quantity, order_id):
        """Drop a hold that will never be paid for."""
        variant = self._variant_or_error(variant_id)
        released = min(variant.stock_reserved or 0, quantity)

        variant.stock_reserved = (variant.stock_reserved or 0) - released
        self.raise_(
            StockReleased(
                product_id=str(self.id),
                variant_id=str(variant.id),
                order_id=str(order_id),
                quantity=released,
                stock_reserved=variant.stock_reserved,
            )
        )

    def restore_stock(self, variant_id, quantity, order_id):
        """Put back units that were already deducted (paid order cancelled)."""
        variant = self._variant_or_error(variant_id)

        variant.stock = (variant.stock or 0) + quantity
        self.raise_(
            StockRestored(
                product_id=str(self.id),
                variant_id=str(variant.id),
                order_id=str(order_id),
                quantity=quantity,
                stock=variant.stock,
            )
        )
