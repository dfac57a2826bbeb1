"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalog."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    title = String(required=True)
    slug = String(required=True)
    category_id = Identifier()
    published = Boolean(default=False)
    created_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    """Product title, slug, category or description changed."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    title = String(required=True)
    slug = String(required=True)
    category_id = Identifier()


@storefront.event(part_of="Product")
class ProductLabelsChanged:
    """The product's display badges were replaced."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    label_count = Integer(required=True)


@storefront.event(part_of="Product")
class VariantsRegenerated:
    """The product's purchasable variants were regenerated from templates."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    variant_count = Integer(required=True)
    skus = Text(required=True)  # JSON array of SKU codes


@storefront.event(part_of="Product")
class ProductDiscountChanged:
    """The product-specific discount percentage changed."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    previous_percent = Float(required=True)
    discount_percent = Float(required=True)


@storefront.event(part_of="Product")
class ProductPublished:
    """The product became visible and purchasable in the storefront."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    published_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductUnpublished:
    """The product was hidden from the storefront."""

    __version__ = "v1"

    product_id = Identifier(required=True)


@storefront.event(part_of="Product")
class ProductDeleted:
    """The product was soft-deleted."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    deleted_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockReserved:
    """Units of a variant were put on hold for an order."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_reserved = Integer(required=True)


@storefront.event(part_of="Product")
class StockCommitted:
    """A hold was converted into a stock deduction after payment."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock = Integer(required=True)


@storefront.event(part_of="Product")
class StockReleased:
    """A hold was dropped because its order will not be paid."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock_reserved = Integer(required=True)


@storefront.event(part_of="Product")
class StockRestored:
    """Deducted units went back on the shelf after a paid order was cancelled."""

    __version__ = "v1"

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    stock = Integer(required=True)
