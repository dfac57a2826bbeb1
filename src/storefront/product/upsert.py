"""Admin product create/update — commands and handler.

Both commands run the variant expander over the submitted templates and
store the result on the product. Slug and SKU uniqueness are checked
against the whole catalog before anything is written.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.attribute.management import attribute_by_key
from storefront.cache.best_effort import invalidate_products
from storefront.category.category import Category, CategoryStatus
from storefront.domain import storefront
from storefront.product.expansion import COLOR, SIZE, OptionChoice, VariantTemplate, expand
from storefront.product.product import Product, Variant
from storefront.shared.exceptions import ConflictError

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class CreateProduct:
    title = String(required=True, max_length=255)
    slug = String(required=True, max_length=200)
    description = Text()
    brand = String(max_length=100)
    category_id = Identifier()
    discount_percent = Float(default=0.0, min_value=0.0, max_value=100.0)
    published = Boolean(default=False)
    variants = Text(required=True)  # JSON: list of variant templates
    labels = Text()  # JSON: list of {kind, value, position, color}


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    title = String(max_length=255)
    slug = String(max_length=200)
    description = Text()
    brand = String(max_length=100)
    category_id = Identifier()
    discount_percent = Float(min_value=0.0, max_value=100.0)
    variants = Text()  # JSON: list of variant templates; omitted keeps the current variants
    labels = Text()  # JSON: list of {kind, value, position, color}


class CatalogOptionResolver:
    """Check selected colors/sizes against the attribute catalog.

    Dimensions with no attribute defined are accepted as free text.
    """

    def __init__(self):
        self._attributes = {key: attribute_by_key(key) for key in (COLOR, SIZE)}

    def __call__(self, attribute_key, value):
        attribute = self._attributes.get(attribute_key)
        if attribute is None:
            return OptionChoice(attribute_key=attribute_key, value=value)

        item = attribute.find_value(value)
        if item is None:
            raise ValidationError({"variants": [f"Unknown {attribute_key} '{value}'"]})
        return OptionChoice(attribute_key=attribute_key, value=item.value, value_id=str(item.id))


def _load_json(raw, field_name):
    if raw is None:
        return None
    try:
        return json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        raise ValidationError({field_name: ["Must be valid JSON"]}) from None


def _category(category_id):
    if not category_id:
        return None
    try:
        category = current_domain.repository_for(Category).get(category_id)
    except ObjectNotFoundError:
        raise ValidationError({"category_id": [f"Category {category_id} does not exist"]}) from None
    if category.status != CategoryStatus.ACTIVE.value:
        raise ValidationError({"category_id": [f"Category {category_id} is not active"]})
    return category


def _ensure_slug_available(slug, product_id=None):
    taken = [
        p
        for p in current_domain.repository_for(Product)._dao.query.filter(slug=slug).all().items
        if str(p.id) != str(product_id)
    ]
    if taken:
        raise ConflictError({"slug": [f"Slug '{slug}' is already used by another product"]})


def _ensure_skus_available(product):
    """SKUs must be unique across the catalog, not just within the product.

    Stored variants are matched by the product that owns them: variants this
    product is about to drop are still in the store until it is saved.
    """
    variant_dao = current_domain.repository_for(Variant)._dao
    for variant in product.variants:
        clashes = [
            v for v in variant_dao.query.filter(sku=variant.sku).all().items if str(v.product_id) != str(product.id)
        ]
        if clashes:
            raise ConflictError({"sku": [f"SKU '{variant.sku}' is already used by another product"]})


def _labels(raw):
    labels = _load_json(raw, "labels")
    if labels is None:
        return []
    if not isinstance(labels, list):
        raise ValidationError({"labels": ["Labels must be a list"]})
    for index, label in enumerate(labels):
        if not isinstance(label, dict) or not str(label.get("value") or "").strip():
            raise ValidationError({"labels": [f"Label {index + 1} needs a value"]})
    return labels


def _expand_variants(raw_templates, slug, category):
    templates = _load_json(raw_templates, "variants")
    if not isinstance(templates, list):
        raise ValidationError({"variants": ["Variants must be a list of templates"]})
    if not all(isinstance(t, dict) for t in templates):
        raise ValidationError({"variants": ["Each variant template must be an object"]})

    return expand(
        [VariantTemplate.from_dict(t) for t in templates],
        slug=slug,
        requires_sizing=bool(category and category.requires_sizing),
        resolve_option=CatalogOptionResolver(),
    )


@storefront.command_handler(part_of=Product)
class UpsertProductHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        _ensure_slug_available(command.slug)
        category = _category(command.category_id)
        expanded = _expand_variants(command.variants, command.slug, category)

        product = Product.create(
            title=command.title,
            slug=command.slug,
            description=command.description,
            brand=command.brand,
            category_id=command.category_id,
            discount_percent=command.discount_percent or 0.0,
            published=bool(command.published),
        )
        product.replace_variants(expanded)
        labels = _labels(command.labels)
        if labels:
            product.replace_labels(labels)

        _ensure_skus_available(product)
        current_domain.repository_for(Product).add(product)

        invalidate_products(product.slug)
        logger.info(
            "product_created",
            product_id=str(product.id),
            slug=product.slug,
            variant_count=len(product.variants),
        )
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        previous_slug = product.slug

        if command.slug is not None and command.slug != product.slug:
            _ensure_slug_available(command.slug, product.id)

        category_id = command.category_id if command.category_id is not None else product.category_id
        category = _category(category_id)

        product.update_details(
            title=command.title,
            slug=command.slug,
            description=command.description,
            brand=command.brand,
            category_id=command.category_id,
        )
        if command.discount_percent is not None and command.discount_percent != product.discount_percent:
            product.set_discount(command.discount_percent)
        if command.variants is not None:
            product.replace_variants(_expand_variants(command.variants, product.slug, category))
        if command.labels is not None:
            product.replace_labels(_labels(command.labels))

        _ensure_skus_available(product)
        repo.add(product)

        invalidate_products(previous_slug, product.slug)
        logger.info("product_updated", product_id=str(product.id), variant_count=len(product.variants))
        return str(product.id)
