"""Storefront read path: priced product cards, cached best-effort."""

import json

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront import config
from storefront.cache.best_effort import PRODUCT_LIST_PREFIX, cache_get, cache_set, product_key_prefix
from storefront.pricing.engine import resolve, synchronize_labels
from storefront.product.product import Product, ProductStatus
from storefront.settings.discount import current_global_discount


def _variant_view(variant, product, global_discount):
    price = resolve(variant, product, global_discount)
    return {
        "id": str(variant.id),
        "sku": variant.sku,
        "options": variant.option_list(),
        "price": price.final_price,
        "original_price": price.original_price,
        "compare_at_price": price.compare_at_price,
        "available": variant.available,
        "in_stock": variant.available > 0,
        "image_url": variant.image_url,
    }


def build_card(product, global_discount):
    """Render one product for the storefront with live prices and labels."""
    variants = sorted(
        (v for v in product.variants if v.published),
        key=lambda v: v.position or 0,
    )
    views = [_variant_view(v, product, global_discount) for v in variants]
    lead = views[0] if views else None
    percent = resolve(variants[0], product, global_discount).active_discount_percent if variants else 0.0

    return {
        "id": str(product.id),
        "slug": product.slug,
        "title": product.title,
        "brand": product.brand,
        "category_id": product.category_id,
        "description": product.description,
        "currency": config.CURRENCY,
        "price": lead["price"] if lead else None,
        "original_price": lead["original_price"] if lead else None,
        "compare_at_price": lead["compare_at_price"] if lead else None,
        "discount_percent": percent or None,
        "product_discount": product.discount_percent or None,
        "global_discount": global_discount or None,
        "in_stock": any(v["in_stock"] for v in views),
        "labels": [
            {
                "id": label.id,
                "kind": label.kind,
                "value": label.value,
                "position": label.position,
                "color": label.color,
            }
            for label in synchronize_labels(product, percent)
        ],
        "variants": views,
    }


def _published_by_slug(slug):
    matches = current_domain.repository_for(Product)._dao.query.filter(slug=slug).all().items
    product = next(
        (p for p in matches if p.status == ProductStatus.ACTIVE.value and p.published),
        None,
    )
    if product is None:
        raise ObjectNotFoundError(f"Product '{slug}' does not exist")
    return product


def product_card(slug):
    key = f"{product_key_prefix(slug)}card"
    cached = cache_get(key)
    if cached is not None:
        return json.loads(cached)

    card = build_card(_published_by_slug(slug), current_global_discount())
    cache_set(key, json.dumps(card), config.PRODUCT_CACHE_TTL)
    return card


def product_cards(limit=20, offset=0):
    """One page of published products, newest first."""
    key = f"{PRODUCT_LIST_PREFIX}{limit}:{offset}"
    cached = cache_get(key)
    if cached is not None:
        return json.loads(cached)

    products = (
        current_domain.repository_for(Product)
        ._dao.query.filter(status=ProductStatus.ACTIVE.value, published=True)
        .order_by("-created_at")
        .offset(offset)
        .limit(limit)
        .all()
        .items
    )
    global_discount = current_global_discount()
    page = [build_card(product, global_discount) for product in products]
    cache_set(key, json.dumps(page), config.PRODUCT_CACHE_TTL)
    return page
