"""Shopper-facing cart view, priced against the live catalog.

Lines whose variant has since gone off sale stay in the view flagged as
unavailable; checkout is where they are rejected.
"""

from protean.exceptions import ObjectNotFoundError

from storefront import config
from storefront.pricing.engine import resolve
from storefront.product.lookup import find_sellable
from storefront.settings.discount import current_global_discount
from storefront.shared.money import round_amount


def cart_view(cart):
    global_discount = current_global_discount()
    loaded = {}
    lines = []
    for item in cart.items:
        line = item.to_dict()
        try:
            product, variant = find_sellable(item.product_id, item.variant_id, loaded)
        except ObjectNotFoundError:
            line.update({"available": False, "unit_price": None, "line_total": 0.0})
            lines.append(line)
            continue

        price = resolve(variant, product, global_discount)
        line.update(
            {
                "available": item.quantity <= variant.available,
                "product_title": product.title,
                "product_slug": product.slug,
                "sku": variant.sku,
                "variant_title": variant.describe() or None,
                "image_url": variant.image_url,
                "unit_price": price.final_price,
                "original_price": price.original_price,
                "line_total": round_amount(price.final_price * item.quantity, price.currency),
            }
        )
        lines.append(line)

    return {
        "id": str(cart.id),
        "status": cart.status,
        "expires_at": cart.expires_at.isoformat() if cart.expires_at else None,
        "items": lines,
        "item_count": sum(item.quantity for item in cart.items),
        "subtotal": round_amount(sum(line["line_total"] for line in lines)),
        "currency": config.CURRENCY,
    }
