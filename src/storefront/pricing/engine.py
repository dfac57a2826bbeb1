"""Price and discount resolution.

A product-specific discount, when set, wins outright over the store-wide
discount; otherwise the store-wide discount applies; otherwise the variant
sells at its list price. The functions here are pure: the store-wide
discount is passed in by the caller (read fresh from StoreSettings at every
call site), so the same inputs always produce the same result.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from functools import lru_cache

from storefront import config
from storefront.product.product import LabelKind, LabelPosition
from storefront.shared.money import round_amount


class DiscountSource(Enum):
    PRODUCT = "product"
    GLOBAL = "global"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedPrice:
    final_price: float
    original_price: float | None  # the "was" price to strike through, if any
    compare_at_price: float | None
    active_discount_percent: float
    discount_source: DiscountSource
    currency: str

    @property
    def discounted(self) -> bool:
        return self.active_discount_percent > 0


@dataclass(frozen=True)
class DisplayLabel:
    id: str
    kind: str
    value: str
    position: str
    color: str | None = None
    synthesized: bool = False


def active_discount(product_discount: float | None, global_discount: float | None) -> tuple[float, DiscountSource]:
    if product_discount and product_discount > 0:
        return float(product_discount), DiscountSource.PRODUCT
    if global_discount and global_discount > 0:
        return float(global_discount), DiscountSource.GLOBAL
    return 0.0, DiscountSource.NONE


@lru_cache(maxsize=4096)
def discounted_amount(price: float, percent: float, currency: str) -> float:
    """``price`` reduced by ``percent``, rounded to the currency's minor units."""
    if percent <= 0:
        return round_amount(price, currency)
    factor = 1 - Decimal(str(percent)) / 100
    return round_amount(float(Decimal(str(price)) * factor), currency)


def resolve(variant, product, global_discount: float | None, currency: str | None = None) -> ResolvedPrice:
    """Resolve what a variant sells for right now."""
    currency = currency or config.CURRENCY
    percent, source = active_discount(product.discount_percent, global_discount)
    price = float(variant.price)
    compare_at = float(variant.compare_at_price) if variant.compare_at_price else None

    if percent > 0 and price > 0:
        final_price = discounted_amount(price, percent, currency)
        original_price = round_amount(price, currency)
    else:
        percent, source = 0.0, DiscountSource.NONE
        final_price = round_amount(price, currency)
        original_price = compare_at

    return ResolvedPrice(
        final_price=final_price,
        original_price=original_price,
        compare_at_price=compare_at,
        active_discount_percent=percent,
        discount_source=source,
        currency=currency,
    )


def rounded_percent(percent: float) -> int:
    return int(Decimal(str(percent)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def synchronize_labels(product, active_discount_percent: float) -> list[DisplayLabel]:
    """Display labels reflecting the discount that actually applies.

    Percentage labels show the rounded active discount. With no active
    discount they are left out, since any number they carried would be
    stale. With an active discount and no percentage label, one is
    synthesized for display only; nothing is written back to the product.
    """
    labels = []
    for label in product.labels:
        if label.kind == LabelKind.PERCENTAGE.value:
            if active_discount_percent <= 0:
                continue
            value = str(rounded_percent(active_discount_percent))
        else:
            value = label.value
        labels.append(
            DisplayLabel(
                id=str(label.id),
                kind=label.kind,
                value=value,
                position=label.position or LabelPosition.TOP_LEFT.value,
                color=label.color,
            )
        )

    has_percentage = any(label.kind == LabelKind.PERCENTAGE.value for label in labels)
    if active_discount_percent > 0 and not has_percentage:
        labels.append(
            DisplayLabel(
                id=f"auto-discount-{product.id}",
                kind=LabelKind.PERCENTAGE.value,
                value=str(rounded_percent(active_discount_percent)),
                position=LabelPosition.TOP_LEFT.value,
                synthesized=True,
            )
        )
    return labels
