"""Variant expansion: turn admin-authored variant templates into the concrete
list of purchasable variants stored on a product.

A template names a base price/SKU/stock and a selection of colors and/or
sizes. Every (color, size) pair becomes a variant; with only one dimension
selected each value becomes a variant, and with none the template yields a
single variant. Everything here is pure: no repository access, no clock or
randomness unless the caller does not inject them.
"""

import random
import string
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from protean.exceptions import ValidationError

COLOR = "color"
SIZE = "size"

DEFAULT_SKU_PREFIX = "PROD"
SKU_DISAMBIGUATOR_LENGTH = 4
_DISAMBIGUATOR_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class OptionChoice:
    """One attribute value picked for a variant."""

    attribute_key: str
    value: str
    value_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"attribute_key": self.attribute_key, "value_id": self.value_id, "value": self.value}


@dataclass(frozen=True)
class VariantTemplate:
    """Admin input describing one family of variants."""

    price: float
    sku: str | None = None
    compare_at_price: float | None = None
    stock: int | None = None
    colors: tuple[str, ...] = ()
    sizes: tuple[str, ...] = ()
    color_stocks: Mapping[str, int] = field(default_factory=dict)
    size_stocks: Mapping[str, int] = field(default_factory=dict)
    published: bool = True
    image_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VariantTemplate":
        """Build a template from API/command payloads (camelCase keys accepted)."""

        def pick(*keys, default=None):
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        return cls(
            price=pick("price", default=0),
            sku=pick("sku"),
            compare_at_price=pick("compare_at_price", "compareAtPrice"),
            stock=pick("stock"),
            colors=tuple(pick("colors", default=())),
            sizes=tuple(pick("sizes", default=())),
            color_stocks=dict(pick("color_stocks", "colorStocks", default={})),
            size_stocks=dict(pick("size_stocks", "sizeStocks", default={})),
            published=pick("published", default=True),
            image_url=pick("image_url", "imageUrl"),
        )


@dataclass(frozen=True)
class ExpandedVariant:
    """A concrete variant ready to be stored on the product."""

    sku: str
    price: float
    stock: int
    options: tuple[OptionChoice, ...]
    position: int
    compare_at_price: float | None = None
    published: bool = True
    image_url: str | None = None


OptionResolver = Callable[[str, str], OptionChoice]


def plain_option(attribute_key: str, value: str) -> OptionChoice:
    """Default resolver: accept the value as given, with no catalog id."""
    return OptionChoice(attribute_key=attribute_key, value=value)


def _is_stock_value(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_template(template: VariantTemplate, index: int, requires_sizing: bool) -> list[str]:
    """Return the problems with one template; an empty list means it is usable."""
    label = f"Variant {index + 1}"
    errors = []

    if not isinstance(template.price, int | float) or isinstance(template.price, bool) or template.price <= 0:
        errors.append(f"{label}: price must be greater than 0")

    if template.compare_at_price is not None and (
        not isinstance(template.compare_at_price, int | float) or template.compare_at_price < 0
    ):
        errors.append(f"{label}: compare-at price must be 0 or more")

    if requires_sizing and not template.sizes:
        errors.append(f"{label}: at least one size is required for this product category")

    if template.stock is not None and not _is_stock_value(template.stock):
        errors.append(f"{label}: stock must be a whole number of 0 or more")

    for dimension, values, stocks in (
        (COLOR, template.colors, template.color_stocks),
        (SIZE, template.sizes, template.size_stocks),
    ):
        lowered = [str(v).strip().lower() for v in values]
        if len(set(lowered)) != len(lowered):
            errors.append(f"{label}: the same {dimension} is selected more than once")
        for value, stock in stocks.items():
            if not _is_stock_value(stock):
                errors.append(f"{label}: stock for {dimension} '{value}' must be a whole number of 0 or more")

    return errors


def stock_for(template: VariantTemplate, color: str | None, size: str | None, requires_sizing: bool) -> int:
    """Pick the stock of one emitted variant.

    Sized categories count stock per size first; otherwise a color count
    wins, then a size count, then the template's base stock.
    """
    if requires_sizing and size is not None and size in template.size_stocks:
        return template.size_stocks[size]
    if color is not None and color in template.color_stocks:
        return template.color_stocks[color]
    if size is not None and size in template.size_stocks:
        return template.size_stocks[size]
    if template.stock is not None:
        return template.stock
    return 0


def _combinations(template: VariantTemplate) -> list[tuple[tuple[int, str] | None, tuple[int, str] | None]]:
    colors = [(i + 1, c) for i, c in enumerate(template.colors)] or [None]
    sizes = [(i + 1, s) for i, s in enumerate(template.sizes)] or [None]
    return [(color, size) for color in colors for size in sizes]


def _sku(template: VariantTemplate, slug: str, timestamp: int, indices: list[int]) -> str:
    multiple = len(template.colors) > 1 or len(template.sizes) > 1
    base = (template.sku or "").strip()
    if base:
        suffix = "".join(f"-{i}" for i in indices) if multiple else ""
        return f"{base}{suffix}"

    prefix = (slug or DEFAULT_SKU_PREFIX).upper()
    return f"{prefix}-{timestamp}-" + "-".join(str(i) for i in indices or [1])


def expand_template(
    template: VariantTemplate,
    slug: str,
    requires_sizing: bool = False,
    resolve_option: OptionResolver = plain_option,
    timestamp: int | None = None,
) -> list[ExpandedVariant]:
    """Emit the variants of a single template (positions are 0-based within it)."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    variants = []
    for position, (color, size) in enumerate(_combinations(template)):
        options = []
        indices = []
        if color is not None:
            indices.append(color[0])
            options.append(resolve_option(COLOR, color[1]))
        if size is not None:
            indices.append(size[0])
            options.append(resolve_option(SIZE, size[1]))

        variants.append(
            ExpandedVariant(
                sku=_sku(template, slug, timestamp, indices),
                price=float(template.price),
                compare_at_price=float(template.compare_at_price) if template.compare_at_price is not None else None,
                stock=stock_for(
                    template,
                    color[1] if color else None,
                    size[1] if size else None,
                    requires_sizing,
                ),
                options=tuple(options),
                position=position,
                published=bool(template.published),
                image_url=template.image_url,
            )
        )
    return variants


def deduplicate_skus(variants: Iterable[ExpandedVariant], rng: random.Random | None = None) -> list[ExpandedVariant]:
    """Give every residual duplicate SKU a random suffix until the set is unique."""
    rng = rng or random.Random()
    seen = set()
    result = []
    for variant in variants:
        sku = variant.sku
        while sku in seen:
            token = "".join(rng.choice(_DISAMBIGUATOR_ALPHABET) for _ in range(SKU_DISAMBIGUATOR_LENGTH))
            sku = f"{variant.sku}-{token}"
        seen.add(sku)
        result.append(variant if sku == variant.sku else _with(variant, sku=sku))
    return result


def _with(variant: ExpandedVariant, **changes) -> ExpandedVariant:
    values = {name: getattr(variant, name) for name in variant.__dataclass_fields__}
    values.update(changes)
    return ExpandedVariant(**values)


def expand(
    templates: Iterable[VariantTemplate],
    slug: str,
    requires_sizing: bool = False,
    resolve_option: OptionResolver = plain_option,
    timestamp: int | None = None,
    rng: random.Random | None = None,
) -> list[ExpandedVariant]:
    """Expand every template into one variant set for a product.

    Raises ValidationError, naming every problem found, when any template is
    unusable; nothing is emitted in that case.
    """
    templates = list(templates)
    if not templates:
        raise ValidationError({"variants": ["At least one variant is required"]})

    errors = []
    for index, template in enumerate(templates):
        errors.extend(validate_template(template, index, requires_sizing))
    if errors:
        raise ValidationError({"variants": errors})

    if timestamp is None:
        timestamp = int(time.time() * 1000)

    emitted = []
    for template in templates:
        emitted.extend(expand_template(template, slug, requires_sizing, resolve_option, timestamp))

    positioned = [_with(variant, position=index) for index, variant in enumerate(emitted)]
    return deduplicate_skus(positioned, rng)
