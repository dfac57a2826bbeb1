"""BDD tests for expanding variant templates."""

import random

from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.product.expansion import VariantTemplate, expand

scenarios("features/variant_expansion.feature")


def _split(values):
    return [value for value in values.split(",") if value]


def _option_values(variant):
    return {option.attribute_key: option.value for option in variant.options}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a template priced {price:d} with colors "{colors}" and sizes "{sizes}"'),
    target_fixture="template",
)
def template_with_options(price, colors, sizes):
    return {"price": price, "colors": _split(colors), "sizes": _split(sizes)}


@given(parsers.cfparse('a template priced {price:d} with only colors "{colors}"'), target_fixture="template")
def template_with_colors(price, colors):
    return {"price": price, "colors": _split(colors)}


@given(parsers.cfparse("a template priced {price:d} with base stock {stock:d}"), target_fixture="template")
def template_with_stock(price, stock):
    return {"price": price, "stock": stock}


@given(parsers.cfparse('the "{color}" color has {stock:d} in stock'))
def color_stock(template, color, stock):
    template.setdefault("color_stocks", {})[color] = stock


@given(parsers.cfparse('the "{size}" size has {stock:d} in stock'))
def size_stock(template, size, stock):
    template.setdefault("size_stocks", {})[size] = stock


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
def _expand(template, requires_sizing, error):
    try:
        return expand(
            [VariantTemplate.from_dict(template)],
            "classic-tee",
            requires_sizing=requires_sizing,
            rng=random.Random(7),
        )
    except ValidationError as exc:
        error["exc"] = exc
        return []


@when("the template is expanded for a sized category", target_fixture="variants")
def expand_sized(template, error):
    return _expand(template, True, error)


@when("the template is expanded", target_fixture="variants")
def expand_plain(template, error):
    return _expand(template, False, error)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("{count:d} variants are produced"))
def variants_produced(variants, count):
    assert len(variants) == count


@then(parsers.cfparse("{count:d} variant is produced"))
def variant_produced(variants, count):
    assert len(variants) == count


@then(parsers.cfparse("every variant costs {price:d}"))
def every_variant_costs(variants, price):
    assert all(variant.price == price for variant in variants)


@then(parsers.cfparse('the "{color}" "{size}" variant has {stock:d} in stock'))
def combination_stock(variants, color, size, stock):
    variant = next(v for v in variants if _option_values(v) == {"color": color, "size": size})
    assert variant.stock == stock


@then(parsers.cfparse("the only variant has {stock:d} in stock"))
def only_variant_stock(variants, stock):
    assert variants[0].stock == stock
