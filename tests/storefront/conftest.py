"""Shared fixtures for storefront tests: catalog set-up through commands."""

import json

import pytest
from protean.utils.globals import current_domain
from storefront.category.management import CreateCategory
from storefront.product.lifecycle import PublishProduct
from storefront.product.product import Product
from storefront.product.upsert import CreateProduct


@pytest.fixture()
def create_category():
    def _create(slug="home", title="Home", requires_sizing=None):
        command = CreateCategory(slug=slug, title=title, requires_sizing=requires_sizing)
        return current_domain.process(command, asynchronous=False)

    return _create


@pytest.fixture()
def create_product():
    """Create a product through CreateProduct; published unless told otherwise."""

    def _create(slug="classic-mug", title="Classic Mug", variants=None, publish=True, **overrides):
        variants = variants or [{"price": 5000, "sku": slug.upper(), "stock": 10}]
        command = CreateProduct(
            title=title,
            slug=slug,
            variants=json.dumps(variants),
            **overrides,
        )
        product_id = current_domain.process(command, asynchronous=False)
        if publish:
            current_domain.process(PublishProduct(product_id=product_id), asynchronous=False)
        return product_id

    return _create


@pytest.fixture()
def load_product():
    def _load(product_id):
        return current_domain.repository_for(Product).get(product_id)

    return _load


@pytest.fixture()
def first_variant(load_product):
    def _first(product_id):
        product = load_product(product_id)
        return sorted(product.variants, key=lambda v: v.position)[0]

    return _first
