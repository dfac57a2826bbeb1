"""Application tests for attribute, category and product administration."""

import json

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from storefront.attribute.management import AddAttributeValue, DefineAttribute, RemoveAttributeValue, attribute_by_key
from storefront.product.discount import SetProductDiscount
from storefront.product.lifecycle import DeleteProduct, UnpublishProduct
from storefront.product.product import ProductStatus
from storefront.product.upsert import CreateProduct, UpdateProduct
from storefront.settings.discount import SetGlobalDiscount, current_global_discount
from storefront.shared.exceptions import ConflictError


def _define(key, *values):
    attribute_id = current_domain.process(DefineAttribute(key=key), asynchronous=False)
    for value in values:
        current_domain.process(AddAttributeValue(attribute_id=attribute_id, value=value), asynchronous=False)
    return attribute_id


class TestAttributes:
    def test_define_and_add_values(self):
        _define("color", "black", "blue")

        attribute = attribute_by_key("color")
        assert [v.value for v in attribute.ordered_values()] == ["black", "blue"]

    def test_duplicate_key_conflicts(self):
        _define("color")
        with pytest.raises(ConflictError):
            _define("Color")

    def test_remove_value(self):
        attribute_id = _define("size", "M")
        value_id = attribute_by_key("size").values[0].id

        current_domain.process(RemoveAttributeValue(attribute_id=attribute_id, value_id=value_id), asynchronous=False)
        assert attribute_by_key("size").values == []


class TestCategories:
    def test_duplicate_slug_conflicts(self, create_category):
        create_category(slug="clothing", title="Clothing")
        with pytest.raises(ConflictError):
            create_category(slug="clothing", title="Clothes")


class TestCreateProduct:
    def test_variants_are_expanded(self, create_product, load_product):
        product_id = create_product(
            slug="classic-tee",
            variants=[{"price": 8000, "sku": "TEE", "colors": ["black", "white"], "sizes": ["S", "M", "L"]}],
        )
        product = load_product(product_id)
        assert len(product.variants) == 6
        assert product.published is True

    def test_sized_category_needs_sizes(self, create_category, create_product):
        category_id = create_category(slug="clothing", title="Clothing")
        with pytest.raises(ValidationError) as exc_info:
            create_product(
                slug="classic-tee",
                category_id=category_id,
                variants=[{"price": 8000, "colors": ["black"]}],
            )
        assert "size is required" in exc_info.value.messages["variants"][0]

    def test_unknown_category(self, create_product):
        with pytest.raises(ValidationError) as exc_info:
            create_product(category_id="missing")
        assert "category_id" in exc_info.value.messages

    def test_values_checked_against_attribute_catalog(self, create_product, load_product):
        _define("color", "black", "blue")

        product_id = create_product(slug="tee", variants=[{"price": 10, "colors": ["Black"]}])
        option = load_product(product_id).variants[0].option_list()[0]
        assert option["value"] == "black"
        assert option["value_id"] is not None

        with pytest.raises(ValidationError):
            create_product(slug="tee-2", variants=[{"price": 10, "colors": ["purple"]}])

    def test_duplicate_slug_conflicts(self, create_product):
        create_product(slug="mug")
        with pytest.raises(ConflictError):
            create_product(slug="mug", variants=[{"price": 10, "sku": "OTHER"}])

    def test_sku_used_by_another_product_conflicts(self, create_product):
        create_product(slug="mug", variants=[{"price": 10, "sku": "SHARED"}])
        with pytest.raises(ConflictError):
            create_product(slug="cup", variants=[{"price": 10, "sku": "SHARED"}])

    def test_invalid_price_rejects_whole_product(self):
        command = CreateProduct(title="Mug", slug="mug", variants=json.dumps([{"price": 10}, {"price": 0}]))
        with pytest.raises(ValidationError):
            current_domain.process(command, asynchronous=False)

    def test_labels_must_be_objects(self):
        command = CreateProduct(
            title="Mug", slug="mug", variants=json.dumps([{"price": 10}]), labels=json.dumps(["New"])
        )
        with pytest.raises(ValidationError) as exc:
            current_domain.process(command, asynchronous=False)
        assert "labels" in exc.value.messages

    def test_variant_templates_must_be_objects(self):
        command = CreateProduct(title="Mug", slug="mug", variants=json.dumps(["MUG-1"]))
        with pytest.raises(ValidationError) as exc:
            current_domain.process(command, asynchronous=False)
        assert "variants" in exc.value.messages


class TestUpdateProduct:
    def test_regeneration_keeps_matching_variants(self, create_product, load_product):
        product_id = create_product(slug="tee", variants=[{"price": 10, "sku": "T", "colors": ["black", "white"]}])
        before = {v.sku: v.id for v in load_product(product_id).variants}

        command = UpdateProduct(
            product_id=product_id,
            title="Better Tee",
            variants=json.dumps([{"price": 12, "sku": "T", "colors": ["black", "white", "red"]}]),
        )
        current_domain.process(command, asynchronous=False)

        product = load_product(product_id)
        assert product.title == "Better Tee"
        assert len(product.variants) == 3
        ids = {v.id for v in product.variants}
        assert set(before.values()) <= ids

    def test_omitted_variants_are_kept(self, create_product, load_product):
        product_id = create_product(slug="tee")
        current_domain.process(UpdateProduct(product_id=product_id, brand="Acme"), asynchronous=False)

        product = load_product(product_id)
        assert product.brand == "Acme"
        assert len(product.variants) == 1

    def test_new_options_can_reuse_the_products_own_sku(self, create_product, load_product):
        product_id = create_product(slug="tee", variants=[{"price": 10, "sku": "TEE", "colors": ["black"]}])

        command = UpdateProduct(
            product_id=product_id,
            variants=json.dumps([{"price": 10, "sku": "TEE", "colors": ["white"]}]),
        )
        current_domain.process(command, asynchronous=False)

        product = load_product(product_id)
        assert [v.sku for v in product.variants] == ["TEE"]
        assert product.variants[0].describe() == "color: white"


class TestLifecycleAndDiscounts:
    def test_unpublish_and_delete(self, create_product, load_product):
        product_id = create_product()
        current_domain.process(UnpublishProduct(product_id=product_id), asynchronous=False)
        assert load_product(product_id).published is False

        current_domain.process(DeleteProduct(product_id=product_id), asynchronous=False)
        assert load_product(product_id).status == ProductStatus.DELETED.value

    def test_set_product_discount(self, create_product, load_product):
        product_id = create_product()
        current_domain.process(SetProductDiscount(product_id=product_id, discount_percent=15), asynchronous=False)
        assert load_product(product_id).discount_percent == 15

    def test_global_discount_is_read_fresh(self):
        assert current_global_discount() == 0.0

        current_domain.process(SetGlobalDiscount(discount_percent=30), asynchronous=False)
        assert current_global_discount() == 30.0

        current_domain.process(SetGlobalDiscount(discount_percent=10), asynchronous=False)
        assert current_global_discount() == 10.0
