"""Tests for the Attribute and Category aggregates."""

import pytest
from protean.exceptions import ValidationError
from storefront.attribute.attribute import Attribute
from storefront.attribute.events import AttributeDefined, AttributeValueAdded, AttributeValueRemoved
from storefront.category.category import Category, requires_sizing_for


class TestAttribute:
    def test_define_normalizes_key(self):
        attribute = Attribute.define(" Color ", name={"en": "Color", "hy": "Գույն"})
        assert attribute.key == "color"
        assert isinstance(attribute._events[-1], AttributeDefined)

    def test_key_must_be_a_slug(self):
        with pytest.raises(ValidationError) as exc_info:
            Attribute.define("9 lives")
        assert "key" in exc_info.value.messages

    def test_add_value_with_localized_labels(self):
        attribute = Attribute.define("color")
        item = attribute.add_value("black", labels={"en": "Black", "ru": "Черный"})

        assert item.position == 0
        assert item.label_for("ru") == "Черный"
        assert item.label_for("hy") == "Black"
        assert isinstance(attribute._events[-1], AttributeValueAdded)

    def test_values_are_unique_ignoring_case(self):
        attribute = Attribute.define("color")
        attribute.add_value("black")
        with pytest.raises(ValidationError):
            attribute.add_value("Black")

    def test_find_value_by_code_or_id(self):
        attribute = Attribute.define("size")
        item = attribute.add_value("M")

        assert attribute.find_value("m") is item
        assert attribute.find_value(str(item.id)) is item
        assert attribute.find_value("XL") is None

    def test_remove_value(self):
        attribute = Attribute.define("size")
        item = attribute.add_value("M")
        attribute.remove_value(item.id)

        assert len(attribute.values) == 0
        assert isinstance(attribute._events[-1], AttributeValueRemoved)

    def test_remove_unknown_value(self):
        with pytest.raises(ValidationError):
            Attribute.define("size").remove_value("missing")

    def test_ordered_values(self):
        attribute = Attribute.define("size")
        attribute.add_value("L", position=2)
        attribute.add_value("S", position=0)
        attribute.add_value("M", position=1)
        assert [v.value for v in attribute.ordered_values()] == ["S", "M", "L"]


class TestCategory:
    @pytest.mark.parametrize(
        "slug,title",
        [
            ("mens-clothing", "Men"),
            ("kanaci-koshikner", "Women"),
            ("misc", "Обувь"),
            ("misc", "Հագուստ"),
        ],
    )
    def test_sized_categories_are_detected(self, slug, title):
        assert requires_sizing_for(slug, title)

    def test_other_categories_are_not_sized(self):
        assert not requires_sizing_for("kitchen", "Kitchen & Dining")

    def test_explicit_flag_wins(self):
        assert Category.create("kitchen", "Kitchen", requires_sizing=True).requires_sizing is True
        assert Category.create("clothing", "Clothing", requires_sizing=False).requires_sizing is False

    def test_flag_derived_when_omitted(self):
        assert Category.create("clothing", "Clothing").requires_sizing is True
