"""Domain events for the Attribute aggregate."""

from protean.fields import Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Attribute")
class AttributeDefined:
    """A new product dimension was defined."""

    __version__ = "v1"

    attribute_id = Identifier(required=True)
    key = String(required=True)
    name = Text()


@storefront.event(part_of="Attribute")
class AttributeValueAdded:
    """A selectable value was added to an attribute."""

    __version__ = "v1"

    attribute_id = Identifier(required=True)
    value_id = Identifier(required=True)
    value = String(required=True)
    labels = Text()


@storefront.event(part_of="Attribute")
class AttributeValueRemoved:
    """A value was withdrawn from an attribute."""

    __version__ = "v1"

    attribute_id = Identifier(required=True)
    value_id = Identifier(required=True)
    value = String(required=True)
