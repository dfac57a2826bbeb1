"""Attribute catalog management — commands, handler and lookups."""

import json

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.attribute.attribute import DEFAULT_LOCALE, Attribute
from storefront.domain import storefront
from storefront.shared.exceptions import ConflictError


@storefront.command(part_of="Attribute")
class DefineAttribute:
    key = String(required=True, max_length=50)
    name = Text()  # JSON: {locale: name}
    position = Integer(default=0)
    filterable = Boolean(default=True)


@storefront.command(part_of="Attribute")
class AddAttributeValue:
    attribute_id = Identifier(required=True)
    value = String(required=True, max_length=100)
    labels = Text()  # JSON: {locale: label}
    position = Integer()


@storefront.command(part_of="Attribute")
class RemoveAttributeValue:
    attribute_id = Identifier(required=True)
    value_id = Identifier(required=True)


def attribute_by_key(key):
    """Return the attribute defined under ``key``, or None."""
    results = (
        current_domain.repository_for(Attribute)._dao.query.filter(key=key.strip().lower()).all().items
    )
    return results[0] if results else None


def require_attribute(key):
    attribute = attribute_by_key(key)
    if attribute is None:
        raise ObjectNotFoundError(f"Attribute '{key}' does not exist")
    return attribute


@storefront.command_handler(part_of=Attribute)
class ManageAttributesHandler:
    @handle(DefineAttribute)
    def define_attribute(self, command):
        if attribute_by_key(command.key) is not None:
            raise ConflictError({"key": [f"Attribute '{command.key}' already exists"]})

        name = json.loads(command.name) if command.name else None
        attribute = Attribute.define(
            key=command.key,
            name=name,
            position=command.position or 0,
            filterable=command.filterable if command.filterable is not None else True,
        )
        current_domain.repository_for(Attribute).add(attribute)
        return str(attribute.id)

    @handle(AddAttributeValue)
    def add_attribute_value(self, command):
        repo = current_domain.repository_for(Attribute)
        attribute = repo.get(command.attribute_id)

        labels = json.loads(command.labels) if command.labels else None
        item = attribute.add_value(command.value, labels=labels, position=command.position)
        repo.add(attribute)
        return str(item.id)

    @handle(RemoveAttributeValue)
    def remove_attribute_value(self, command):
        repo = current_domain.repository_for(Attribute)
        attribute = repo.get(command.attribute_id)
        attribute.remove_value(command.value_id)
        repo.add(attribute)


def attribute_view(attribute, locale=DEFAULT_LOCALE):
    names = json.loads(attribute.name) if attribute.name else {}
    return {
        "id": str(attribute.id),
        "key": attribute.key,
        "name": names.get(locale) or names.get(DEFAULT_LOCALE) or attribute.key,
        "position": attribute.position,
        "filterable": attribute.filterable,
        "values": [
            {"id": str(item.id), "value": item.value, "label": item.label_for(locale), "position": item.position}
            for item in attribute.ordered_values()
        ],
    }
