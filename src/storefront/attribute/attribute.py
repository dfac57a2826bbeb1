"""Attribute aggregate: a named product dimension (color, size, material)
and the ordered set of values an admin may pick from it.

Values carry localized labels as a JSON object keyed by locale, e.g.
``{"en": "Black", "hy": "Սև", "ru": "Черный"}``.
"""

import json
import re
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Integer, String, Text

from storefront.attribute.events import AttributeDefined, AttributeValueAdded, AttributeValueRemoved
from storefront.domain import storefront

DEFAULT_LOCALE = "en"

_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")


def _labels_json(labels):
    if labels is None:
        return json.dumps({})
    if isinstance(labels, str):
        return labels
    return json.dumps(labels, ensure_ascii=False)


@storefront.entity(part_of="Attribute")
class AttributeValue:
    value = String(required=True, max_length=100)
    labels = Text()  # JSON: {locale: label}
    position = Integer(default=0, min_value=0)

    def label_for(self, locale=DEFAULT_LOCALE):
        """Label in the requested locale, falling back to the default locale and then the raw value."""
        labels = json.loads(self.labels) if self.labels else {}
        return labels.get(locale) or labels.get(DEFAULT_LOCALE) or self.value


@storefront.aggregate
class Attribute:
    key = String(required=True, max_length=50)
    name = Text()  # JSON: {locale: name}
    position = Integer(default=0, min_value=0)
    filterable = Boolean(default=True)
    values = HasMany(AttributeValue)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def key_must_be_a_slug(self):
        if self.key and not _KEY_PATTERN.match(self.key):
            raise ValidationError({"key": ["Attribute key must be lowercase letters, digits, '-' or '_'"]})

    @invariant.post
    def values_must_be_unique(self):
        seen = set()
        for item in self.values:
            code = item.value.strip().lower()
            if code in seen:
                raise ValidationError({"values": [f"Value '{item.value}' is defined more than once"]})
            seen.add(code)

    @classmethod
    def define(cls, key, name=None, position=0, filterable=True):
        now = datetime.now(UTC)
        attribute = cls(
            key=key.strip().lower(),
            name=_labels_json(name),
            position=position,
            filterable=filterable,
            created_at=now,
            updated_at=now,
        )
        attribute.raise_(
            AttributeDefined(
                attribute_id=str(attribute.id),
                key=attribute.key,
                name=attribute.name,
            )
        )
        return attribute

    def add_value(self, value, labels=None, position=None):
        if position is None:
            position = len(self.values)

        item = AttributeValue(
            value=value.strip(),
            labels=_labels_json(labels),
            position=position,
        )
        self.add_values(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            AttributeValueAdded(
                attribute_id=str(self.id),
                value_id=str(item.id),
                value=item.value,
                labels=item.labels,
            )
        )
        return item

    def remove_value(self, value_id):
        item = next((v for v in self.values if str(v.id) == str(value_id)), None)
        if item is None:
            raise ValidationError({"value_id": [f"Value {value_id} does not belong to attribute '{self.key}'"]})

        self.remove_values(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            AttributeValueRemoved(
                attribute_id=str(self.id),
                value_id=str(value_id),
                value=item.value,
            )
        )

    def find_value(self, value):
        """Look a value up by its id or (case-insensitively) by its code."""
        needle = str(value).strip().lower()
        for item in self.values:
            if str(item.id) == str(value) or item.value.lower() == needle:
                return item
        return None

    def ordered_values(self):
        return sorted(self.values, key=lambda v: (v.position, v.value))
