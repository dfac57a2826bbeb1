"""StoreSetting aggregate: one key/value record of store-wide configuration."""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, String, Text

from storefront.domain import storefront
from storefront.settings.events import StoreSettingChanged

GLOBAL_DISCOUNT = "globalDiscount"


@storefront.aggregate
class StoreSetting:
    key = String(identifier=True, max_length=100)
    value = Text()  # JSON-encoded
    updated_at = DateTime()

    @classmethod
    def create(cls, key, value):
        setting = cls(key=key, value=json.dumps(None))
        setting.change(value)
        return setting

    def decoded(self):
        return json.loads(self.value) if self.value else None

    def change(self, value):
        previous = self.decoded()
        self.value = json.dumps(value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StoreSettingChanged(
                key=self.key,
                previous_value=json.dumps(previous),
                value=self.value,
            )
        )
