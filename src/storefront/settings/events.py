"""Domain events for the StoreSetting aggregate."""

from protean.fields import String, Text

from storefront.domain import storefront


@storefront.event(part_of="StoreSetting")
class StoreSettingChanged:
    """A store-wide setting was created or changed."""

    __version__ = "v1"

    key = String(required=True)
    previous_value = Text()  # JSON
    value = Text()  # JSON
