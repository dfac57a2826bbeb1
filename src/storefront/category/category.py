"""Category aggregate.

Only the parts of a category the core depends on are modelled: the slug and
title products are filed under, and whether products in it must be sold by
size.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, String

from storefront.domain import storefront

# Apparel and footwear, matched against slugs (transliterated) and titles (en/ru/hy)
SIZED_SLUG_KEYWORDS = ("clothing", "odezhda", "hagust", "apparel", "fashion", "shoes", "koshik", "obuv")
SIZED_TITLE_KEYWORDS = ("clothing", "одежда", "հագուստ", "apparel", "fashion", "shoes", "կոշիկ", "обувь")


class CategoryStatus(Enum):
    ACTIVE = "Active"
    DELETED = "Deleted"


def requires_sizing_for(slug, title):
    slug = (slug or "").lower()
    title = (title or "").lower()
    return any(k in slug for k in SIZED_SLUG_KEYWORDS) or any(k in title for k in SIZED_TITLE_KEYWORDS)


@storefront.aggregate
class Category:
    slug = String(required=True, max_length=200)
    title = String(required=True, max_length=255)
    requires_sizing = Boolean(default=False)
    status = String(choices=CategoryStatus, default=CategoryStatus.ACTIVE.value)
    created_at = DateTime()

    @classmethod
    def create(cls, slug, title, requires_sizing=None):
        if requires_sizing is None:
            requires_sizing = requires_sizing_for(slug, title)

        return cls(
            slug=slug,
            title=title,
            requires_sizing=requires_sizing,
            created_at=datetime.now(UTC),
        )
