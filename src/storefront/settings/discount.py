"""Store-wide discount — command, handler and the fresh read used by pricing."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float
from protean.utils.globals import current_domain

from storefront.cache.best_effort import invalidate_all_products
from storefront.domain import storefront
from storefront.settings.setting import GLOBAL_DISCOUNT, StoreSetting

logger = structlog.get_logger(__name__)


@storefront.command(part_of="StoreSetting")
class SetGlobalDiscount:
    discount_percent = Float(required=True, min_value=0.0, max_value=100.0)


def current_global_discount():
    """Read the store-wide discount from storage on every call.

    Missing or malformed values count as no discount.
    """
    try:
        setting = current_domain.repository_for(StoreSetting).get(GLOBAL_DISCOUNT)
    except ObjectNotFoundError:
        return 0.0

    value = setting.decoded()
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)


@storefront.command_handler(part_of=StoreSetting)
class StoreDiscountHandler:
    @handle(SetGlobalDiscount)
    def set_global_discount(self, command):
        repo = current_domain.repository_for(StoreSetting)
        try:
            setting = repo.get(GLOBAL_DISCOUNT)
            setting.change(command.discount_percent)
        except ObjectNotFoundError:
            setting = StoreSetting.create(GLOBAL_DISCOUNT, command.discount_percent)
        repo.add(setting)

        invalidate_all_products()
        logger.info("global_discount_set", discount_percent=command.discount_percent)
        return command.discount_percent
