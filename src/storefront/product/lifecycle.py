"""Product lifecycle — publish, unpublish, soft delete."""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from storefront.cache.best_effort import invalidate_products
from storefront.domain import storefront
from storefront.product.product import Product


@storefront.command(part_of="Product")
class PublishProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class UnpublishProduct:
    product_id = Identifier(required=True)


@storefront.command(part_of="Product")
class DeleteProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductLifecycleHandler:
    def _apply(self, product_id, action):
        repo = current_domain.repository_for(Product)
        product = repo.get(product_id)
        action(product)
        repo.add(product)
        invalidate_products(product.slug)

    @handle(PublishProduct)
    def publish_product(self, command):
        self._apply(command.product_id, Product.publish)

    @handle(UnpublishProduct)
    def unpublish_product(self, command):
        self._apply(command.product_id, Product.unpublish)

    @handle(DeleteProduct)
    def delete_product(self, command):
        self._apply(command.product_id, Product.delete)
