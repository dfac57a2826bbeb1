"""Category management — command and handler."""

from protean import handle
from protean.fields import Boolean, String
from protean.utils.globals import current_domain

from storefront.category.category import Category
from storefront.domain import storefront
from storefront.shared.exceptions import ConflictError


@storefront.command(part_of="Category")
class CreateCategory:
    slug = String(required=True, max_length=200)
    title = String(required=True, max_length=255)
    requires_sizing = Boolean()  # Derived from slug/title when omitted


@storefront.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        repo = current_domain.repository_for(Category)
        if repo._dao.query.filter(slug=command.slug).all().items:
            raise ConflictError({"slug": [f"Category slug '{command.slug}' is already taken"]})

        category = Category.create(
            slug=command.slug,
            title=command.title,
            requires_sizing=command.requires_sizing,
        )
        repo.add(category)
        return str(category.id)
