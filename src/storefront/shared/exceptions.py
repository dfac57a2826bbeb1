"""Domain errors beyond Protean's ValidationError / ObjectNotFoundError.

Both subclass ValidationError so callers that only care about "the request
was rejected" can keep catching the base class; the API layer tells them
apart to pick the response status.
"""

from protean.exceptions import ValidationError


class InsufficientStockError(ValidationError):
    """The requested quantity exceeds what the variant can still sell."""


class ConflictError(ValidationError):
    """A uniqueness rule (slug, SKU, attribute key, order number) would be broken."""
