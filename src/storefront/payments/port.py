"""Payment gateway port (abstract interface).

Checkout only needs somewhere to send the shopper next; capturing the money
and reporting the outcome happen outside the storefront and come back as
order updates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PaymentIntent:
    """Where the shopper goes to pay for an order."""

    provider: str
    payment_url: str | None = None
    expires_at: datetime | None = None
    reference: str | None = None

    def as_dict(self) -> dict:
        return {
            "provider": self.provider,
            "payment_url": self.payment_url,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "reference": self.reference,
        }


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(
        self,
        order_number: str,
        amount: float,
        currency: str,
        provider: str,
    ) -> PaymentIntent:
        """Open a payment for an order and return where to send the shopper."""
        ...
