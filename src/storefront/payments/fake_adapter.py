"""Fake payment gateway for development and testing.

By default it hands back a placeholder intent with no URL, which is what
checkout returns until a real provider is wired in. Give it a
``payment_url_base`` to simulate a hosted payment page.
"""

from datetime import UTC, datetime, timedelta

from storefront.payments.port import PaymentGateway, PaymentIntent

INTENT_LIFETIME = timedelta(minutes=30)


class FakeGateway(PaymentGateway):
    def __init__(self, payment_url_base: str | None = None) -> None:
        self.payment_url_base = payment_url_base
        self.calls: list[dict] = []

    def configure(self, payment_url_base: str | None) -> None:
        self.payment_url_base = payment_url_base

    def create_intent(
        self,
        order_number: str,
        amount: float,
        currency: str,
        provider: str,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "order_number": order_number,
                "amount": amount,
                "currency": currency,
                "provider": provider,
            }
        )

        if not self.payment_url_base:
            return PaymentIntent(provider=provider)
        return PaymentIntent(
            provider=provider,
            payment_url=f"{self.payment_url_base.rstrip('/')}/{order_number}",
            expires_at=datetime.now(UTC) + INTENT_LIFETIME,
            reference=f"fake_{order_number}",
        )
