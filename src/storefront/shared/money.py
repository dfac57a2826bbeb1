"""Currency rounding helpers."""

from decimal import ROUND_HALF_UP, Decimal

from storefront import config

# Number of minor units each currency keeps; AMD has none in practice
MINOR_UNITS = {
    "AMD": 0,
    "JPY": 0,
    "KRW": 0,
    "USD": 2,
    "EUR": 2,
    "RUB": 2,
    "GBP": 2,
}


def round_amount(amount: float, currency: str | None = None) -> float:
    """Round an amount half-up to the minor units of its currency."""
    places = MINOR_UNITS.get(currency or config.CURRENCY, 2)
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(amount)).quantize(quantum, rounding=ROUND_HALF_UP))
