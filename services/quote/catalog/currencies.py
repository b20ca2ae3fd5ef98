"""Supported currencies and price formatting."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, NamedTuple


class Currency(NamedTuple):
    code: str
    symbol: str
    name: str
    decimals: int = 2


CURRENCIES: Dict[str, Currency] = {
    "USD": Currency("USD", "$", "US Dollar"),
    "EUR": Currency("EUR", "€", "Euro"),
    "GBP": Currency("GBP", "£", "British Pound"),
    "JPY": Currency("JPY", "¥", "Japanese Yen", decimals=0),
    "AUD": Currency("AUD", "A$", "Australian Dollar"),
    "NOK": Currency("NOK", "kr", "Norwegian Krone"),
}

CURRENCY_CHOICES = [(code, currency.name) for code, currency in CURRENCIES.items()]


def format_price(price, currency: str = "USD") -> str:
    """Render ``price`` with the currency symbol and grouping, e.g. ``$1,250.00``."""

    info = CURRENCIES[currency]
    quantum = Decimal(1).scaleb(-info.decimals)
    amount = Decimal(str(price)).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{info.symbol}{abs(amount):,.{info.decimals}f}"
