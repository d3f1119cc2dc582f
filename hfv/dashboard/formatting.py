from __future__ import annotations

from typing import Optional

PLACEHOLDER = "—"

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}


def currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code.upper(), f"{code.upper()} ")


def format_money(value: Optional[float], currency: str = "USD") -> str:
    """Whole units with thousands separators, e.g. ``$1,234,568``."""
    if value is None:
        return PLACEHOLDER
    return f"{currency_symbol(currency)}{round(value):,}"


def format_price(value: Optional[float], currency: str = "USD") -> str:
    """Up to six fraction digits, trailing zeros dropped."""
    if value is None:
        return PLACEHOLDER
    text = f"{value:,.6f}".rstrip("0").rstrip(".")
    return f"{currency_symbol(currency)}{text}"


def format_percent(value: Optional[float]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}%"


def format_count(value: Optional[int]) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:,}"


def trend_arrow(change: Optional[float]) -> str:
    # Missing change counts as flat/up.
    return "▲" if (change or 0) >= 0 else "▼"
