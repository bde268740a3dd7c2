"""
Display formatting for registry entries and dashboard totals.
"""

from typing import Optional

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def format_currency(amount: Optional[float], currency: str = "USD") -> str:
    """
    Format a listing price or earnings total, rounded to whole units.

    Args:
        amount: Amount in dollars (not cents). None means unknown.
        currency: Currency code (default USD).

    Returns:
        e.g. "$1,250,000", or "" when the amount is unknown.
    """
    if amount is None:
        return ""
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    return f"{symbol}{int(round(amount)):,}"


def format_square_footage(value: Optional[float]) -> str:
    if value is None:
        return ""
    return f"{int(round(value)):,} sqft"


def format_percent(value: Optional[float]) -> str:
    """Whole-number percentage, e.g. occupancy 92 -> "92%"."""
    if value is None:
        return ""
    return f"{int(round(value))}%"
