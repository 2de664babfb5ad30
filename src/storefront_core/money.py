"""Money conversion and display formatting.

Prices live in integer minor units everywhere (kobo for NGN). This module is
the only place that converts to major units or renders an amount for display.
"""

from decimal import ROUND_HALF_UP, Decimal

MINOR_UNITS_PER_MAJOR = 100

CURRENCY_SYMBOLS: dict[str, str] = {
    "NGN": "₦",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}


def to_major(minor: int) -> Decimal:
    """Convert minor units to an exact major-unit Decimal (500 -> Decimal("5.00"))."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))


def to_minor(major: Decimal | int | str) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Floats are refused; pass a string or Decimal so no binary rounding
    sneaks into the stored amount.
    """
    if isinstance(major, float):
        raise TypeError("Use Decimal or str for money amounts, not float")
    amount = Decimal(major) * MINOR_UNITS_PER_MAJOR
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def currency_symbol(currency: str) -> str:
    """Display prefix for a currency code (ISO code plus space when unknown)."""
    code = currency.upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def format_price(minor: int, currency: str = "NGN", show_decimals: bool = False) -> str:
    """
    Format a minor-unit amount for display.

    Args:
        minor: Amount in minor units.
        currency: ISO currency code.
        show_decimals: Render the fractional part ("₦850.50") instead of
            rounding to whole major units ("₦851").

    Returns:
        Formatted string, e.g. format_price(8_500_000) == "₦85,000".
    """
    major = to_major(abs(minor))
    if show_decimals:
        body = f"{major:,.2f}"
    else:
        body = f"{major.quantize(Decimal('1'), rounding=ROUND_HALF_UP):,}"
    sign = "-" if minor < 0 else ""
    return f"{sign}{currency_symbol(currency)}{body}"
