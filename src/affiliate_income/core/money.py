"""Display helpers for integer cent amounts.

Aggregation never divides by 100; these helpers are only used when a value
is rendered for a person (API ``display`` fields, CLI tables).
"""

import re

DEFAULT_SYMBOL = "€"


def format_cents(cents: int, symbol: str = DEFAULT_SYMBOL) -> str:
    """Format cents as a currency string, e.g. 12345 -> '€123.45'."""
    if isinstance(cents, bool) or not isinstance(cents, int):
        raise TypeError(f"Amount must be integer cents, got {type(cents).__name__}")
    sign = "-" if cents < 0 else ""
    units, remainder = divmod(abs(cents), 100)
    return f"{sign}{symbol}{units}.{remainder:02d}"


def parse_cents(display: str, symbol: str = DEFAULT_SYMBOL) -> int:
    """Parse a currency string produced by :func:`format_cents` back to cents.

    Accepts the sign before or after the symbol ('-€1.00' and '€-1.00'),
    a missing symbol, and zero to two decimal places.

    Raises ValueError when the text is not an unambiguous amount.
    """
    pattern = rf"^(-)?\s*(?:{re.escape(symbol)})?\s*(-)?(\d+)(?:\.(\d{{1,2}}))?$"
    match = re.match(pattern, display.strip())
    if not match:
        raise ValueError(f"Not a currency amount: {display!r}")

    lead_sign, inner_sign, units, decimals = match.groups()
    if lead_sign and inner_sign:
        raise ValueError(f"Not a currency amount: {display!r}")

    cents = int(units) * 100 + int((decimals or "0").ljust(2, "0"))
    return -cents if (lead_sign or inner_sign) else cents
