"""
Formatting utilities.
"""

import re
from typing import Any, Mapping, Optional, Sequence

UNKNOWN_PROPERTY = "Unknown Property"

# Full postal form used on listings and the dashboard
LISTING_ADDRESS_PARTS = ("street", "city", "county", "postcode")

# Short form used on inspection reports
REPORT_ADDRESS_PARTS = ("nameOrNumber", "street", "city", "postcode")


def format_currency(amount: Optional[float], currency: str = "GBP") -> str:
    """
    Format an amount as currency.

    Args:
        amount: The amount in whole units (e.g., pounds, not pence).
        currency: Currency code (default GBP).

    Returns:
        Formatted currency string, or "N/A" when no amount is set.
    """
    if amount is None:
        return "N/A"
    symbols = {
        "GBP": "£",
        "USD": "$",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    if float(amount).is_integer():
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"


def format_address(
    address: Optional[Mapping[str, Any]],
    parts: Sequence[str] = LISTING_ADDRESS_PARTS,
) -> str:
    """
    Join the populated address parts with ", ".

    Args:
        address: Structured address as stored on a property
        parts: Which keys to include, in order

    Returns:
        The formatted address, or "Unknown Property" without an address.
    """
    if not address:
        return UNKNOWN_PROPERTY
    return ", ".join(str(address[key]) for key in parts if address.get(key))


def address_slug(address: str) -> str:
    """Filename-safe form of an address: punctuation dropped, spaces to dashes."""
    cleaned = re.sub(r"[^\w\s-]", "", address)
    return re.sub(r"\s+", "-", cleaned)
