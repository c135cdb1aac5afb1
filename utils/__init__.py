"""
Utility modules for the landlord portfolio.
"""

from .formatting import address_slug, format_address, format_currency
from .config import Config

__all__ = ["address_slug", "format_address", "format_currency", "Config"]
