"""
Shared enumerations.
"""

import enum


class Currency(str, enum.Enum):
    """Currencies an account can be opened in."""
    USD = "USD"
    EUR = "EUR"
    CAD = "CAD"


def is_supported_currency(code: str) -> bool:
    return code in Currency._value2member_map_
