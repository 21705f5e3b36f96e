"""
Currency enumeration and monetary precision rules.

The set of currencies is closed: an exchange-rate lookup is only ever asked
about members of this enum, so it can be total over them.

All supported currencies use two minor-unit digits (cents, piastres,
halalas, fils). Amounts are kept as Decimal and rounded with
ROUND_HALF_EVEN (banker's rounding) whenever a conversion produces more
digits than the currency carries.
"""

import enum
from decimal import Decimal, ROUND_HALF_EVEN


class Currency(str, enum.Enum):
    """
    Supported ISO 4217 currency codes.

    Inherits from str so the value serializes naturally to JSON and
    compares equal to its code.
    """
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    EGP = "EGP"
    SAR = "SAR"
    AED = "AED"


# Smallest representable amount for every supported currency
MINOR_UNIT = Decimal("0.01")


def quantize(amount: Decimal) -> Decimal:
    """Round an amount to the currency minor unit using banker's rounding."""
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_EVEN)
