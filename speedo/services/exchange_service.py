"""
Exchange-rate service — currency conversion for cross-currency transfers.

The transfer engine does not look rates up itself; it is handed an
ExchangeRateProvider. Production uses StaticExchangeRateProvider, built
from the EXCHANGE_RATES_PER_USD setting. Tests (or a future live-rate
client) supply their own provider through the FastAPI dependency in
dependencies.py.

Rate contract:
  - rate(c, c) == 1 for every currency
  - rate(a, b) multiplies an amount in `a` to give the amount in `b`
  - a missing rate raises RateUnavailableError, never returns a guess

Rounding policy:
  convert() multiplies at full Decimal precision and rounds once, to the
  minor unit of the target currency, with ROUND_HALF_EVEN.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Protocol

from speedo.config import settings
from speedo.exceptions import RateUnavailableError
from speedo.models.currency import Currency, quantize


class ExchangeRateProvider(Protocol):
    """Anything that can quote a conversion rate between two currencies."""

    def rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        ...


class StaticExchangeRateProvider:
    """
    Rates derived from a fixed "units per US dollar" table.

    Cross rates are computed through USD: EUR -> GBP is
    per_usd[GBP] / per_usd[EUR]. The table is read once at construction.
    """

    def __init__(self, rates_per_usd: Mapping[str, Decimal] | None = None):
        source = settings.EXCHANGE_RATES_PER_USD if rates_per_usd is None else rates_per_usd
        self._per_usd = {str(code): Decimal(value) for code, value in source.items()}

    def rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        if from_currency == to_currency:
            return Decimal(1)

        from_rate = self._per_usd.get(Currency(from_currency).value)
        to_rate = self._per_usd.get(Currency(to_currency).value)
        if not from_rate or not to_rate or from_rate <= 0 or to_rate <= 0:
            raise RateUnavailableError(Currency(from_currency).value, Currency(to_currency).value)

        return to_rate / from_rate


def convert(amount: Decimal, rate: Decimal) -> Decimal:
    """Apply a rate to an amount and round to the minor unit."""
    return quantize(amount * rate)


# Shared default instance, served by dependencies.get_exchange_rate_provider
default_rate_provider = StaticExchangeRateProvider()
