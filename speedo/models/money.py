"""
Money column type — Decimal in Python, integer minor units in the database.

Floating point cannot represent most decimal fractions exactly
(0.1 + 0.2 != 0.3), and SQLite has no native DECIMAL type, so a Numeric
column would round-trip through float there. Storing integer minor units
keeps every database exact, while the application works with Decimal:

    Decimal("10.50")  <->  1050
"""

from decimal import Decimal

from sqlalchemy import Integer
from sqlalchemy.types import TypeDecorator

from speedo.models.currency import quantize


class Money(TypeDecorator):
    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(quantize(Decimal(value)) * 100)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return quantize(Decimal(value) / 100)
