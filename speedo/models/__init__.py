"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from speedo.models directly
"""

from speedo.models.currency import Currency  # noqa: F401
from speedo.models.user import User  # noqa: F401
from speedo.models.account import Account  # noqa: F401
from speedo.models.transaction import Transaction  # noqa: F401
from speedo.models.session import UserSession  # noqa: F401
