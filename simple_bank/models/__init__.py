"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from simple_bank.models.base import Base
from simple_bank.models.enums import Currency
from simple_bank.models.user import User
from simple_bank.models.account import Account
from simple_bank.models.transfer import Transfer
from simple_bank.models.entry import Entry

__all__ = [
    "Base",
    "Currency",
    "User",
    "Account",
    "Transfer",
    "Entry",
]
