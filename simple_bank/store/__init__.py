"""Ledger store implementations."""

from simple_bank.store.base import LedgerStore, LedgerTransaction
from simple_bank.store.memory import InMemoryLedgerStore
from simple_bank.store.sql import SqlLedgerStore

__all__ = [
    "LedgerStore",
    "LedgerTransaction",
    "InMemoryLedgerStore",
    "SqlLedgerStore",
]
