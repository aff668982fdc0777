"""Simple Bank — accounts, transfers, and access tokens over a transactional ledger."""

__version__ = "0.1.0"
