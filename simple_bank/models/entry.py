"""
Ledger entry model.

Each entry is one signed movement against one account:
negative for a debit, positive for a credit. Every transfer
produces exactly one of each. Entries are immutable and
append-only, which makes the entry stream the audit trail
that account balances are checked against.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from simple_bank.models.base import Base, utcnow


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Entry {self.id} account={self.account_id} {self.amount:+d}>"
