"""
Account model.

An account holds a balance in one currency, in minor units.
The balance is a projection of the account's ledger entries and
is only ever changed by the transfer engine, inside the same
transaction that appends the entries.

A user may hold at most one account per currency.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger, String, DateTime, ForeignKey, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from simple_bank.models.base import Base, utcnow


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("owner", "currency", name="owner_currency_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    owner: Mapped[str] = mapped_column(
        ForeignKey("users.username"), nullable=False, index=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    balance: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="accounts")

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.owner} {self.balance} {self.currency}>"
