"""
Ledger store interface.

The services never talk to a database directly. They open a
transaction on a LedgerStore and work through the
LedgerTransaction it yields:

    with store.transaction(timeout=5.0) as tx:
        account = tx.get_account(account_id, for_update=True)
        ...

Leaving the block normally commits. Leaving it through any
exception, including cancellation, rolls everything back, so no
partially applied change is ever visible to other transactions.

Rows handed out by a transaction are snapshots. Callers change
state only through the transaction's methods.
"""

import abc
from contextlib import AbstractContextManager

from simple_bank.models import Account, Entry, Transfer, User


class LedgerTransaction(abc.ABC):
    """Operations available inside one store transaction."""

    # --- Users ---

    @abc.abstractmethod
    def create_user(
        self, username: str, hashed_password: str, full_name: str, email: str
    ) -> User:
        """Insert a user. Raises DuplicateUser on a username or email clash."""

    @abc.abstractmethod
    def get_user(self, username: str) -> User | None:
        ...

    # --- Accounts ---

    @abc.abstractmethod
    def create_account(self, owner: str, currency: str) -> Account:
        """
        Insert an account with a zero balance.

        Raises DuplicateAccount if the owner already has an account
        in this currency, InvalidOwner if the owner does not exist.
        """

    @abc.abstractmethod
    def get_account(self, account_id: int, for_update: bool = False) -> Account | None:
        """
        Read an account.

        With for_update=True the row's exclusive lock is acquired
        first and held until the transaction ends. Waiting for the
        lock is bounded by the transaction timeout.
        """

    @abc.abstractmethod
    def list_accounts(self, owner: str, limit: int, offset: int) -> list[Account]:
        """Accounts of one owner, ordered by id ascending."""

    @abc.abstractmethod
    def add_account_balance(self, account_id: int, delta: int) -> Account:
        """Apply a signed delta to a balance. The row must be locked."""

    @abc.abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Remove an account row. The row must be locked."""

    # --- Ledger ---

    @abc.abstractmethod
    def create_transfer(
        self, from_account_id: int, to_account_id: int, amount: int
    ) -> Transfer:
        ...

    @abc.abstractmethod
    def get_transfer(self, transfer_id: int) -> Transfer | None:
        ...

    @abc.abstractmethod
    def create_entry(self, account_id: int, amount: int) -> Entry:
        ...

    @abc.abstractmethod
    def list_entries(self, account_id: int, limit: int, offset: int) -> list[Entry]:
        """Entries of one account, newest first."""

    @abc.abstractmethod
    def has_entries(self, account_id: int) -> bool:
        ...


class LedgerStore(abc.ABC):
    """A transactional store the banking services are built on."""

    @abc.abstractmethod
    def transaction(
        self, timeout: float | None = None
    ) -> AbstractContextManager[LedgerTransaction]:
        """
        Open a transaction.

        timeout bounds how long any single lock wait or statement
        inside the transaction may block. None means no bound.
        """

    @abc.abstractmethod
    def ping(self) -> bool:
        """Return True if the store is reachable."""
