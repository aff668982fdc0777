"""
Account service — opening, looking up, listing and closing accounts.

Accounts open with a zero balance. Only the transfer service
changes a balance afterwards.
"""

from simple_bank.errors import (
    AccountInUse,
    AccountNotFound,
    InvalidCurrency,
    InvalidOwner,
    InvalidPagination,
)
from simple_bank.models import Account, Entry
from simple_bank.models.enums import is_supported_currency
from simple_bank.store.base import LedgerStore


# Page size bounds keep list queries from scanning without limit
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 10


def check_page(offset: int, limit: int) -> None:
    if offset < 0:
        raise InvalidPagination(f"offset must not be negative, got {offset}")
    if not MIN_PAGE_SIZE <= limit <= MAX_PAGE_SIZE:
        raise InvalidPagination(
            f"limit must be between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE}, got {limit}"
        )


class AccountService:

    def __init__(self, store: LedgerStore):
        self.store = store

    def create_account(self, owner: str, currency: str) -> Account:
        """
        Open a new account for owner in currency.

        Raises InvalidCurrency, InvalidOwner if the user does not
        exist, or DuplicateAccount if the owner already has an
        account in this currency.
        """
        if not is_supported_currency(currency):
            raise InvalidCurrency(f"Unsupported currency '{currency}'")

        with self.store.transaction() as tx:
            if tx.get_user(owner) is None:
                raise InvalidOwner(f"User '{owner}' does not exist")
            account = tx.create_account(owner, currency)
        return account

    def get_account(self, account_id: int) -> Account:
        with self.store.transaction() as tx:
            account = tx.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def list_accounts(self, owner: str, offset: int, limit: int) -> list[Account]:
        """Return one page of the owner's accounts, ordered by id."""
        check_page(offset, limit)
        with self.store.transaction() as tx:
            return tx.list_accounts(owner, limit=limit, offset=offset)

    def delete_account(self, account_id: int) -> None:
        """
        Permanently delete an account.

        Refused with AccountInUse while the account holds money or
        has ledger entries, so no entry is ever left pointing at a
        missing account.
        """
        with self.store.transaction() as tx:
            account = tx.get_account(account_id, for_update=True)
            if account is None:
                raise AccountNotFound(account_id)
            if account.balance != 0:
                raise AccountInUse(
                    f"Account {account_id} still has a balance of {account.balance}"
                )
            if tx.has_entries(account_id):
                raise AccountInUse(
                    f"Account {account_id} is referenced by ledger history"
                )
            tx.delete_account(account_id)

    def list_entries(self, account_id: int, offset: int, limit: int) -> list[Entry]:
        """Return one page of an account's ledger entries, newest first."""
        check_page(offset, limit)
        with self.store.transaction() as tx:
            if tx.get_account(account_id) is None:
                raise AccountNotFound(account_id)
            return tx.list_entries(account_id, limit=limit, offset=offset)
