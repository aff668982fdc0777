"""
Transfer service — moves money between two accounts.

A transfer is one store transaction that:
1. Locks both account rows, lowest id first
2. Re-reads both accounts under their locks
3. Checks the source can cover the amount
4. Records the transfer and its debit and credit entries
5. Applies both balance changes

If anything fails the whole transaction rolls back. No debit
without its credit, and no entry without its balance change,
is ever visible.

Lock order is what keeps concurrent transfers deadlock free.
A transfer A -> B and a transfer B -> A both lock min(A, B)
first, so neither can hold one lock while waiting for the
other's. Transfers on unrelated accounts share no lock and run
in parallel.
"""

from typing import NamedTuple

from simple_bank.errors import (
    AccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    SelfTransferRejected,
    TransferNotFound,
)
from simple_bank.models import Account, Entry, Transfer
from simple_bank.store.base import LedgerStore


class TransferResult(NamedTuple):
    transfer: Transfer
    from_entry: Entry
    to_entry: Entry
    from_account: Account
    to_account: Account


class TransferService:
    """
    Executes transfers against a ledger store.

    timeout bounds each lock wait or statement inside the
    transfer transaction; None leaves it to the store.
    Nothing is retried here. StoreUnavailable, TransactionConflict
    and StoreTimeout are safe for the caller to retry.
    """

    def __init__(self, store: LedgerStore, timeout: float | None = None):
        self.store = store
        self.timeout = timeout

    def execute_transfer(
        self, from_account_id: int, to_account_id: int, amount: int
    ) -> TransferResult:
        """
        Transfer amount (minor units) from one account to another.

        Currency is not checked here; callers compare the two
        accounts' currencies before calling.
        """
        if from_account_id == to_account_id:
            raise SelfTransferRejected(from_account_id)
        if amount <= 0:
            raise InvalidAmount(f"Transfer amount must be positive, got {amount}")

        with self.store.transaction(timeout=self.timeout) as tx:
            locked: dict[int, Account] = {}
            for account_id in sorted((from_account_id, to_account_id)):
                account = tx.get_account(account_id, for_update=True)
                if account is None:
                    raise AccountNotFound(account_id)
                locked[account_id] = account

            # Checked under the lock so no other transfer can spend
            # the same money between the check and the update
            source = locked[from_account_id]
            if source.balance - amount < 0:
                raise InsufficientFunds(source.id, source.balance, amount)

            transfer = tx.create_transfer(from_account_id, to_account_id, amount)
            from_entry = tx.create_entry(from_account_id, -amount)
            to_entry = tx.create_entry(to_account_id, amount)

            deltas = {from_account_id: -amount, to_account_id: amount}
            updated = {
                account_id: tx.add_account_balance(account_id, deltas[account_id])
                for account_id in sorted(deltas)
            }

        return TransferResult(
            transfer=transfer,
            from_entry=from_entry,
            to_entry=to_entry,
            from_account=updated[from_account_id],
            to_account=updated[to_account_id],
        )

    def get_transfer(self, transfer_id: int) -> Transfer:
        with self.store.transaction() as tx:
            transfer = tx.get_transfer(transfer_id)
        if transfer is None:
            raise TransferNotFound(transfer_id)
        return transfer
