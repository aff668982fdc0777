"""
Tests for the TransferService.

Every test runs against both the SQL store and the in-memory
store through the ledger_store fixture.
"""

import pytest

from simple_bank.errors import (
    AccountNotFound,
    InsufficientFunds,
    InvalidAmount,
    SelfTransferRejected,
    StoreUnavailable,
    TransferNotFound,
)
from simple_bank.services.account_service import AccountService
from simple_bank.services.transfer_service import TransferService
from simple_bank.store.memory import InMemoryLedgerStore, InMemoryLedgerTransaction
from simple_bank.store.sql import SqlLedgerTransaction


def open_account(store, owner, currency="USD", balance=0):
    """Helper: create the owner if needed and open a funded account."""
    with store.transaction() as tx:
        if tx.get_user(owner) is None:
            tx.create_user(owner, "not-a-real-hash", owner.title(), f"{owner}@test.com")
        account = tx.create_account(owner, currency)
    if balance:
        with store.transaction() as tx:
            tx.get_account(account.id, for_update=True)
            tx.add_account_balance(account.id, balance)
    return account


def balance_of(store, account_id):
    return AccountService(store).get_account(account_id).balance


def entries_of(store, account_id):
    return AccountService(store).list_entries(account_id, offset=0, limit=10)


def transaction_class(store):
    if isinstance(store, InMemoryLedgerStore):
        return InMemoryLedgerTransaction
    return SqlLedgerTransaction


class TestExecuteTransfer:

    def test_transfer_moves_money(self, ledger_store):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        result = TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 30)

        assert result.from_account.balance == 70
        assert result.to_account.balance == 80
        assert balance_of(ledger_store, acct_a.id) == 70
        assert balance_of(ledger_store, acct_b.id) == 80

    def test_transfer_records_transfer_and_entries(self, ledger_store):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        result = TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 30)

        assert result.transfer.id is not None
        assert result.transfer.from_account_id == acct_a.id
        assert result.transfer.to_account_id == acct_b.id
        assert result.transfer.amount == 30

        assert result.from_entry.account_id == acct_a.id
        assert result.from_entry.amount == -30
        assert result.to_entry.account_id == acct_b.id
        assert result.to_entry.amount == 30

        assert [e.amount for e in entries_of(ledger_store, acct_a.id)] == [-30]
        assert [e.amount for e in entries_of(ledger_store, acct_b.id)] == [30]

        stored = TransferService(ledger_store).get_transfer(result.transfer.id)
        assert stored.amount == 30

    def test_transfer_in_either_direction(self, ledger_store):
        """Higher id to lower id uses the same lock order and still works."""
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        result = TransferService(ledger_store).execute_transfer(acct_b.id, acct_a.id, 50)

        assert result.from_account.id == acct_b.id
        assert result.from_account.balance == 0
        assert result.to_account.id == acct_a.id
        assert result.to_account.balance == 150

    def test_transfer_can_empty_an_account(self, ledger_store):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob")

        TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 100)

        assert balance_of(ledger_store, acct_a.id) == 0
        assert balance_of(ledger_store, acct_b.id) == 100

    def test_insufficient_funds_rejected(self, ledger_store):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)
        service = TransferService(ledger_store)
        service.execute_transfer(acct_a.id, acct_b.id, 30)

        with pytest.raises(InsufficientFunds) as exc_info:
            service.execute_transfer(acct_a.id, acct_b.id, 1000)

        assert exc_info.value.account_id == acct_a.id
        assert exc_info.value.balance == 70
        assert balance_of(ledger_store, acct_a.id) == 70
        assert balance_of(ledger_store, acct_b.id) == 80
        assert len(entries_of(ledger_store, acct_a.id)) == 1
        assert len(entries_of(ledger_store, acct_b.id)) == 1

    @pytest.mark.parametrize("amount", [-5, 0, 1, 100, 10**12])
    def test_self_transfer_rejected_for_any_amount(self, ledger_store, amount):
        acct = open_account(ledger_store, "alice", balance=100)

        with pytest.raises(SelfTransferRejected):
            TransferService(ledger_store).execute_transfer(acct.id, acct.id, amount)

        assert balance_of(ledger_store, acct.id) == 100
        assert entries_of(ledger_store, acct.id) == []

    @pytest.mark.parametrize("amount", [0, -1])
    def test_non_positive_amount_rejected(self, ledger_store, amount):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob")

        with pytest.raises(InvalidAmount):
            TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, amount)

    def test_missing_destination_rejected(self, ledger_store):
        acct_a = open_account(ledger_store, "alice", balance=100)

        with pytest.raises(AccountNotFound) as exc_info:
            TransferService(ledger_store).execute_transfer(acct_a.id, 999, 10)

        assert exc_info.value.account_id == 999
        assert balance_of(ledger_store, acct_a.id) == 100

    def test_missing_source_rejected(self, ledger_store):
        acct_b = open_account(ledger_store, "bob", balance=100)

        with pytest.raises(AccountNotFound) as exc_info:
            TransferService(ledger_store).execute_transfer(999, acct_b.id, 10)

        assert exc_info.value.account_id == 999
        assert balance_of(ledger_store, acct_b.id) == 100

    def test_get_missing_transfer(self, ledger_store):
        with pytest.raises(TransferNotFound):
            TransferService(ledger_store).get_transfer(42)


class TestConservation:

    def test_total_money_unchanged_by_transfers(self, ledger_store):
        accounts = [
            open_account(ledger_store, "alice", balance=500),
            open_account(ledger_store, "bob", balance=300),
            open_account(ledger_store, "carol", balance=200),
        ]
        ids = [a.id for a in accounts]
        service = TransferService(ledger_store)
        before = sum(balance_of(ledger_store, i) for i in ids)

        moves = [(0, 1, 120), (1, 2, 400), (2, 0, 50), (0, 2, 330), (2, 1, 1)]
        for src, dst, amount in moves:
            service.execute_transfer(ids[src], ids[dst], amount)

        after = [balance_of(ledger_store, i) for i in ids]
        assert sum(after) == before
        assert all(b >= 0 for b in after)

        # Each balance equals its opening amount plus its entries
        for account, opening in zip(accounts, (500, 300, 200)):
            entries = entries_of(ledger_store, account.id)
            assert balance_of(ledger_store, account.id) == opening + sum(e.amount for e in entries)


class TestAtomicity:

    def test_failure_between_debit_and_credit_rolls_back(self, ledger_store, monkeypatch):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        tx_class = transaction_class(ledger_store)
        original = tx_class.create_entry

        def fail_on_credit(self, account_id, amount):
            if amount > 0:
                raise StoreUnavailable("connection lost")
            return original(self, account_id, amount)

        monkeypatch.setattr(tx_class, "create_entry", fail_on_credit)

        with pytest.raises(StoreUnavailable):
            TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 30)

        monkeypatch.undo()
        assert balance_of(ledger_store, acct_a.id) == 100
        assert balance_of(ledger_store, acct_b.id) == 50
        assert entries_of(ledger_store, acct_a.id) == []
        assert entries_of(ledger_store, acct_b.id) == []
        with pytest.raises(TransferNotFound):
            TransferService(ledger_store).get_transfer(1)

    def test_failure_during_balance_update_rolls_back(self, ledger_store, monkeypatch):
        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        tx_class = transaction_class(ledger_store)
        original = tx_class.add_account_balance
        calls = []

        def fail_on_second_update(self, account_id, delta):
            calls.append(account_id)
            if len(calls) == 2:
                raise StoreUnavailable("connection lost")
            return original(self, account_id, delta)

        monkeypatch.setattr(tx_class, "add_account_balance", fail_on_second_update)

        with pytest.raises(StoreUnavailable):
            TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 30)

        monkeypatch.undo()
        assert balance_of(ledger_store, acct_a.id) == 100
        assert balance_of(ledger_store, acct_b.id) == 50
        assert entries_of(ledger_store, acct_a.id) == []

    def test_cancellation_rolls_back(self, ledger_store, monkeypatch):
        """A BaseException such as a cancelled worker also rolls back."""

        class Cancelled(BaseException):
            pass

        acct_a = open_account(ledger_store, "alice", balance=100)
        acct_b = open_account(ledger_store, "bob", balance=50)

        tx_class = transaction_class(ledger_store)

        def cancelled(self, from_account_id, to_account_id, amount):
            raise Cancelled()

        monkeypatch.setattr(tx_class, "create_transfer", cancelled)

        with pytest.raises(Cancelled):
            TransferService(ledger_store).execute_transfer(acct_a.id, acct_b.id, 30)

        monkeypatch.undo()
        assert balance_of(ledger_store, acct_a.id) == 100
        assert balance_of(ledger_store, acct_b.id) == 50
