"""
In-memory ledger store.

Implements the same capability set as the SQL store for tests
and local experiments:

- every account row has its own exclusive lock, taken by
  get_account(..., for_update=True) and held until the
  transaction ends; waiting is bounded by the transaction timeout
- writes are buffered inside the transaction and applied to the
  shared tables in one step at commit, so other transactions only
  ever observe committed state
- a transaction that raises simply drops its buffer

Ids are drawn from shared counters, so a rolled back transaction
leaves gaps the way a database sequence does.
"""

import itertools
import threading
from contextlib import contextmanager

from simple_bank.errors import (
    AccountNotFound,
    DuplicateAccount,
    DuplicateUser,
    InvalidOwner,
    StoreTimeout,
)
from simple_bank.models import Account, Entry, Transfer, User
from simple_bank.models.base import utcnow
from simple_bank.store.base import LedgerStore, LedgerTransaction


class InMemoryLedgerTransaction(LedgerTransaction):

    def __init__(self, store: "InMemoryLedgerStore", timeout: float | None):
        self._store = store
        self._timeout = timeout
        self._held: dict[int, threading.Lock] = {}

        # Write buffers. A None account row marks a deletion.
        self._users: dict[str, dict] = {}
        self._accounts: dict[int, dict | None] = {}
        self._transfers: dict[int, dict] = {}
        self._entries: dict[int, dict] = {}

    # --- Locking ---

    def _lock_row(self, account_id: int) -> None:
        if account_id in self._held:
            return
        lock = self._store._checkout_lock(account_id)
        wait = -1 if self._timeout is None else self._timeout
        if not lock.acquire(timeout=wait):
            self._store._return_lock(account_id)
            raise StoreTimeout(
                f"Timed out waiting for the lock on account {account_id}"
            )
        self._held[account_id] = lock

    def _require_lock(self, account_id: int) -> None:
        if account_id not in self._held:
            raise RuntimeError(f"Account {account_id} must be locked before writing")

    def release(self) -> None:
        for account_id, lock in self._held.items():
            lock.release()
            self._store._return_lock(account_id)
        self._held.clear()

    # --- Reads merging committed state with this transaction's writes ---

    def _account_row(self, account_id: int) -> dict | None:
        if account_id in self._accounts:
            row = self._accounts[account_id]
            return dict(row) if row is not None else None
        return self._store._committed("accounts", account_id)

    def _user_exists(self, username: str) -> bool:
        return (
            username in self._users
            or self._store._committed("users", username) is not None
        )

    # --- Users ---

    def create_user(self, username, hashed_password, full_name, email):
        emails = {u["email"] for u in self._users.values()}
        if self._user_exists(username) or email in emails or self._store._email_taken(email):
            raise DuplicateUser(
                f"User '{username}' or email '{email}' already exists"
            )

        now = utcnow()
        row = {
            "username": username,
            "hashed_password": hashed_password,
            "full_name": full_name,
            "email": email,
            "password_changed_at": now,
            "created_at": now,
        }
        self._users[username] = row
        return User(**row)

    def get_user(self, username):
        row = self._users.get(username) or self._store._committed("users", username)
        return User(**row) if row else None

    # --- Accounts ---

    def _owner_accounts(self, owner: str) -> list[dict]:
        rows = {
            row["id"]: row
            for row in self._store._committed_where("accounts", owner=owner)
        }
        for account_id, row in self._accounts.items():
            if row is None:
                rows.pop(account_id, None)
            elif row["owner"] == owner:
                rows[account_id] = dict(row)
        return [rows[k] for k in sorted(rows)]

    def create_account(self, owner, currency):
        if not self._user_exists(owner):
            raise InvalidOwner(f"User '{owner}' does not exist")
        if any(r["currency"] == currency for r in self._owner_accounts(owner)):
            raise DuplicateAccount(
                f"User '{owner}' already has a {currency} account"
            )

        row = {
            "id": self._store._next_id("accounts"),
            "owner": owner,
            "currency": currency,
            "balance": 0,
            "created_at": utcnow(),
        }
        self._accounts[row["id"]] = row
        return Account(**row)

    def get_account(self, account_id, for_update=False):
        if for_update:
            self._lock_row(account_id)
        row = self._account_row(account_id)
        return Account(**row) if row else None

    def list_accounts(self, owner, limit, offset):
        rows = self._owner_accounts(owner)
        return [Account(**row) for row in rows[offset:offset + limit]]

    def add_account_balance(self, account_id, delta):
        self._require_lock(account_id)
        row = self._account_row(account_id)
        if row is None:
            raise AccountNotFound(account_id)

        row["balance"] += delta
        self._accounts[account_id] = row
        return Account(**row)

    def delete_account(self, account_id):
        self._require_lock(account_id)
        if self._account_row(account_id) is None:
            raise AccountNotFound(account_id)
        self._accounts[account_id] = None

    # --- Ledger ---

    def create_transfer(self, from_account_id, to_account_id, amount):
        row = {
            "id": self._store._next_id("transfers"),
            "from_account_id": from_account_id,
            "to_account_id": to_account_id,
            "amount": amount,
            "created_at": utcnow(),
        }
        self._transfers[row["id"]] = row
        return Transfer(**row)

    def get_transfer(self, transfer_id):
        row = self._transfers.get(transfer_id) or self._store._committed(
            "transfers", transfer_id
        )
        return Transfer(**row) if row else None

    def create_entry(self, account_id, amount):
        row = {
            "id": self._store._next_id("entries"),
            "account_id": account_id,
            "amount": amount,
            "created_at": utcnow(),
        }
        self._entries[row["id"]] = row
        return Entry(**row)

    def _account_entries(self, account_id: int) -> list[dict]:
        rows = self._store._committed_where("entries", account_id=account_id)
        rows += [dict(r) for r in self._entries.values() if r["account_id"] == account_id]
        return sorted(rows, key=lambda r: r["id"], reverse=True)

    def list_entries(self, account_id, limit, offset):
        rows = self._account_entries(account_id)
        return [Entry(**row) for row in rows[offset:offset + limit]]

    def has_entries(self, account_id):
        return bool(self._account_entries(account_id))

    # --- Commit ---

    def commit(self) -> None:
        self._store._apply(self)


class InMemoryLedgerStore(LedgerStore):
    """Thread-safe ledger store kept in process memory."""

    def __init__(self):
        # Guards the tables and id counters. Held only for short
        # copies and for applying a commit, never while waiting
        # on a row lock.
        self._mutex = threading.Lock()
        # account id -> [lock, number of transactions holding or
        # waiting for it]. Entries go away when that number is zero.
        self._row_locks: dict[int, list] = {}
        self._tables: dict[str, dict] = {
            "users": {},
            "accounts": {},
            "transfers": {},
            "entries": {},
        }
        self._ids = {
            "accounts": itertools.count(1),
            "transfers": itertools.count(1),
            "entries": itertools.count(1),
        }

    @contextmanager
    def transaction(self, timeout=None):
        tx = InMemoryLedgerTransaction(self, timeout)
        try:
            yield tx
            tx.commit()
        finally:
            tx.release()

    def ping(self):
        return True

    # --- Internals used by InMemoryLedgerTransaction ---

    def _checkout_lock(self, account_id: int) -> threading.Lock:
        with self._mutex:
            entry = self._row_locks.setdefault(account_id, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _return_lock(self, account_id: int) -> None:
        with self._mutex:
            entry = self._row_locks[account_id]
            entry[1] -= 1
            if entry[1] == 0:
                del self._row_locks[account_id]

    def _next_id(self, table: str) -> int:
        with self._mutex:
            return next(self._ids[table])

    def _committed(self, table: str, key) -> dict | None:
        with self._mutex:
            row = self._tables[table].get(key)
            return dict(row) if row is not None else None

    def _committed_where(self, table: str, **criteria) -> list[dict]:
        with self._mutex:
            return [
                dict(row) for row in self._tables[table].values()
                if all(row[k] == v for k, v in criteria.items())
            ]

    def _email_taken(self, email: str) -> bool:
        with self._mutex:
            return any(u["email"] == email for u in self._tables["users"].values())

    def _apply(self, tx: InMemoryLedgerTransaction) -> None:
        with self._mutex:
            users = self._tables["users"]
            accounts = self._tables["accounts"]

            # Uniqueness is checked again here because another
            # transaction may have committed since the insert.
            for username, row in tx._users.items():
                if username in users or any(
                    u["email"] == row["email"] for u in users.values()
                ):
                    raise DuplicateUser(
                        f"User '{username}' or email '{row['email']}' already exists"
                    )
            deleted = {k for k, row in tx._accounts.items() if row is None}
            for account_id, row in tx._accounts.items():
                if row is None or account_id in accounts:
                    continue
                if any(
                    a["owner"] == row["owner"] and a["currency"] == row["currency"]
                    for k, a in accounts.items() if k not in deleted
                ):
                    raise DuplicateAccount(
                        f"User '{row['owner']}' already has a {row['currency']} account"
                    )

            users.update(tx._users)
            for account_id, row in tx._accounts.items():
                if row is None:
                    accounts.pop(account_id, None)
                else:
                    accounts[account_id] = row
            self._tables["transfers"].update(tx._transfers)
            self._tables["entries"].update(tx._entries)
