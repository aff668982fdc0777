"""
SQLAlchemy implementation of the ledger store.

Each store transaction is one database session. Row locks are
taken with SELECT ... FOR UPDATE and held until commit or
rollback. On PostgreSQL the transaction timeout is applied with
SET LOCAL so it ends with the transaction.

Driver errors never leave this module untyped when they have a
meaning for the caller: serialization failures and deadlocks
become TransactionConflict, lock and statement timeouts become
StoreTimeout, lost connections become StoreUnavailable.
"""

from contextlib import contextmanager

from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from simple_bank.errors import (
    AccountInUse,
    AccountNotFound,
    BankingError,
    DuplicateAccount,
    DuplicateUser,
    InvalidOwner,
    StoreTimeout,
    StoreUnavailable,
    TransactionConflict,
)
from simple_bank.models import Account, Entry, Transfer, User
from simple_bank.models.base import create_db_engine, make_session_factory
from simple_bank.store.base import LedgerStore, LedgerTransaction


# PostgreSQL SQLSTATE codes
SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"
LOCK_NOT_AVAILABLE = "55P03"
QUERY_CANCELED = "57014"
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: DBAPIError) -> str | None:
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == FOREIGN_KEY_VIOLATION:
        return True
    return "FOREIGN KEY constraint failed" in str(exc.orig)


def translate_error(exc: DBAPIError) -> BankingError | None:
    """
    Map a driver error to a typed store error.

    Returns None when the error has no retry meaning for the
    caller; such errors are re-raised unchanged.
    """
    code = _sqlstate(exc)
    message = str(exc.orig)

    if code in (SERIALIZATION_FAILURE, DEADLOCK_DETECTED):
        return TransactionConflict(message)
    if code in (LOCK_NOT_AVAILABLE, QUERY_CANCELED):
        return StoreTimeout(message)
    # SQLite reports an expired busy timeout this way
    if "database is locked" in message:
        return StoreTimeout(message)
    if isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated:
        return StoreUnavailable(message)
    return None


class SqlLedgerTransaction(LedgerTransaction):

    def __init__(self, session: Session):
        self.session = session

    # --- Users ---

    def create_user(self, username, hashed_password, full_name, email):
        user = User(
            username=username,
            hashed_password=hashed_password,
            full_name=full_name,
            email=email,
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise DuplicateUser(
                f"User '{username}' or email '{email}' already exists"
            ) from e
        return user

    def get_user(self, username):
        return self.session.get(User, username)

    # --- Accounts ---

    def create_account(self, owner, currency):
        account = Account(owner=owner, currency=currency, balance=0)
        self.session.add(account)
        try:
            self.session.flush()
        except IntegrityError as e:
            if _is_foreign_key_violation(e):
                raise InvalidOwner(f"User '{owner}' does not exist") from e
            raise DuplicateAccount(
                f"User '{owner}' already has a {currency} account"
            ) from e
        return account

    def get_account(self, account_id, for_update=False):
        stmt = select(Account).where(Account.id == account_id)
        if for_update:
            # populate_existing so a row already in the identity map
            # is refreshed with the value read under the lock
            stmt = stmt.with_for_update().execution_options(
                populate_existing=True
            )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_accounts(self, owner, limit, offset):
        accounts = self.session.execute(
            select(Account)
            .where(Account.owner == owner)
            .order_by(Account.id)
            .limit(limit)
            .offset(offset)
        ).scalars().all()
        return list(accounts)

    def add_account_balance(self, account_id, delta):
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFound(account_id)

        # Issue balance = balance + delta rather than writing back
        # a value computed in Python
        account.balance = Account.balance + delta
        self.session.flush()
        self.session.refresh(account)
        return account

    def delete_account(self, account_id):
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFound(account_id)

        self.session.delete(account)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise AccountInUse(
                f"Account {account_id} is referenced by ledger history"
            ) from e

    # --- Ledger ---

    def create_transfer(self, from_account_id, to_account_id, amount):
        transfer = Transfer(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
        )
        self.session.add(transfer)
        self.session.flush()
        return transfer

    def get_transfer(self, transfer_id):
        return self.session.get(Transfer, transfer_id)

    def create_entry(self, account_id, amount):
        entry = Entry(account_id=account_id, amount=amount)
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_entries(self, account_id, limit, offset):
        entries = self.session.execute(
            select(Entry)
            .where(Entry.account_id == account_id)
            .order_by(Entry.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()
        return list(entries)

    def has_entries(self, account_id):
        first = self.session.execute(
            select(Entry.id).where(Entry.account_id == account_id).limit(1)
        ).scalar_one_or_none()
        return first is not None


class SqlLedgerStore(LedgerStore):
    """
    Ledger store backed by a relational database.

    The session factory is built with autoflush=False and
    expire_on_commit=False, so rows returned from a committed
    transaction stay readable after their session is closed.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlLedgerStore":
        return cls(create_db_engine(database_url))

    def _apply_timeout(self, session: Session, timeout: float) -> None:
        if self.engine.dialect.name != "postgresql":
            return
        millis = max(1, int(timeout * 1000))
        session.execute(text(f"SET LOCAL lock_timeout = {millis}"))
        session.execute(text(f"SET LOCAL statement_timeout = {millis}"))

    @contextmanager
    def transaction(self, timeout=None):
        session = self.session_factory()
        try:
            try:
                if timeout is not None:
                    self._apply_timeout(session, timeout)
                yield SqlLedgerTransaction(session)
                session.commit()
            except DBAPIError as e:
                session.rollback()
                translated = translate_error(e)
                if translated is None:
                    raise
                raise translated from e
            except BaseException:
                session.rollback()
                raise
        finally:
            session.close()

    def ping(self):
        try:
            with self.session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
