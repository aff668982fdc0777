"""
Typed errors raised by the banking core.

Every failure surfaces as one of these. Each family carries the
HTTP status the API layer answers with, so routers can translate
an error without knowing every concrete class.
"""


class BankingError(Exception):
    """Base class for all banking errors."""

    status_code = 500


# --- Validation ---

class ValidationError(BankingError):
    """Input rejected before any state is touched."""

    status_code = 400


class InvalidAmount(ValidationError):
    pass


class InvalidCurrency(ValidationError):
    pass


class InvalidPagination(ValidationError):
    pass


# --- Not found ---

class NotFoundError(BankingError):
    status_code = 404


class AccountNotFound(NotFoundError):

    def __init__(self, account_id: int):
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class UserNotFound(NotFoundError):

    def __init__(self, username: str):
        super().__init__(f"User '{username}' not found")
        self.username = username


class TransferNotFound(NotFoundError):

    def __init__(self, transfer_id: int):
        super().__init__(f"Transfer {transfer_id} not found")
        self.transfer_id = transfer_id


# --- Conflicts ---

class ConflictError(BankingError):
    """A constraint of the ledger would be violated."""

    status_code = 409


class DuplicateAccount(ConflictError):
    status_code = 403


class DuplicateUser(ConflictError):
    status_code = 403


class InvalidOwner(ConflictError):
    status_code = 403


class AccountInUse(ConflictError):
    """Account still holds money or has ledger history."""


class CurrencyMismatch(ConflictError):
    status_code = 400


class InsufficientFunds(ConflictError):
    status_code = 400

    def __init__(self, account_id: int, balance: int, amount: int):
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"balance={balance}, requested={amount}"
        )
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class SelfTransferRejected(ConflictError):
    status_code = 400

    def __init__(self, account_id: int):
        super().__init__(f"Cannot transfer from account {account_id} to itself")
        self.account_id = account_id


# --- Authentication / authorization ---

class AuthenticationError(BankingError):
    status_code = 401


class InvalidToken(AuthenticationError):
    pass


class ExpiredToken(AuthenticationError):
    pass


class InvalidCredentials(AuthenticationError):
    pass


class AuthorizationError(BankingError):
    """Authenticated caller does not own the resource."""

    status_code = 401


# --- Transient store failures (safe to retry with backoff) ---

class TransientStoreError(BankingError):
    status_code = 503


class StoreUnavailable(TransientStoreError):
    pass


class TransactionConflict(TransientStoreError):
    """Serialization failure or deadlock reported by the store."""

    status_code = 409


class StoreTimeout(TransientStoreError):
    """A lock or statement did not complete within the transaction bound."""
