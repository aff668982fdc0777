"""
User service — registration and password checks.
"""

from simple_bank.errors import InvalidCredentials, UserNotFound
from simple_bank.models import User
from simple_bank.security.password import check_password, hash_password
from simple_bank.store.base import LedgerStore


class UserService:

    def __init__(self, store: LedgerStore):
        self.store = store

    def create_user(
        self, username: str, password: str, full_name: str, email: str
    ) -> User:
        """Register a user. Raises DuplicateUser on a username or email clash."""
        hashed_password = hash_password(password)
        with self.store.transaction() as tx:
            user = tx.create_user(username, hashed_password, full_name, email)
        return user

    def get_user(self, username: str) -> User:
        with self.store.transaction() as tx:
            user = tx.get_user(username)
        if user is None:
            raise UserNotFound(username)
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.get_user(username)
        if not check_password(password, user.hashed_password):
            raise InvalidCredentials("incorrect username or password")
        return user
