"""Authentication primitives: access tokens and password hashes."""

from simple_bank.security.password import check_password, hash_password
from simple_bank.security.token import TokenAuthority, TokenPayload

__all__ = ["TokenAuthority", "TokenPayload", "hash_password", "check_password"]
