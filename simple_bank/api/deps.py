"""
Shared dependencies for the API layer.

The store and the token authority are built once per process
from settings. Tests replace them through
app.dependency_overrides.
"""

import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from simple_bank.config import get_settings
from simple_bank.errors import AuthenticationError, BankingError
from simple_bank.security.token import TokenAuthority, TokenPayload
from simple_bank.store.base import LedgerStore
from simple_bank.store.sql import SqlLedgerStore

logger = logging.getLogger(__name__)

AUTHORIZATION_TYPE_BEARER = "bearer"


@lru_cache()
def get_store() -> LedgerStore:
    return SqlLedgerStore.from_url(get_settings().DATABASE_URL)


@lru_cache()
def get_token_authority() -> TokenAuthority:
    return TokenAuthority(get_settings().TOKEN_SYMMETRIC_KEY)


def http_error(error: BankingError) -> HTTPException:
    """Translate a banking error into the matching HTTP error."""
    return HTTPException(status_code=error.status_code, detail=str(error))


def get_current_payload(
    authorization: str | None = Header(default=None),
    authority: TokenAuthority = Depends(get_token_authority),
) -> TokenPayload:
    """
    Authenticate the caller from the Authorization header.

    Expects "Bearer <token>". A missing header, a malformed
    header, an unsupported scheme, or a token that fails
    verification all answer 401.
    """
    if not authorization:
        raise HTTPException(
            status_code=401, detail="authorization header is not provided"
        )

    fields = authorization.split()
    if len(fields) < 2:
        raise HTTPException(
            status_code=401, detail="invalid authorization header format"
        )

    authorization_type = fields[0].lower()
    if authorization_type != AUTHORIZATION_TYPE_BEARER:
        raise HTTPException(
            status_code=401,
            detail=f"unsupported authorization type {authorization_type}",
        )

    try:
        return authority.verify_token(fields[1])
    except AuthenticationError as e:
        logger.info("Rejected access token: %s", e)
        raise http_error(e)
