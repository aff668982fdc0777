"""
Account API endpoints.

Every endpoint requires an access token. Callers may only see
and change accounts they own; the owner of a new account is
always the token's subject.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from simple_bank.api.deps import get_current_payload, get_store, http_error
from simple_bank.errors import BankingError
from simple_bank.models import Account
from simple_bank.schemas.account import (
    AccountResponse,
    CreateAccountRequest,
    EntryResponse,
    MessageResponse,
)
from simple_bank.security.token import TokenPayload
from simple_bank.services.account_service import AccountService
from simple_bank.store.base import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def get_owned_account(
    service: AccountService, account_id: int, payload: TokenPayload
) -> Account:
    """Load an account and make sure the caller owns it."""
    try:
        account = service.get_account(account_id)
    except BankingError as e:
        raise http_error(e)

    if account.owner != payload.subject:
        logger.warning(
            "User %s denied access to account %s", payload.subject, account_id
        )
        raise HTTPException(
            status_code=401,
            detail="account doesn't belong to the authenticated user",
        )
    return account


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: CreateAccountRequest,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """Open a new account with a zero balance."""
    service = AccountService(store)
    try:
        account = service.create_account(payload.subject, request.currency)
    except BankingError as e:
        raise http_error(e)

    logger.info(
        "User %s opened account %s", payload.subject, account.id,
        extra={
            "username": payload.subject,
            "action": "open_account",
            "resource": f"account:{account.id}",
        },
    )
    return account


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """Get account details."""
    return get_owned_account(AccountService(store), account_id, payload)


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    page_id: int,
    page_size: int,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """
    List the caller's accounts, one page at a time.

    page_id starts at 1. page_size must be between 5 and 10.
    """
    service = AccountService(store)
    try:
        return service.list_accounts(
            payload.subject,
            offset=(page_id - 1) * page_size,
            limit=page_size,
        )
    except BankingError as e:
        raise http_error(e)


@router.delete("/{account_id}", response_model=MessageResponse)
def delete_account(
    account_id: int,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """
    Delete an account.

    Only empty accounts without ledger history can be deleted.
    """
    service = AccountService(store)
    get_owned_account(service, account_id, payload)
    try:
        service.delete_account(account_id)
    except BankingError as e:
        raise http_error(e)

    logger.info(
        "User %s deleted account %s", payload.subject, account_id,
        extra={
            "username": payload.subject,
            "action": "delete_account",
            "resource": f"account:{account_id}",
        },
    )
    return MessageResponse(message="Account deleted successfully")


@router.get("/{account_id}/entries", response_model=list[EntryResponse])
def list_account_entries(
    account_id: int,
    page_id: int = 1,
    page_size: int = 10,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """Get an account's ledger entries, newest first."""
    service = AccountService(store)
    get_owned_account(service, account_id, payload)
    try:
        return service.list_entries(
            account_id,
            offset=(page_id - 1) * page_size,
            limit=page_size,
        )
    except BankingError as e:
        raise http_error(e)
