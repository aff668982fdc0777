"""
Transfer API endpoints.

The API layer checks what the transfer service leaves to its
caller: the source account belongs to the caller, and both
accounts are in the transfer's currency. The service then
performs the transfer atomically.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from simple_bank.api.deps import get_current_payload, get_store, http_error
from simple_bank.config import get_settings
from simple_bank.errors import BankingError, CurrencyMismatch, TransientStoreError
from simple_bank.models import Account
from simple_bank.schemas.account import AccountResponse, EntryResponse
from simple_bank.schemas.transfer import (
    TransferRequest,
    TransferResponse,
    TransferResultResponse,
)
from simple_bank.security.token import TokenPayload
from simple_bank.services.account_service import AccountService
from simple_bank.services.transfer_service import TransferService
from simple_bank.store.base import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transfers", tags=["Transfers"])


def valid_account(service: AccountService, account_id: int, currency: str) -> Account:
    """Load an account and check it holds the given currency."""
    try:
        account = service.get_account(account_id)
        if account.currency != currency:
            raise CurrencyMismatch(
                f"account [{account.id}] currency mismatch: "
                f"{account.currency} vs {currency}"
            )
    except BankingError as e:
        raise http_error(e)
    return account


@router.post("", response_model=TransferResultResponse, status_code=201)
def create_transfer(
    request: TransferRequest,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """Transfer money from one of the caller's accounts to any account."""
    account_service = AccountService(store)

    from_account = valid_account(
        account_service, request.from_account_id, request.currency
    )
    if from_account.owner != payload.subject:
        raise HTTPException(
            status_code=401,
            detail="from account doesn't belong to the authenticated user",
        )
    valid_account(account_service, request.to_account_id, request.currency)

    service = TransferService(store, timeout=get_settings().TRANSFER_TIMEOUT_SECONDS)
    try:
        result = service.execute_transfer(
            request.from_account_id, request.to_account_id, request.amount
        )
    except TransientStoreError as e:
        logger.warning("Transfer by %s failed, retryable: %s", payload.subject, e)
        raise http_error(e)
    except BankingError as e:
        raise http_error(e)

    logger.info(
        "Transfer %s: %s -> %s amount=%s",
        result.transfer.id,
        request.from_account_id,
        request.to_account_id,
        request.amount,
        extra={
            "username": payload.subject,
            "action": "transfer",
            "resource": f"transfer:{result.transfer.id}",
        },
    )
    return TransferResultResponse(
        transfer=TransferResponse.model_validate(result.transfer),
        from_entry=EntryResponse.model_validate(result.from_entry),
        to_entry=EntryResponse.model_validate(result.to_entry),
        from_account=AccountResponse.model_validate(result.from_account),
        to_account=AccountResponse.model_validate(result.to_account),
    )


@router.get("/{transfer_id}", response_model=TransferResponse)
def get_transfer(
    transfer_id: int,
    store: LedgerStore = Depends(get_store),
    payload: TokenPayload = Depends(get_current_payload),
):
    """Get a transfer the caller sent or received."""
    account_service = AccountService(store)
    try:
        transfer = TransferService(store).get_transfer(transfer_id)
        owners = {
            account_service.get_account(transfer.from_account_id).owner,
            account_service.get_account(transfer.to_account_id).owner,
        }
    except BankingError as e:
        raise http_error(e)

    if payload.subject not in owners:
        raise HTTPException(
            status_code=401,
            detail="transfer doesn't involve the authenticated user",
        )
    return transfer
