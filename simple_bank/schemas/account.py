"""
Pydantic schemas for account operations.

Currency codes are only checked for shape here. Whether a code
is supported is decided by the account service, which answers
with InvalidCurrency.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CreateAccountRequest(BaseModel):
    """Request to open an account. The owner comes from the access token."""
    currency: str = Field(min_length=3, max_length=3)


class AccountResponse(BaseModel):
    id: int
    owner: str
    currency: str
    balance: int
    created_at: datetime

    model_config = {"from_attributes": True}


class EntryResponse(BaseModel):
    id: int
    account_id: int
    amount: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str
