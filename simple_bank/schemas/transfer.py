"""
Pydantic schemas for transfers.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from simple_bank.schemas.account import AccountResponse, EntryResponse


class TransferRequest(BaseModel):
    from_account_id: int = Field(ge=1)
    to_account_id: int = Field(ge=1)
    amount: int = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)


class TransferResponse(BaseModel):
    id: int
    from_account_id: int
    to_account_id: int
    amount: int
    created_at: datetime

    model_config = {"from_attributes": True}


class TransferResultResponse(BaseModel):
    """Everything a completed transfer produced."""
    transfer: TransferResponse
    from_entry: EntryResponse
    to_entry: EntryResponse
    from_account: AccountResponse
    to_account: AccountResponse
