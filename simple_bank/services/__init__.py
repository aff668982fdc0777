"""Business logic services."""

from simple_bank.services.account_service import AccountService
from simple_bank.services.transfer_service import TransferService, TransferResult
from simple_bank.services.user_service import UserService

__all__ = ["AccountService", "TransferService", "TransferResult", "UserService"]
