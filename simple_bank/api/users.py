"""
User registration and login endpoints.

These are the only endpoints reachable without an access token.
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends

from simple_bank.api.deps import get_store, get_token_authority, http_error
from simple_bank.config import get_settings
from simple_bank.errors import BankingError
from simple_bank.schemas.user import (
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    UserResponse,
)
from simple_bank.security.token import TokenAuthority
from simple_bank.services.user_service import UserService
from simple_bank.store.base import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    request: CreateUserRequest,
    store: LedgerStore = Depends(get_store),
):
    """Register a new user."""
    service = UserService(store)
    try:
        user = service.create_user(
            username=request.username,
            password=request.password,
            full_name=request.full_name,
            email=request.email,
        )
    except BankingError as e:
        raise http_error(e)

    logger.info(
        "Created user %s", user.username,
        extra={"username": user.username, "action": "create_user"},
    )
    return user


@router.post("/login", response_model=LoginResponse)
def login_user(
    request: LoginRequest,
    store: LedgerStore = Depends(get_store),
    authority: TokenAuthority = Depends(get_token_authority),
):
    """
    Check a username and password and issue an access token.

    The token is valid for ACCESS_TOKEN_DURATION_MINUTES.
    """
    service = UserService(store)
    try:
        user = service.authenticate(request.username, request.password)
    except BankingError as e:
        logger.info("Failed login for %s: %s", request.username, e)
        raise http_error(e)

    duration = timedelta(minutes=get_settings().ACCESS_TOKEN_DURATION_MINUTES)
    access_token, payload = authority.issue_token(user.username, duration)

    return LoginResponse(
        access_token=access_token,
        access_token_expires_at=payload.expires_at,
        user=UserResponse.model_validate(user),
    )
