"""
Token authority — issues and verifies access tokens.

Tokens are HS256-signed JWTs carrying a unique id (jti), the
subject (a username), and the issue and expiry times. They are
self-verifying and never stored.

The signing key is handed to the authority when it is built and
kept for the authority's lifetime. There is no key rotation.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from simple_bank.errors import ExpiredToken, InvalidToken


MIN_SECRET_KEY_LENGTH = 32
REQUIRED_CLAIMS = ["jti", "sub", "iat", "exp"]


class TokenPayload(BaseModel):
    """Claims carried by an access token."""
    id: uuid.UUID
    subject: str
    issued_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}


class TokenAuthority:

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        if len(secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(
                f"invalid key size: must be at least "
                f"{MIN_SECRET_KEY_LENGTH} characters"
            )
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue_token(self, subject: str, duration: timedelta) -> tuple[str, TokenPayload]:
        """
        Create a signed token for subject, valid for duration.

        Returns the serialized token together with its payload.
        Times are truncated to whole seconds, which is the
        resolution the token itself carries.
        """
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        payload = TokenPayload(
            id=uuid.uuid4(),
            subject=subject,
            issued_at=issued_at,
            expires_at=issued_at + duration,
        )
        claims = {
            "jti": str(payload.id),
            "sub": payload.subject,
            "iat": payload.issued_at,
            "exp": payload.expires_at,
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return token, payload

    def verify_token(self, token: str) -> TokenPayload:
        """
        Check a token and return its payload.

        The token is decoded, then its signature is checked, then
        its expiry. A malformed or forged token raises InvalidToken;
        a genuine token past its expiry raises ExpiredToken.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredToken("token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidToken("token is invalid") from e

        try:
            return TokenPayload(
                id=claims["jti"],
                subject=claims["sub"],
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        except (TypeError, ValueError) as e:
            raise InvalidToken("token is invalid") from e
