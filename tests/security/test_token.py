"""
Tests for issuing and verifying access tokens.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from simple_bank.errors import ExpiredToken, InvalidToken
from simple_bank.security.token import TokenAuthority

OTHER_KEY = "another-symmetric-key-abcdefghijklmnop"


class TestIssueAndVerify:

    def test_round_trip(self, token_authority):
        token, issued = token_authority.issue_token("alice", timedelta(minutes=1))

        payload = token_authority.verify_token(token)

        assert payload.subject == "alice"
        assert payload.id == issued.id
        assert payload.issued_at == issued.issued_at
        assert payload.expires_at == issued.expires_at

    def test_expiry_follows_duration(self, token_authority):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        _, payload = token_authority.issue_token("alice", timedelta(minutes=15))

        assert payload.expires_at - payload.issued_at == timedelta(minutes=15)
        assert payload.issued_at >= before
        assert payload.issued_at.microsecond == 0

    def test_token_ids_are_unique(self, token_authority):
        _, first = token_authority.issue_token("alice", timedelta(minutes=1))
        _, second = token_authority.issue_token("alice", timedelta(minutes=1))

        assert first.id != second.id


class TestRejectedTokens:

    def test_expired_token(self, token_authority):
        token, _ = token_authority.issue_token("alice", -timedelta(minutes=1))

        with pytest.raises(ExpiredToken):
            token_authority.verify_token(token)

    def test_expired_is_not_reported_as_invalid(self, token_authority):
        token, _ = token_authority.issue_token("alice", -timedelta(minutes=1))

        with pytest.raises(ExpiredToken) as exc_info:
            token_authority.verify_token(token)
        assert not isinstance(exc_info.value, InvalidToken)

    def test_signed_with_another_key(self, token_authority):
        token, _ = TokenAuthority(OTHER_KEY).issue_token("alice", timedelta(minutes=1))

        with pytest.raises(InvalidToken):
            token_authority.verify_token(token)

    def test_tampered_payload(self, token_authority):
        token, _ = token_authority.issue_token("alice", timedelta(minutes=1))
        header, body, signature = token.split(".")

        claims = json.loads(base64.urlsafe_b64decode(body + "=" * (-len(body) % 4)))
        claims["sub"] = "mallory"
        forged = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()

        with pytest.raises(InvalidToken):
            token_authority.verify_token(f"{header}.{forged}.{signature}")

    def test_unsigned_token(self, token_authority):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"jti": "x", "sub": "alice", "iat": now, "exp": now + timedelta(minutes=1)},
            None,
            algorithm="none",
        )

        with pytest.raises(InvalidToken):
            token_authority.verify_token(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token(self, token_authority, token):
        with pytest.raises(InvalidToken):
            token_authority.verify_token(token)

    def test_missing_claim(self, token_authority):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "alice", "iat": now, "exp": now + timedelta(minutes=1)},
            "test-only-symmetric-key-0123456789",
            algorithm="HS256",
        )

        with pytest.raises(InvalidToken):
            token_authority.verify_token(token)

    def test_token_id_must_be_a_uuid(self, token_authority):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"jti": "not-a-uuid", "sub": "alice", "iat": now, "exp": now + timedelta(minutes=1)},
            "test-only-symmetric-key-0123456789",
            algorithm="HS256",
        )

        with pytest.raises(InvalidToken):
            token_authority.verify_token(token)


def test_short_key_rejected():
    with pytest.raises(ValueError, match="at least 32"):
        TokenAuthority("too-short")
