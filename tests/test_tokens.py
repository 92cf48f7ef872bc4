"""
Tests for token issuing/verification and password hashing.
"""

from datetime import timedelta
from types import SimpleNamespace

import jwt as pyjwt
import pytest

from folio.auth.jwt import (
    ACCESS,
    REFRESH,
    TokenExpiredError,
    TokenInvalidError,
    TokenService,
    hash_password,
    verify_password,
)

SECRET = "unit-test-secret-key-with-enough-bytes"


@pytest.fixture
def tokens():
    return TokenService(secret_key=SECRET)


@pytest.fixture
def user():
    return SimpleNamespace(id=7, email="jane@folio.dev", role="editor")


# =============================================================================
# Passwords
# =============================================================================


class TestPasswords:
    def test_hash_roundtrip(self):
        hashed = hash_password("hunter22")

        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed)
        assert not verify_password("hunter23", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_malformed_hash_is_rejected(self):
        assert not verify_password("anything", "not-a-hash")


# =============================================================================
# TokenService
# =============================================================================


class TestTokenService:
    def test_access_token_claims(self, tokens, user):
        claims = tokens.verify(tokens.create_access_token(user))

        assert claims["id"] == 7
        assert claims["email"] == "jane@folio.dev"
        assert claims["role"] == "editor"
        assert claims["type"] == ACCESS
        assert claims["exp"] > claims["iat"]

    def test_refresh_token_carries_only_identity(self, tokens, user):
        claims = tokens.verify(tokens.create_refresh_token(user), expected_type=REFRESH)

        assert claims["id"] == 7
        assert "email" not in claims
        assert "role" not in claims

    def test_token_pair(self, tokens, user):
        pair = tokens.create_token_pair(user)

        assert pair.token_type == "bearer"
        assert pair.expires_in == int(timedelta(days=7).total_seconds())
        assert tokens.verify(pair.access_token, expected_type=ACCESS)["id"] == 7
        assert tokens.verify(pair.refresh_token, expected_type=REFRESH)["id"] == 7

    def test_token_pair_serializes_camel_case(self, tokens, user):
        body = tokens.create_token_pair(user).model_dump(by_alias=True)

        assert set(body) == {"accessToken", "refreshToken", "tokenType", "expiresIn"}

    def test_expired_token(self, tokens):
        token = tokens.issue({"id": 1}, timedelta(seconds=-5))

        with pytest.raises(TokenExpiredError):
            tokens.verify(token)

    def test_wrong_secret(self, tokens, user):
        other = TokenService(secret_key="a-completely-different-secret-key")
        token = other.create_access_token(user)

        with pytest.raises(TokenInvalidError):
            tokens.verify(token)

    def test_garbage_token(self, tokens):
        with pytest.raises(TokenInvalidError):
            tokens.verify("not.a.jwt")

    def test_token_without_id(self, tokens):
        token = tokens.issue({"email": "x@folio.dev"}, timedelta(minutes=5))

        with pytest.raises(TokenInvalidError):
            tokens.verify(token)

    def test_refresh_token_is_not_an_access_token(self, tokens, user):
        with pytest.raises(TokenInvalidError):
            tokens.verify(tokens.create_refresh_token(user), expected_type=ACCESS)

    def test_access_token_is_not_a_refresh_token(self, tokens, user):
        with pytest.raises(TokenInvalidError):
            tokens.verify(tokens.create_access_token(user), expected_type=REFRESH)

    def test_untyped_token_counts_as_access(self, tokens):
        token = pyjwt.encode({"id": 3}, SECRET, algorithm="HS256")

        assert tokens.verify(token, expected_type=ACCESS)["id"] == 3
