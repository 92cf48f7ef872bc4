# =============================================================================
# JWT Authentication Implementation
# =============================================================================
#
# This module provides:
#   - Token creation (access + refresh)
#   - Token validation
#   - Password hashing
#
# Tokens are stateless. There is no revocation list, so logging out cannot
# invalidate a token before its natural expiry.
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Any

import jwt
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from folio.config import Settings, get_settings
from folio.core.utils import utc_now

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


# =============================================================================
# Models
# =============================================================================


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires


# =============================================================================
# Password Hashing
# =============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using PBKDF2-SHA256.

    Returns: salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations=100_000,
    )
    return f"{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        salt, stored_hash = password_hash.split(":")
        hash_bytes = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt.encode("utf-8"),
            iterations=100_000,
        )
        return secrets.compare_digest(hash_bytes.hex(), stored_hash)
    except (ValueError, AttributeError):
        return False


# =============================================================================
# Token Errors
# =============================================================================


class TokenError(Exception):
    """Base exception for token errors."""
    pass


class TokenExpiredError(TokenError):
    """Token has expired."""
    pass


class TokenInvalidError(TokenError):
    """Token is invalid or malformed."""
    pass


# =============================================================================
# Token Service
# =============================================================================


class TokenService:
    """
    Issues and verifies signed, expiring bearer tokens.

    Access tokens carry {id, email, role, type="access"}.
    Refresh tokens carry {id, type="refresh"} and live longer.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(days=7),
        refresh_ttl: timedelta = timedelta(days=30),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TokenService:
        settings = settings or get_settings()
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.jwt_access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.jwt_refresh_token_expire_days),
        )

    # -------------------------------------------------------------------------
    # Issue
    # -------------------------------------------------------------------------

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Sign `claims` into a token that expires after `ttl`."""
        now = utc_now()
        payload = {
            **claims,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, user) -> str:
        return self.issue(
            {"id": user.id, "email": user.email, "role": user.role, "type": ACCESS},
            self.access_ttl,
        )

    def create_refresh_token(self, user) -> str:
        return self.issue({"id": user.id, "type": REFRESH}, self.refresh_ttl)

    def create_token_pair(self, user) -> TokenPair:
        """Create both access and refresh tokens."""
        return TokenPair(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
            expires_in=int(self.access_ttl.total_seconds()),
        )

    # -------------------------------------------------------------------------
    # Verify
    # -------------------------------------------------------------------------

    def verify(self, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """
        Decode and validate a token.

        Args:
            token: The JWT string
            expected_type: "access" or "refresh"; None accepts either

        Returns:
            The token claims

        Raises:
            TokenExpiredError: Token has expired
            TokenInvalidError: Bad signature, malformed, wrong type, no id
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        if "id" not in claims:
            raise TokenInvalidError("Token has no subject")

        if expected_type is not None and claims.get("type", ACCESS) != expected_type:
            raise TokenInvalidError(f"Expected {expected_type} token, got {claims.get('type')}")

        return claims
