# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints (mounted under /api):
#   POST /auth/register         - Create a viewer account, get tokens
#   POST /auth/login            - Get tokens
#   POST /auth/refresh-token    - New access token from a refresh token
#   POST /auth/logout           - Client discards tokens (no server state)
#   GET  /auth/profile          - Current user
#   PUT  /auth/profile          - Update own name/email/bio/avatar
#   PUT  /auth/change-password  - Change own password
#
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from folio.api.schemas import (
    AccessTokenResponse,
    AuthResponse,
    LoginRequest,
    Message,
    PasswordChange,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    UserOut,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.jwt import REFRESH, TokenExpiredError, TokenInvalidError, TokenService
from folio.auth.policies import get_token_service, require_auth
from folio.core.errors import Unauthorized
from folio.core.models import Role, User
from folio.services.users import UserService
from folio.storage.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(message: str, user: User, tokens: TokenService) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserOut.model_validate(user),
        tokens=tokens.create_token_pair(user),
    )


# =============================================================================
# Public Endpoints
# =============================================================================


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    data: RegisterRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Create a new account.

    Self-registered accounts are always viewers; elevated roles are granted
    by an admin.
    """
    user = UserService(session).create(
        name=data.name,
        email=data.email,
        password=data.password,
        role=Role.VIEWER,
    )
    return _auth_response("User registered successfully", user, tokens)


@router.post("/login", response_model=AuthResponse)
def login(
    data: LoginRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    user = UserService(session).authenticate(data.email, data.password)
    logger.info(f"User {user.id} logged in")
    return _auth_response("Login successful", user, tokens)


@router.post("/refresh-token", response_model=AccessTokenResponse)
def refresh_token(
    data: RefreshRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Use a refresh token to get a new access token.

    The refresh token itself is not rotated.
    """
    try:
        claims = tokens.verify(data.refresh_token, expected_type=REFRESH)
    except TokenExpiredError:
        raise Unauthorized("Refresh token expired")
    except TokenInvalidError as e:
        logger.debug(f"Rejected refresh token: {e}")
        raise Unauthorized("Invalid refresh token")

    user = session.get(User, claims["id"])
    if user is None or not user.is_active:
        raise Unauthorized("Invalid refresh token")

    return AccessTokenResponse(access_token=tokens.create_access_token(user))


# =============================================================================
# Authenticated Endpoints
# =============================================================================


@router.post("/logout", response_model=Message)
def logout(ctx: AuthContext = Depends(require_auth)):
    """
    Logout (client should discard tokens).

    Tokens are stateless; they stay valid until they expire.
    """
    logger.info(f"User {ctx.user_id} logged out")
    return Message(message="Logged out successfully")


@router.get("/profile", response_model=UserOut)
def get_profile(ctx: AuthContext = Depends(require_auth)):
    return UserOut.model_validate(ctx.user)


@router.put("/profile", response_model=UserOut)
def update_profile(
    data: ProfileUpdate,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    user = UserService(session).update(ctx.user, to_record(data, partial=True))
    return UserOut.model_validate(user)


@router.put("/change-password", response_model=Message)
def change_password(
    data: PasswordChange,
    ctx: AuthContext = Depends(require_auth),
    session: Session = Depends(get_session),
):
    UserService(session).change_password(ctx.user, data.current_password, data.new_password)
    return Message(message="Password changed successfully")
