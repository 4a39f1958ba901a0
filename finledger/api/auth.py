"""
API endpoints for registration, login and password change

Endpoints:
1. POST /auth/register - create a user
2. POST /auth/login - exchange username/password for an access token
3. POST /auth/change-password - replace the current user's password

Login failures are reported the same way whether the username exists
or not, so the endpoint cannot be used to enumerate usernames.
"""

import logging

from fastapi import APIRouter, Depends, status

from finledger.auth.dependencies import (
    get_credential_store,
    get_current_user_id,
    get_token_service,
)
from finledger.core.exceptions import InvalidCredentials, NotFound
from finledger.schemas.auth import (
    AuthRequest,
    ChangePasswordRequest,
    MessageResponse,
    RegisterResponse,
    TokenResponse,
)
from finledger.services import CredentialStore, TokenService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: AuthRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Register a new user with a username and password
    """
    uid = store.register(body.username, body.password)
    return RegisterResponse(uid=uid)


@router.post("/login", response_model=TokenResponse)
def login(
    body: AuthRequest,
    store: CredentialStore = Depends(get_credential_store),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Authenticate user and return a JWT
    """
    try:
        uid = store.verify_credentials(body.username, body.password)
    except (NotFound, InvalidCredentials):
        raise InvalidCredentials("Invalid username or password")

    token = tokens.issue(uid)
    logger.info(f"User logged in: {body.username}")
    return TokenResponse(token=token, uid=uid, expires_at=tokens.expires_at(token))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
):
    """
    Update the user's password after verifying the old password

    Requires: Bearer token in Authorization header
    """
    store.change_password(user_id, body.old_password, body.new_password)
    return MessageResponse(message="Password updated successfully")
