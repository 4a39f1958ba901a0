"""
FastAPI dependencies for bearer authentication and service wiring

Core functions:
1. get_current_user_id - validates the bearer token and returns the user id
2. get_* service providers - build request-scoped services around one session

Long-lived collaborators (token service, auth gate, advice client) are
created by the application factory and read from ``app.state``.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from finledger.db.session import get_db
from finledger.services import (
    AdviceService,
    AuthGate,
    CredentialStore,
    LedgerEngine,
    ProfileService,
    TokenService,
)

logger = logging.getLogger(__name__)


# Security scheme for Bearer tokens; the gate reports missing credentials
security = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: AuthGate = Depends(get_auth_gate),
) -> str:
    """
    FastAPI dependency to get the authenticated user id

    Usage:
    @router.get("/protected")
    def protected_endpoint(user_id: str = Depends(get_current_user_id)):
        ...
    """
    return gate.authenticate(credentials.credentials if credentials else None)


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_ledger(db: Session = Depends(get_db)) -> LedgerEngine:
    return LedgerEngine(db)


def get_profile_service(db: Session = Depends(get_db)) -> ProfileService:
    return ProfileService(db)


def get_advice_service(request: Request, db: Session = Depends(get_db)) -> AdviceService:
    return AdviceService(db, request.app.state.advice_client)
