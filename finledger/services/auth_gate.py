"""
Session/Auth Gate

Maps an inbound bearer token to a verified user id. Stateless.
"""

import logging
from typing import Optional

from finledger.core.exceptions import TokenExpired, TokenMalformed, Unauthenticated
from finledger.services.tokens import TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


class AuthGate:
    """Turn raw credentials into a user id or Unauthenticated"""

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    def authenticate(self, credentials: Optional[str]) -> str:
        """
        Accepts either the bare token or an ``Authorization`` header
        value of the form ``Bearer <token>``.
        """
        token = (credentials or "").strip()
        if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
            token = token[len(BEARER_PREFIX):].strip()

        if not token:
            raise Unauthenticated("Missing or invalid Authorization header")

        try:
            user_id = self.token_service.verify(token)
        except TokenExpired:
            raise Unauthenticated("Token has expired")
        except TokenMalformed as e:
            logger.warning(f"Rejected token: {e.message}")
            raise Unauthenticated("Invalid token")

        logger.debug(f"User authenticated: {user_id}")
        return user_id
