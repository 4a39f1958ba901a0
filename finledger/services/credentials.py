"""
Credential Store

Registration, password verification and password change.
Plaintext passwords are hashed immediately and never stored or logged.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from finledger import crud
from finledger.core.exceptions import (
    DuplicateUsername,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    StorageFailure,
)
from finledger.core.security import dummy_verify_password, get_password_hash, verify_password

logger = logging.getLogger(__name__)


class CredentialStore:
    """User credentials backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def register(self, username: str, password: str) -> str:
        """Create a user and return its identifier"""
        if not username or not username.strip():
            raise InvalidInput("Username is required")
        if not password:
            raise InvalidInput("Password is required")

        logger.info(f"Registering user: {username}")
        if self._get_by_username(username) is not None:
            logger.warning(f"Registration failed: username {username} already exists")
            raise DuplicateUsername(f"Username '{username}' is already taken")

        password_hash = get_password_hash(password)
        try:
            user = crud.user.create(self.db, username=username, password_hash=password_hash)
            user_id = user.id
            self.db.commit()
        except IntegrityError as e:
            # lost a race against a concurrent registration
            self.db.rollback()
            logger.warning(f"Registration failed: username {username} already exists")
            raise DuplicateUsername(f"Username '{username}' is already taken") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during registration of {username}: {e}", exc_info=True)
            raise StorageFailure("Could not save user") from e

        logger.info(f"User registered: {username} (id={user_id})")
        return user_id

    def verify_credentials(self, username: str, password: str) -> str:
        """Return the user id if username and password match"""
        user = self._get_by_username(username)
        if user is None:
            # same hashing cost as a wrong password
            dummy_verify_password()
            logger.warning(f"Login failed: unknown username {username}")
            raise NotFound("User not found")

        if not verify_password(password or "", user.password_hash):
            logger.warning(f"Login failed: invalid credentials for {username}")
            raise InvalidCredentials("Invalid credentials")

        return user.id

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        """Replace the password hash after re-verifying the old password"""
        try:
            user = crud.user.get(self.db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching user {user_id}: {e}", exc_info=True)
            raise StorageFailure("Could not load user") from e
        if user is None:
            raise NotFound("User not found")

        if not verify_password(old_password or "", user.password_hash):
            logger.warning(f"Password change rejected: invalid old password for user {user_id}")
            raise InvalidCredentials("Invalid old password")
        if not new_password:
            raise InvalidInput("New password is required")

        try:
            crud.user.update_password(self.db, user, get_password_hash(new_password))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error updating password for user {user_id}: {e}", exc_info=True)
            raise StorageFailure("Could not update password") from e

        logger.info(f"Password changed for user {user_id}")

    def _get_by_username(self, username: str):
        try:
            return crud.user.get_by_username(self.db, username)
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching user {username}: {e}", exc_info=True)
            raise StorageFailure("Could not load user") from e
