"""
User Profile service
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finledger import crud
from finledger.core.exceptions import InvalidInput, NotFound, StorageFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserView:
    id: str
    username: str
    first_name: str
    second_name: str
    registered_at: datetime
    income_balance: Decimal
    expense_balance: Decimal


class ProfileService:
    """Names and read-only view of a user"""

    def __init__(self, db: Session):
        self.db = db

    def update_names(self, user_id: str, first_name: str, second_name: str) -> None:
        if not first_name or not first_name.strip() or not second_name or not second_name.strip():
            logger.warning(f"Name update rejected for user {user_id}: empty field")
            raise InvalidInput("Both first_name and second_name are required")

        try:
            user = crud.user.get(self.db, user_id)
            if user is None:
                raise NotFound("User not found")
            crud.user.update_names(self.db, user, first_name.strip(), second_name.strip())
            self.db.commit()
        except NotFound:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update names for user {user_id}: {e}", exc_info=True)
            raise StorageFailure("Failed to update user names") from e

        logger.info(f"Names updated for user {user_id}")

    def get_profile(self, user_id: str) -> UserView:
        try:
            user = crud.user.get(self.db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch user info for {user_id}: {e}", exc_info=True)
            raise StorageFailure("Failed to fetch user info") from e

        if user is None:
            logger.warning(f"Token subject {user_id} does not resolve to a user")
            raise NotFound("User not found")

        return UserView(
            id=user.id,
            username=user.username,
            first_name=user.first_name,
            second_name=user.second_name,
            registered_at=user.registered_at,
            income_balance=user.income_balance,
            expense_balance=user.expense_balance,
        )
