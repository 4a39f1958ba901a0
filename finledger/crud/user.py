"""
CRUD operations for User model

Nothing here commits; the calling service owns the transaction.
Balance columns are not writable from this module.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from finledger.models.user import User


class CRUDUser:
    """CRUD operations for User"""

    def get(self, db: Session, user_id: str) -> Optional[User]:
        """Get user by identifier"""
        return db.get(User, user_id)

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        """Get user by exact (case-sensitive) username"""
        return db.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def create(self, db: Session, username: str, password_hash: str) -> User:
        """Insert a new user with zero balances"""
        user = User(
            username=username,
            password_hash=password_hash,
            first_name="",
            second_name="",
            income_balance=Decimal("0"),
            expense_balance=Decimal("0"),
        )
        db.add(user)
        db.flush()
        return user

    def update_password(self, db: Session, db_obj: User, password_hash: str) -> User:
        db_obj.password_hash = password_hash
        db.add(db_obj)
        db.flush()
        return db_obj

    def update_names(self, db: Session, db_obj: User, first_name: str, second_name: str) -> User:
        db_obj.first_name = first_name
        db_obj.second_name = second_name
        db.add(db_obj)
        db.flush()
        return db_obj


user = CRUDUser()
