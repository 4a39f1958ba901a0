"""
User model
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, TYPE_CHECKING

from sqlalchemy import String, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finledger.db.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from finledger.models.entry import Income, Expense


def new_user_id() -> str:
    return str(uuid.uuid4())


class User(Base, TimestampMixin):
    """
    User model

    Balances are running totals of the user's entries and are written
    only by the ledger engine.
    """
    __tablename__ = "users"

    # Opaque identifier, never reused
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_user_id)

    username: Mapped[str] = mapped_column(
        String(150),
        unique=True,
        index=True,
        nullable=False,
        comment="Case-sensitive, immutable"
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )

    # Profile
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    second_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    # Running totals
    income_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
        comment="Sum of the user's income amounts"
    )
    expense_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
        comment="Sum of the user's expense amounts"
    )

    # Relationships
    incomes: Mapped[List["Income"]] = relationship(
        "Income",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    expenses: Mapped[List["Expense"]] = relationship(
        "Expense",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
