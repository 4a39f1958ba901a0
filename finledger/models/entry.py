"""
Ledger entry models: incomes and expenses

Both tables share one shape; EntryKind picks the table and the
balance column on the owning user.
"""
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Type, Union

from sqlalchemy import String, ForeignKey, Index, Numeric, Date
from sqlalchemy.orm import Mapped, mapped_column, declared_attr

from finledger.db.base import Base, TimestampMixin


class EntryKind(str, Enum):
    """Entry kind enum"""
    INCOME = "income"
    EXPENSE = "expense"


class LedgerEntryMixin(TimestampMixin):
    """Columns common to incomes and expenses"""

    # Storage-assigned, monotonic
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    owner_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    category: Mapped[str] = mapped_column(String(100), nullable=False)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Entry amount (always positive)"
    )

    date: Mapped[dt.date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment="Calendar date of the entry"
    )

    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    @declared_attr.directive
    def __table_args__(cls):
        return (
            Index(f"idx_{cls.__tablename__}_owner_date", "owner_id", "date"),
        )

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}(id={self.id}, owner={self.owner_id}, "
            f"amount={self.amount}, date={self.date})>"
        )


class Income(LedgerEntryMixin, Base):
    __tablename__ = "incomes"


class Expense(LedgerEntryMixin, Base):
    __tablename__ = "expenses"


LedgerEntry = Union[Income, Expense]

ENTRY_MODELS = {
    EntryKind.INCOME: Income,
    EntryKind.EXPENSE: Expense,
}


def model_for(kind: EntryKind) -> Type[LedgerEntry]:
    return ENTRY_MODELS[EntryKind(kind)]
