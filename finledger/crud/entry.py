"""
CRUD operations for income and expense entries

Balance adjustment lives here next to the entry writes so the ledger
engine can put both statements in one transaction. Nothing here commits.
"""
import datetime as dt
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.orm import Session

from finledger.models.entry import EntryKind, LedgerEntry, model_for
from finledger.models.user import User

BALANCE_COLUMNS = {
    EntryKind.INCOME: User.income_balance,
    EntryKind.EXPENSE: User.expense_balance,
}


class CRUDEntry:
    """CRUD operations for ledger entries"""

    def get(self, db: Session, kind: EntryKind, entry_id: int, lock: bool = False) -> Optional[LedgerEntry]:
        """Get entry by ID regardless of owner, optionally locking the row"""
        model = model_for(kind)
        stmt = select(model).where(model.id == entry_id)
        if lock:
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalar_one_or_none()

    def get_multi_in_range(
        self,
        db: Session,
        kind: EntryKind,
        owner_id: str,
        from_date: dt.date,
        to_date: dt.date,
    ) -> List[LedgerEntry]:
        """Entries owned by user with date in [from_date, to_date]"""
        model = model_for(kind)
        stmt = (
            select(model)
            .where(
                and_(
                    model.owner_id == owner_id,
                    model.date >= from_date,
                    model.date <= to_date,
                )
            )
            .order_by(model.date, model.id)
        )
        return list(db.execute(stmt).scalars())

    def get_all_for_owner(self, db: Session, kind: EntryKind, owner_id: str) -> List[LedgerEntry]:
        model = model_for(kind)
        stmt = select(model).where(model.owner_id == owner_id).order_by(model.date, model.id)
        return list(db.execute(stmt).scalars())

    def create(
        self,
        db: Session,
        kind: EntryKind,
        owner_id: str,
        category: str,
        amount: Decimal,
        date: dt.date,
        description: str = "",
    ) -> LedgerEntry:
        """Insert a new entry"""
        db_obj = model_for(kind)(
            owner_id=owner_id,
            category=category,
            amount=amount,
            date=date,
            description=description,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def delete(self, db: Session, kind: EntryKind, entry_id: int, owner_id: str) -> int:
        """Delete entry guarded by owner, returns number of rows removed"""
        model = model_for(kind)
        result = db.execute(
            delete(model)
            .where(and_(model.id == entry_id, model.owner_id == owner_id))
        )
        return result.rowcount

    def adjust_balance(self, db: Session, kind: EntryKind, owner_id: str, delta: Decimal) -> int:
        """Add delta to the matching balance with server-side arithmetic"""
        column = BALANCE_COLUMNS[EntryKind(kind)]
        result = db.execute(
            update(User)
            .where(User.id == owner_id)
            .values({column: column + delta})
        )
        return result.rowcount


entry = CRUDEntry()
