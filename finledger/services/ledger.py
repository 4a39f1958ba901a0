"""
Ledger Engine

Atomic creation and deletion of income/expense entries together with
the owner's running balance. An entry write and its balance adjustment
are committed together or not at all.
"""

import datetime as dt
import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterator, List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finledger import crud
from finledger.core.exceptions import Forbidden, InvalidInput, NotFound, StorageFailure
from finledger.models.entry import EntryKind, LedgerEntry

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
CENT = Decimal("0.01")
# Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")

DateLike = Union[dt.date, str]
AmountLike = Union[Decimal, int, float, str]


def parse_kind(kind: Union[EntryKind, str]) -> EntryKind:
    try:
        return EntryKind(kind)
    except ValueError:
        raise InvalidInput(f"Unknown entry kind: {kind!r}")


def parse_date(value: DateLike, field: str = "date") -> dt.date:
    """Accept a date or a zero-padded YYYY-MM-DD string, nothing looser"""
    if isinstance(value, dt.datetime):
        raise InvalidInput(f"Invalid {field}: expected a calendar date without time")
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise InvalidInput(f"Invalid {field} format (YYYY-MM-DD)")
    try:
        return dt.datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidInput(f"Invalid {field} format (YYYY-MM-DD)")


def parse_amount(value: AmountLike) -> Decimal:
    """Positive, finite, rounded to cents"""
    if isinstance(value, bool) or value is None:
        raise InvalidInput("Amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput("Amount must be a number")
    if not amount.is_finite():
        raise InvalidInput("Amount must be a finite number")

    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise InvalidInput("Amount must be greater than zero")
    if amount > MAX_AMOUNT:
        raise InvalidInput(f"Amount must not exceed {MAX_AMOUNT}")
    return amount


class EntryListing:
    """
    Lazy view over a user's entries in a date range

    Nothing is read until iteration; every iteration runs the query
    again, so the listing can be consumed any number of times.
    """

    def __init__(
        self,
        db: Session,
        kind: EntryKind,
        owner_id: str,
        from_date: dt.date,
        to_date: dt.date,
    ):
        self._db = db
        self.kind = kind
        self.owner_id = owner_id
        self.from_date = from_date
        self.to_date = to_date

    def __iter__(self) -> Iterator[LedgerEntry]:
        if self.from_date > self.to_date:
            return iter(())
        try:
            rows = crud.entry.get_multi_in_range(
                self._db, self.kind, self.owner_id, self.from_date, self.to_date
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch {self.kind.value} entries: {e}", exc_info=True)
            raise StorageFailure(f"Failed to fetch {self.kind.value} entries") from e
        return iter(rows)

    def all(self) -> List[LedgerEntry]:
        return list(self)

    def __repr__(self) -> str:
        return (
            f"<EntryListing(kind={self.kind.value}, owner={self.owner_id}, "
            f"from={self.from_date}, to={self.to_date})>"
        )


class LedgerEngine:
    """Income/expense bookkeeping for one database session"""

    def __init__(self, db: Session):
        self.db = db

    def add_entry(
        self,
        user_id: str,
        kind: Union[EntryKind, str],
        category: str,
        amount: AmountLike,
        date: DateLike,
        description: Optional[str] = None,
    ) -> int:
        """Insert an entry and raise the matching balance by its amount"""
        kind = parse_kind(kind)
        amount = parse_amount(amount)
        entry_date = parse_date(date)
        if not isinstance(category, str) or not category.strip():
            raise InvalidInput("Category is required")
        description = description or ""

        try:
            if crud.user.get(self.db, user_id) is None:
                raise NotFound("User not found")

            entry = crud.entry.create(
                self.db,
                kind,
                owner_id=user_id,
                category=category.strip(),
                amount=amount,
                date=entry_date,
                description=description,
            )
            entry_id = entry.id

            if crud.entry.adjust_balance(self.db, kind, user_id, amount) != 1:
                raise NotFound("User not found")

            self.db.commit()
        except NotFound:
            self.db.rollback()
            logger.warning(f"Cannot add {kind.value}: user {user_id} not found")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to add {kind.value} for user {user_id}: {e}", exc_info=True)
            raise StorageFailure(f"Failed to add {kind.value}") from e

        logger.info(f"{kind.value.capitalize()} {entry_id} added for user {user_id}: {amount}")
        return entry_id

    def list_entries(
        self,
        user_id: str,
        kind: Union[EntryKind, str],
        from_date: DateLike,
        to_date: DateLike,
    ) -> EntryListing:
        """Entries owned by user_id with date in [from_date, to_date]"""
        kind = parse_kind(kind)
        start = parse_date(from_date, "from date")
        end = parse_date(to_date, "to date")
        return EntryListing(self.db, kind, user_id, start, end)

    def delete_entry(self, user_id: str, entry_id: int, kind: Union[EntryKind, str]) -> None:
        """Delete an owned entry and lower the matching balance by its amount"""
        kind = parse_kind(kind)

        try:
            # row lock serializes concurrent deletes of the same entry
            entry = crud.entry.get(self.db, kind, entry_id, lock=True)
            if entry is None:
                raise NotFound(f"{kind.value.capitalize()} not found")

            if entry.owner_id != user_id:
                logger.warning(
                    f"Unauthorized attempt to delete {kind.value} {entry_id}: "
                    f"user {user_id}, owner {entry.owner_id}"
                )
                raise Forbidden(f"Unauthorized to delete this {kind.value}")

            amount = entry.amount

            # guarded delete, a concurrent winner leaves nothing to remove
            if crud.entry.delete(self.db, kind, entry_id, user_id) != 1:
                raise NotFound(f"{kind.value.capitalize()} not found")

            if crud.entry.adjust_balance(self.db, kind, user_id, -amount) != 1:
                raise NotFound("User not found")

            self.db.commit()
        except (NotFound, Forbidden):
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete {kind.value} {entry_id}: {e}", exc_info=True)
            raise StorageFailure(f"Failed to delete {kind.value}") from e

        logger.info(f"{kind.value.capitalize()} {entry_id} deleted for user {user_id}")

    def balances(self, user_id: str) -> Tuple[Decimal, Decimal]:
        """Current (income_balance, expense_balance) of a user"""
        try:
            user = crud.user.get(self.db, user_id)
        except SQLAlchemyError as e:
            raise StorageFailure("Could not load user") from e
        if user is None:
            raise NotFound("User not found")
        return user.income_balance, user.expense_balance
