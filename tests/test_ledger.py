"""
Unit tests for the ledger engine

Tests:
1. Adding entries raises the matching balance
2. Deleting entries lowers it again, only for the owner
3. Balances always equal the sum of the user's entries
4. Date range listing (inclusive, lazy, restartable)
5. Input validation for amounts, dates and kinds
6. Rollback when a balance update fails
"""

import datetime as dt
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from finledger import crud
from finledger.core.exceptions import Forbidden, InvalidInput, NotFound, StorageFailure
from finledger.models import Expense, Income
from finledger.models.entry import EntryKind
from finledger.services import LedgerEngine
from finledger.services.ledger import parse_amount, parse_date

ALL_TIME = (dt.date(1900, 1, 1), dt.date(2999, 12, 31))


def _storage_error(*args, **kwargs):
    raise OperationalError("UPDATE users", {}, Exception("database is locked"))


def _sum_entries(ledger, user_id, kind):
    return sum((e.amount for e in ledger.list_entries(user_id, kind, *ALL_TIME)), Decimal("0"))


@pytest.mark.unit
class TestAddEntry:
    """Test LedgerEngine.add_entry"""

    def test_income_raises_income_balance(self, ledger, alice_id):
        entry_id = ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")

        assert entry_id > 0
        assert ledger.balances(alice_id) == (Decimal("1000"), Decimal("0"))

    def test_expenses_accumulate(self, ledger, alice_id):
        ledger.add_entry(alice_id, EntryKind.EXPENSE, "food", 50, "2024-01-01")
        ledger.add_entry(alice_id, EntryKind.EXPENSE, "transport", 30, "2024-01-01")

        listed = ledger.list_entries(alice_id, EntryKind.EXPENSE, "2024-01-01", "2024-01-01").all()

        assert [e.category for e in listed] == ["food", "transport"]
        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("80"))

    def test_ids_are_unique_per_kind(self, ledger, alice_id):
        ids = {ledger.add_entry(alice_id, "income", "gift", 1, "2024-01-01") for _ in range(5)}
        assert len(ids) == 5

    def test_description_defaults_to_empty(self, ledger, alice_id):
        ledger.add_entry(alice_id, "income", "salary", 10, dt.date(2024, 1, 1))
        entry = ledger.list_entries(alice_id, "income", *ALL_TIME).all()[0]

        assert entry.description == ""
        assert entry.date == dt.date(2024, 1, 1)
        assert entry.owner_id == alice_id

    def test_amount_rounded_to_cents(self, ledger, alice_id):
        ledger.add_entry(alice_id, "income", "interest", "10.005", "2024-01-01")
        assert ledger.balances(alice_id)[0] == Decimal("10.01")

    def test_unknown_user(self, ledger):
        with pytest.raises(NotFound):
            ledger.add_entry("missing-id", "income", "salary", 100, "2024-01-01")

    @pytest.mark.parametrize("amount", [0, -5, "-0.01", "abc", None, True, "NaN", "Infinity", "0.001"])
    def test_invalid_amount(self, ledger, alice_id, amount):
        with pytest.raises(InvalidInput):
            ledger.add_entry(alice_id, "income", "salary", amount, "2024-01-01")

        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("0"))

    @pytest.mark.parametrize("date", [
        "2024-13-01", "01/02/2024", "", "2024-02-30", 20240101,
        "2024-1-1", "2024-01-1", " 2024-01-01", "2024-01-01 ", "20240101", "2024-01-01T00:00",
    ])
    def test_invalid_date(self, ledger, alice_id, date):
        with pytest.raises(InvalidInput):
            ledger.add_entry(alice_id, "expense", "food", 10, date)

    def test_datetime_rejected(self, ledger, alice_id):
        with pytest.raises(InvalidInput):
            ledger.add_entry(alice_id, "expense", "food", 10, dt.datetime(2024, 1, 1, 8, 30))

    def test_blank_category(self, ledger, alice_id):
        with pytest.raises(InvalidInput):
            ledger.add_entry(alice_id, "expense", "  ", 10, "2024-01-01")

    def test_unknown_kind(self, ledger, alice_id):
        with pytest.raises(InvalidInput):
            ledger.add_entry(alice_id, "transfer", "misc", 10, "2024-01-01")

    def test_rollback_when_balance_update_fails(self, ledger, alice_id, monkeypatch, db_session):
        """Test no entry survives a failed balance update"""
        monkeypatch.setattr(crud.entry, "adjust_balance", _storage_error)

        with pytest.raises(StorageFailure):
            ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")

        monkeypatch.undo()
        count = db_session.execute(select(func.count()).select_from(Income)).scalar_one()
        assert count == 0
        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("0"))


@pytest.mark.unit
class TestDeleteEntry:
    """Test LedgerEngine.delete_entry"""

    def test_delete_restores_balance(self, ledger, alice_id):
        entry_id = ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")

        ledger.delete_entry(alice_id, entry_id, "income")

        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("0"))
        assert ledger.list_entries(alice_id, "income", *ALL_TIME).all() == []

    def test_delete_twice(self, ledger, alice_id):
        entry_id = ledger.add_entry(alice_id, "expense", "food", 50, "2024-01-01")
        ledger.delete_entry(alice_id, entry_id, "expense")

        with pytest.raises(NotFound):
            ledger.delete_entry(alice_id, entry_id, "expense")
        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("0"))

    def test_unknown_entry(self, ledger, alice_id):
        with pytest.raises(NotFound):
            ledger.delete_entry(alice_id, 999, "income")

    def test_other_users_entry(self, ledger, alice_id, bob_id):
        """Test a user cannot delete an entry they do not own"""
        entry_id = ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")

        with pytest.raises(Forbidden):
            ledger.delete_entry(bob_id, entry_id, "income")

        assert ledger.balances(alice_id) == (Decimal("1000"), Decimal("0"))
        assert ledger.balances(bob_id) == (Decimal("0"), Decimal("0"))
        assert len(ledger.list_entries(alice_id, "income", *ALL_TIME).all()) == 1

    def test_kind_selects_table(self, ledger, alice_id):
        """Test an income id is not found among expenses"""
        income_id = ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")

        with pytest.raises(NotFound):
            ledger.delete_entry(alice_id, income_id, "expense")

        assert ledger.balances(alice_id) == (Decimal("1000"), Decimal("0"))

    def test_concurrent_deletes_decrement_once(self, ledger, alice_id, session_factory):
        """Test racing deletes of one entry: one succeeds, the rest see NotFound"""
        entry_id = ledger.add_entry(alice_id, "expense", "food", 50, "2024-01-01")
        ledger.add_entry(alice_id, "expense", "rent", 50, "2024-01-01")
        workers = 8
        barrier = threading.Barrier(workers)

        def delete_in_own_session():
            session = session_factory()
            try:
                barrier.wait()
                LedgerEngine(session).delete_entry(alice_id, entry_id, "expense")
                return "ok"
            except NotFound:
                return "NotFound"
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(delete_in_own_session) for _ in range(workers)]
            outcomes = sorted(future.result() for future in futures)

        assert outcomes == ["NotFound"] * (workers - 1) + ["ok"]
        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("50"))
        assert [e.category for e in ledger.list_entries(alice_id, "expense", *ALL_TIME)] == ["rent"]

    def test_rollback_when_balance_update_fails(self, ledger, alice_id, monkeypatch):
        entry_id = ledger.add_entry(alice_id, "expense", "food", 50, "2024-01-01")
        monkeypatch.setattr(crud.entry, "adjust_balance", _storage_error)

        with pytest.raises(StorageFailure):
            ledger.delete_entry(alice_id, entry_id, "expense")

        monkeypatch.undo()
        assert ledger.balances(alice_id) == (Decimal("0"), Decimal("50"))
        assert [e.id for e in ledger.list_entries(alice_id, "expense", *ALL_TIME)] == [entry_id]


@pytest.mark.unit
class TestBalanceInvariant:
    """Test balances track the sum of entries across mixed operations"""

    def test_random_sequence(self, ledger, alice_id, bob_id):
        rng = random.Random(1234)
        live = {EntryKind.INCOME: [], EntryKind.EXPENSE: []}

        for step in range(60):
            kind = rng.choice(list(EntryKind))
            user_id = rng.choice([alice_id, bob_id])
            owned = [entry_id for entry_id, owner in live[kind] if owner == user_id]

            if owned and rng.random() < 0.4:
                entry_id = rng.choice(owned)
                ledger.delete_entry(user_id, entry_id, kind)
                live[kind].remove((entry_id, user_id))
            else:
                amount = Decimal(rng.randint(1, 500_000)) / 100
                day = dt.date(2024, 1, 1) + dt.timedelta(days=rng.randint(0, 365))
                entry_id = ledger.add_entry(user_id, kind, f"cat-{step}", amount, day)
                live[kind].append((entry_id, user_id))

            for uid in (alice_id, bob_id):
                income, expense = ledger.balances(uid)
                assert income == _sum_entries(ledger, uid, EntryKind.INCOME)
                assert expense == _sum_entries(ledger, uid, EntryKind.EXPENSE)


@pytest.mark.unit
class TestListEntries:
    """Test LedgerEngine.list_entries"""

    @pytest.fixture
    def january(self, ledger, alice_id, bob_id):
        ledger.add_entry(alice_id, "expense", "rent", 700, "2024-01-01")
        ledger.add_entry(alice_id, "expense", "food", 40, "2024-01-15")
        ledger.add_entry(alice_id, "expense", "books", 25, "2024-01-31")
        ledger.add_entry(alice_id, "expense", "travel", 300, "2024-02-01")
        ledger.add_entry(bob_id, "expense", "food", 10, "2024-01-15")

    def test_range_is_inclusive(self, ledger, alice_id, january):
        listed = ledger.list_entries(alice_id, "expense", "2024-01-01", "2024-01-31").all()
        assert [e.category for e in listed] == ["rent", "food", "books"]

    def test_single_day(self, ledger, alice_id, january):
        listed = ledger.list_entries(alice_id, "expense", "2024-01-15", "2024-01-15").all()
        assert [e.category for e in listed] == ["food"]

    def test_only_own_entries(self, ledger, bob_id, january):
        listed = ledger.list_entries(bob_id, "expense", *ALL_TIME).all()
        assert [(e.category, e.owner_id) for e in listed] == [("food", bob_id)]

    def test_inverted_range_is_empty(self, ledger, alice_id, january):
        assert ledger.list_entries(alice_id, "expense", "2024-02-01", "2024-01-01").all() == []

    def test_listing_is_lazy(self, ledger, alice_id):
        """Test entries added after the listing was created are seen on iteration"""
        listing = ledger.list_entries(alice_id, "income", "2024-01-01", "2024-12-31")
        ledger.add_entry(alice_id, "income", "salary", 100, "2024-03-01")

        assert [e.category for e in listing] == ["salary"]

    def test_listing_is_restartable(self, ledger, alice_id, january):
        listing = ledger.list_entries(alice_id, "expense", "2024-01-01", "2024-01-31")

        assert list(listing) == list(listing)
        assert len(listing.all()) == 3

    def test_invalid_range_bounds(self, ledger, alice_id):
        with pytest.raises(InvalidInput):
            ledger.list_entries(alice_id, "expense", "yesterday", "2024-01-01")
        with pytest.raises(InvalidInput):
            ledger.list_entries(alice_id, "expense", "2024-01-01", "2024/01/31")


@pytest.mark.unit
class TestUserRemoval:
    """Test entries are removed together with their owner"""

    def test_cascade(self, ledger, alice_id, bob_id, db_session):
        ledger.add_entry(alice_id, "income", "salary", 1000, "2024-01-01")
        ledger.add_entry(alice_id, "expense", "food", 10, "2024-01-01")
        ledger.add_entry(bob_id, "expense", "food", 20, "2024-01-01")

        db_session.delete(crud.user.get(db_session, alice_id))
        db_session.commit()

        for model in (Income, Expense):
            owners = db_session.execute(select(model.owner_id)).scalars().all()
            assert alice_id not in owners
        assert ledger.balances(bob_id) == (Decimal("0"), Decimal("20"))


@pytest.mark.unit
class TestParsers:
    """Test amount and date parsing helpers"""

    @pytest.mark.parametrize("value,expected", [
        (1000, Decimal("1000.00")),
        ("12.5", Decimal("12.50")),
        (Decimal("0.015"), Decimal("0.02")),
        (19.99, Decimal("19.99")),
    ])
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected

    def test_parse_amount_upper_bound(self):
        with pytest.raises(InvalidInput):
            parse_amount("10000000000")

    def test_parse_date(self):
        assert parse_date("2024-02-29") == dt.date(2024, 2, 29)
        assert parse_date(dt.date(2024, 1, 1)) == dt.date(2024, 1, 1)
