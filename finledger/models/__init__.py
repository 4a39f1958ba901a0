"""
Database models
"""
from finledger.db.base import Base
from finledger.models.user import User
from finledger.models.entry import EntryKind, Income, Expense, LedgerEntry, model_for

__all__ = [
    "Base",
    "User",
    "EntryKind",
    "Income",
    "Expense",
    "LedgerEntry",
    "model_for",
]
