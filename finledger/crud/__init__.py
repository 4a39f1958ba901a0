"""
Persistence helpers
"""
from finledger.crud.user import user
from finledger.crud.entry import entry

__all__ = ["user", "entry"]
