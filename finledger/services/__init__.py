"""
Services Package

Business logic services for FinLedger.

Modules:
- credentials: registration and password checks
- tokens: access token issue/verify
- auth_gate: bearer token to user id
- ledger: income/expense entries and balances
- profile: user names and profile view
- advice: financial advice from an external model
"""

from finledger.services.advice import AdviceClient, AdviceService
from finledger.services.auth_gate import AuthGate
from finledger.services.credentials import CredentialStore
from finledger.services.ledger import EntryListing, LedgerEngine
from finledger.services.profile import ProfileService, UserView
from finledger.services.tokens import TokenService

__all__ = [
    "AdviceClient",
    "AdviceService",
    "AuthGate",
    "CredentialStore",
    "EntryListing",
    "LedgerEngine",
    "ProfileService",
    "UserView",
    "TokenService",
]
