"""
Error taxonomy for FinLedger

Every core operation either returns its result or raises one of these.
The HTTP layer maps each class to a status code (see finledger.main).
"""


class FinLedgerError(Exception):
    """Base exception for FinLedger"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.__class__.__name__


class InvalidInput(FinLedgerError):
    """Malformed or missing fields"""

    pass


class DuplicateUsername(FinLedgerError):
    """Username already registered"""

    pass


class NotFound(FinLedgerError):
    """Username, user or entry does not exist"""

    pass


class InvalidCredentials(FinLedgerError):
    """Password does not match"""

    pass


class Forbidden(FinLedgerError):
    """Raised when user tries to touch another user's data"""

    pass


class Unauthenticated(FinLedgerError):
    """Missing, invalid or expired token"""

    pass


class StorageFailure(FinLedgerError):
    """Persistence call failed"""

    pass


class UpstreamFailure(FinLedgerError):
    """Third-party advice call failed"""

    pass


class TokenError(FinLedgerError):
    """Base for token verification failures"""

    pass


class TokenMalformed(TokenError):
    """Token cannot be parsed or its signature does not verify"""

    pass


class TokenExpired(TokenError):
    """Token is past its expiration instant"""

    pass
