"""
Password hashing helpers

bcrypt through passlib. The work factor is a build-time constant
and is not part of Settings.
"""

from passlib.context import CryptContext

BCRYPT_ROUNDS = 12

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password with a fresh salt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash (constant time)"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # stored value is not a recognizable hash
        return False


def dummy_verify_password() -> None:
    """Spend the same bcrypt work as a real check when there is no stored hash"""
    pwd_context.dummy_verify()
