"""Password hashing.

Uses a passlib CryptContext so the scheme can be rotated later: hashes
made with a deprecated scheme still verify and are flagged for rehash.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plaintext password for storage."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def needs_rehash(hashed_password: str) -> bool:
    """Whether the stored hash was produced with a deprecated scheme or settings."""
    return pwd_context.needs_update(hashed_password)
