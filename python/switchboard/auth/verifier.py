"""Bearer token issuance and verification.

Tokens are opaque, one per device. The plaintext is `secrets.token_urlsafe`
output handed to the client exactly once; only its SHA-256 hex digest is
stored, so a leaked database does not leak usable credentials.

Provides:
- TokenVerifier: Protocol for token verification
- AccessTokenVerifier: Verifier backed by the access_tokens table
- generate_token / hash_token: Issuance helpers used by the identity service
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from switchboard.db.models import AccessToken, utcnow
from switchboard.errors import UnauthenticatedError
from switchboard.logging import get_logger

logger = get_logger(__name__)

# Bytes of entropy in a freshly generated token
TOKEN_BYTES = 40


@dataclass(frozen=True)
class VerifiedToken:
    """Result of a successful verification.

    Attributes:
        user_id: Owner of the token.
        token_id: Row id of the token (used by logout to revoke it).
    """

    user_id: UUID
    token_id: UUID


class TokenVerifier(Protocol):
    """Protocol for token verification."""

    def verify(self, token: str) -> VerifiedToken:
        """Verify token and return the identity it belongs to.

        Raises:
            UnauthenticatedError: Token is unknown, revoked, or expired.
        """
        ...


def generate_token() -> str:
    """Generate a new plaintext bearer token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Return the storage digest for a plaintext token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AccessTokenVerifier:
    """Token verifier backed by the access_tokens table.

    Each verification opens its own short-lived session, independent of the
    request-scoped session used by route handlers.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        ttl_days: int | None = None,
    ):
        """Initialize the verifier.

        Args:
            session_factory: Factory for database sessions.
            ttl_days: Token lifetime in days. None means tokens never expire.
        """
        self.session_factory = session_factory
        self.ttl = timedelta(days=ttl_days) if ttl_days else None

    def verify(self, token: str) -> VerifiedToken:
        """Look up the token digest and touch last_used_at."""
        digest = hash_token(token)
        db = self.session_factory()
        try:
            row = db.scalar(select(AccessToken).where(AccessToken.token_hash == digest))
            if row is None:
                logger.warning("auth_failure", reason="unknown_token")
                raise UnauthenticatedError(message="Invalid or revoked token")

            now = utcnow()
            if self.ttl is not None and row.created_at + self.ttl < now:
                logger.warning("auth_failure", reason="token_expired", token_id=str(row.id))
                raise UnauthenticatedError(message="Token expired")

            row.last_used_at = now
            db.commit()
            return VerifiedToken(user_id=row.user_id, token_id=row.id)
        finally:
            db.close()
