"""Unit tests for AccessTokenVerifier and token helpers."""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from switchboard.auth.verifier import AccessTokenVerifier, generate_token, hash_token
from switchboard.db.models import AccessToken
from switchboard.errors import ApiErrorCode, UnauthenticatedError
from tests.factories import create_test_token, create_test_user


class TestTokenHelpers:
    """generate_token / hash_token."""

    def test_tokens_are_unique_and_opaque(self):
        first, second = generate_token(), generate_token()
        assert first != second
        assert len(first) >= 40

    def test_hash_is_sha256_hex(self):
        digest = hash_token("abc")
        assert len(digest) == 64
        assert digest == hash_token("abc")
        assert digest != hash_token("abd")


class TestAccessTokenVerifier:
    """Verification against the access_tokens table."""

    def test_valid_token_resolves_identity(
        self, session_factory: sessionmaker[Session], db_session: Session
    ):
        """A known token returns its owner and touches last_used_at."""
        user = create_test_user(db_session, "Alice")
        token = create_test_token(db_session, user.id)

        verified = AccessTokenVerifier(session_factory).verify(token)

        assert verified.user_id == user.id
        row = db_session.scalar(
            select(AccessToken)
            .where(AccessToken.id == verified.token_id)
            .execution_options(populate_existing=True)
        )
        assert row.last_used_at is not None

    def test_unknown_token_rejected(self, session_factory: sessionmaker[Session]):
        with pytest.raises(UnauthenticatedError) as exc_info:
            AccessTokenVerifier(session_factory).verify("not-a-real-token")
        assert exc_info.value.code == ApiErrorCode.E_UNAUTHENTICATED

    def test_expired_token_rejected(
        self, session_factory: sessionmaker[Session], db_session: Session
    ):
        """Tokens older than the TTL are refused."""
        user = create_test_user(db_session, "Alice")
        token = create_test_token(db_session, user.id)
        row = db_session.scalar(select(AccessToken).where(AccessToken.user_id == user.id))
        row.created_at = row.created_at - timedelta(days=31)
        db_session.commit()

        with pytest.raises(UnauthenticatedError, match="expired"):
            AccessTokenVerifier(session_factory, ttl_days=30).verify(token)

        # Without a TTL the same token still works
        assert AccessTokenVerifier(session_factory).verify(token).user_id == user.id
