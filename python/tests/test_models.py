"""Database-level constraint tests.

The service layer validates first; these constraints are the backstop.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from switchboard.db.models import AllowedContact, Group, Message, Notification
from switchboard.db.session import transaction
from tests.factories import create_test_group, create_test_user


class TestMessageConstraints:
    def test_requires_exactly_one_target(self, db_session: Session):
        alice = create_test_user(db_session, name="Alice")
        bob = create_test_user(db_session, name="Bob")
        group_id = create_test_group(db_session, [alice.id])

        db_session.add(Message(content="x", sender_id=alice.id))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

        db_session.add(
            Message(content="x", sender_id=alice.id, receiver_id=bob.id, group_id=group_id)
        )
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_content_nonempty(self, db_session: Session):
        alice = create_test_user(db_session, name="Alice")
        bob = create_test_user(db_session, name="Bob")

        db_session.add(Message(content="", sender_id=alice.id, receiver_id=bob.id))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()


class TestContactConstraints:
    def test_no_self_contact(self, db_session: Session):
        alice = create_test_user(db_session, name="Alice")

        db_session.add(AllowedContact(user_id=alice.id, contact_id=alice.id))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_pair_unique(self, db_session: Session):
        alice = create_test_user(db_session, name="Alice")
        bob = create_test_user(db_session, name="Bob")
        db_session.add(AllowedContact(user_id=alice.id, contact_id=bob.id))
        db_session.commit()

        db_session.add(AllowedContact(user_id=alice.id, contact_id=bob.id))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()


class TestGroupConstraints:
    def test_name_nonempty(self, db_session: Session):
        db_session.add(Group(name=""))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()


class TestTimestamps:
    def test_round_trip_as_aware_utc(self, db_session: Session):
        """Datetimes come back timezone-aware in UTC regardless of input offset."""
        alice = create_test_user(db_session, name="Alice")
        plus_two = timezone(timedelta(hours=2))
        read_at = datetime(2026, 1, 1, 14, 0, tzinfo=plus_two)

        notification = Notification(title="t", message="m", user_id=alice.id, read_at=read_at)
        db_session.add(notification)
        db_session.commit()
        notification_id = notification.id
        db_session.expunge_all()

        loaded = db_session.get(Notification, notification_id)
        assert loaded.read_at.utcoffset() == timedelta(0)
        assert loaded.read_at == read_at
        assert loaded.created_at.tzinfo is not None


class TestTransaction:
    def test_rolls_back_on_error(self, db_session: Session):
        """Writes inside a failed transaction block are discarded."""
        with pytest.raises(RuntimeError), transaction(db_session):
            db_session.add(Group(name="doomed"))
            db_session.flush()
            raise RuntimeError("boom")

        assert db_session.scalar(select(func.count()).select_from(Group)) == 0

    def test_commits_on_success(self, db_session: Session, session_factory):
        with transaction(db_session):
            db_session.add(Group(name="kept"))

        with session_factory() as other:
            assert other.scalar(select(func.count()).select_from(Group)) == 1
