"""SQLAlchemy ORM models for Switchboard.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Column types are portable between PostgreSQL and SQLite; cascade deletes
are declared on the foreign keys and left to the database (passive_deletes).
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy import Uuid as SA_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware timestamp that always round-trips as UTC.

    SQLite has no timezone support and hands back naive values; those are
    re-tagged as UTC on load so every backend returns aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC)
            if dialect.name == "sqlite":
                value = value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Identity
# =============================================================================


class User(Base):
    """User account model.

    Credentials are opaque to the messaging core; only the identity
    services read password_hash.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    # Relationships
    access_tokens: Mapped[list["AccessToken"]] = relationship(
        "AccessToken", back_populates="user", passive_deletes=True
    )
    memberships: Mapped[list["GroupMember"]] = relationship(
        "GroupMember", back_populates="user", passive_deletes=True
    )


class AccessToken(Base):
    """Per-device opaque bearer token.

    Only the SHA-256 digest of the token is stored; the plaintext is
    returned once at issuance.
    """

    __tablename__ = "access_tokens"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="access_tokens")

    __table_args__ = (Index("ix_access_tokens_user_id", "user_id"),)


# =============================================================================
# Groups
# =============================================================================


class Group(Base):
    """A named set of users that can exchange group messages and notifications."""

    __tablename__ = "groups"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("length(name) >= 1", name="ck_groups_name_nonempty"),
    )

    members: Mapped[list["GroupMember"]] = relationship(
        "GroupMember",
        back_populates="group",
        passive_deletes=True,
        order_by="GroupMember.created_at",
    )


class GroupMember(Base):
    """Group membership: a set relation, unique per (group, user).

    The composite primary key is the storage-level uniqueness guarantee
    that closes the check-then-insert race on concurrent adds.
    """

    __tablename__ = "group_members"

    group_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("ix_group_members_user_id", "user_id"),)

    group: Mapped["Group"] = relationship("Group", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="memberships")


# =============================================================================
# Contacts
# =============================================================================


class AllowedContact(Base):
    """Directed allow-list entry: owner (user_id) may message contact_id."""

    __tablename__ = "allowed_contacts"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    contact_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "contact_id", name="uix_allowed_contacts_pair"),
        CheckConstraint("user_id <> contact_id", name="ck_allowed_contacts_not_self"),
    )

    contact: Mapped["User"] = relationship("User", foreign_keys=[contact_id])


# =============================================================================
# Messages & Notifications
# =============================================================================


class Message(Base):
    """Direct or group message.

    Exactly one of receiver_id / group_id is set (ck_messages_one_target).
    """

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sender_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    receiver_id: Mapped[UUID | None] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    group_id: Mapped[UUID | None] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=True,
    )
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "(receiver_id IS NULL) <> (group_id IS NULL)",
            name="ck_messages_one_target",
        ),
        CheckConstraint("length(content) >= 1", name="ck_messages_content_nonempty"),
        Index("ix_messages_sender_receiver", "sender_id", "receiver_id"),
        Index("ix_messages_sender_group", "sender_id", "group_id"),
        Index("ix_messages_group_created", "group_id", "created_at"),
    )

    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id])
    receiver: Mapped["User | None"] = relationship("User", foreign_keys=[receiver_id])
    group: Mapped["Group | None"] = relationship("Group")


class Notification(Base):
    """A notification delivered to exactly one user.

    group_id records provenance when the row came from a group fanout.
    """

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(SA_UUID(as_uuid=True), primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    group_id: Mapped[UUID | None] = mapped_column(
        SA_UUID(as_uuid=True),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=True,
    )
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    group: Mapped["Group | None"] = relationship("Group")
