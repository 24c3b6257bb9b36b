"""Authorization predicates for membership and message visibility.

These predicates are the single source of truth for access checks.
Every group gate (message read/write, notification targeting, group
administration) goes through is_member; nothing else queries
group_members for authorization.

All functions:
- Accept an explicit SQLAlchemy Session
- Return booleans, ids or rows only (no HTTP exceptions)

Message Visibility (can_read_message):
- Viewer is the sender, OR
- Viewer is the receiver, OR
- Message is group-addressed and viewer is a CURRENT member of the group
  (evaluated at read time: leaving a group hides its history, joining reveals it)
"""

from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from switchboard.db.models import Group, GroupMember, Message


def is_member(session: Session, group_id: UUID, user_id: UUID) -> bool:
    """Check if user is currently a member of a group.

    Returns False if group_id does not exist.
    """
    query = select(
        exists().where(
            GroupMember.group_id == group_id,
            GroupMember.user_id == user_id,
        )
    )
    return bool(session.execute(query).scalar())


def members_of(session: Session, group_id: UUID) -> list[UUID]:
    """Return the group's member ids in join order.

    Call inside the same transaction as any writes that depend on the result
    (after lock_group) to get a consistent snapshot.
    """
    query = (
        select(GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.created_at, GroupMember.user_id)
    )
    return list(session.execute(query).scalars().all())


def lock_group(session: Session, group_id: UUID) -> Group | None:
    """Load a group row with FOR UPDATE.

    Membership changes and group fanout both take this lock, so they
    serialize per group. SQLite ignores FOR UPDATE; its single-writer
    transactions give the same ordering.

    Returns None if the group does not exist.
    """
    return session.execute(
        select(Group).where(Group.id == group_id).with_for_update()
    ).scalar_one_or_none()


def can_read_message(session: Session, viewer_user_id: UUID, message: Message) -> bool:
    """Check whether viewer may see a message under the visibility rule."""
    if message.sender_id == viewer_user_id:
        return True
    if message.receiver_id is not None and message.receiver_id == viewer_user_id:
        return True
    if message.group_id is not None:
        return is_member(session, message.group_id, viewer_user_id)
    return False


def viewer_group_ids(session: Session, viewer_user_id: UUID) -> list[UUID]:
    """Return ids of all groups the viewer currently belongs to."""
    query = select(GroupMember.group_id).where(GroupMember.user_id == viewer_user_id)
    return list(session.execute(query).scalars().all())
