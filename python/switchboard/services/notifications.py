"""Notification service layer.

A notification always belongs to exactly one recipient user. Addressing a
group fans out into one row per current member, each carrying the group id
as provenance.

Fanout:
- Runs in one transaction that holds the group row lock (lock_group), so the
  member snapshot cannot change mid-fanout.
- The sender must be a current member of the group.
- All rows are written or none are.

Access:
- Read, edit, delete and mark-read are restricted to the recipient.
- read_at only moves through the mark-read operations; it is never taken
  from request bodies.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from switchboard.auth.permissions import lock_group, members_of
from switchboard.db.models import Notification, utcnow
from switchboard.db.session import transaction
from switchboard.errors import ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from switchboard.logging import get_logger
from switchboard.schemas.notification import MAX_TITLE_LENGTH, NotificationOut
from switchboard.services.groups import require_member
from switchboard.services.users import get_user_or_404

logger = get_logger(__name__)

UPDATABLE_NOTIFICATION_FIELDS = ("title", "message")


# =============================================================================
# Helper Functions
# =============================================================================


def notification_to_out(notification: Notification) -> NotificationOut:
    """Convert Notification ORM model to NotificationOut schema."""
    return NotificationOut.model_validate(notification)


def _validate_title(title: str | None) -> str:
    if title is None or not title.strip() or len(title.strip()) > MAX_TITLE_LENGTH:
        raise InvalidRequestError(
            ApiErrorCode.E_CONTENT_INVALID,
            f"Title must be 1-{MAX_TITLE_LENGTH} characters",
        )
    return title.strip()


def _validate_body(message: str | None) -> str:
    if message is None or not message.strip():
        raise InvalidRequestError(ApiErrorCode.E_CONTENT_INVALID, "Message must not be blank")
    return message.strip()


def get_notification_or_404(db: Session, notification_id: UUID) -> Notification:
    """Load a notification.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND)
    """
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError(ApiErrorCode.E_NOTIFICATION_NOT_FOUND, "Notification not found")
    return notification


def _get_owned(db: Session, viewer_id: UUID, notification_id: UUID, action: str) -> Notification:
    notification = get_notification_or_404(db, notification_id)
    if notification.user_id != viewer_id:
        raise ForbiddenError(
            ApiErrorCode.E_FORBIDDEN,
            f"You do not have permission to {action} this notification",
        )
    return notification


# =============================================================================
# Creation and Fanout
# =============================================================================


def create_notification(
    db: Session,
    viewer_id: UUID,
    title: str,
    message: str,
    user_id: UUID | None = None,
    group_id: UUID | None = None,
) -> list[NotificationOut]:
    """Create a notification for a user, or fan out to a group.

    Returns the created rows: one for a user target, one per member for a
    group target.

    Raises:
        InvalidRequestError(E_INVALID_TARGET): Not exactly one target.
        InvalidRequestError(E_CONTENT_INVALID): Bad title or message.
        NotFoundError(E_USER_NOT_FOUND / E_GROUP_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER): Sender not in the target group.
    """
    if (user_id is None) == (group_id is None):
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_TARGET,
            "Exactly one of user_id or group_id must be provided",
        )
    title = _validate_title(title)
    message = _validate_body(message)

    if group_id is not None:
        return _fanout(db, viewer_id, group_id, title, message)

    get_user_or_404(db, user_id)
    with transaction(db):
        notification = Notification(title=title, message=message, user_id=user_id)
        db.add(notification)
        db.flush()

    logger.info("notification_created", notification_id=str(notification.id))
    return [notification_to_out(notification)]


def send_to_group(
    db: Session, viewer_id: UUID, group_id: UUID, title: str, message: str
) -> list[NotificationOut]:
    """Fan a notification out to every current member of a group.

    Raises:
        InvalidRequestError(E_CONTENT_INVALID)
        NotFoundError(E_GROUP_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER)
    """
    return create_notification(db, viewer_id, title, message, group_id=group_id)


def _fanout(
    db: Session, viewer_id: UUID, group_id: UUID, title: str, message: str
) -> list[NotificationOut]:
    with transaction(db):
        if lock_group(db, group_id) is None:
            raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")
        require_member(db, group_id, viewer_id)

        rows = [
            Notification(title=title, message=message, user_id=member_id, group_id=group_id)
            for member_id in members_of(db, group_id)
        ]
        db.add_all(rows)
        db.flush()

    logger.info("notification_fanout", group_id=str(group_id), recipients=len(rows))
    return [notification_to_out(row) for row in rows]


# =============================================================================
# Recipient Operations
# =============================================================================


def get_notification(db: Session, viewer_id: UUID, notification_id: UUID) -> NotificationOut:
    """Get one of the viewer's notifications.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    return notification_to_out(_get_owned(db, viewer_id, notification_id, "view"))


def update_notification(
    db: Session, viewer_id: UUID, notification_id: UUID, changes: dict[str, Any]
) -> NotificationOut:
    """Edit title and/or message. Other keys in `changes` are ignored.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
        InvalidRequestError(E_CONTENT_INVALID)
    """
    notification = _get_owned(db, viewer_id, notification_id, "update")

    updates = {k: v for k, v in changes.items() if k in UPDATABLE_NOTIFICATION_FIELDS}
    if "title" in updates:
        updates["title"] = _validate_title(updates["title"])
    if "message" in updates:
        updates["message"] = _validate_body(updates["message"])

    with transaction(db):
        for field, value in updates.items():
            setattr(notification, field, value)

    logger.info(
        "notification_updated", notification_id=str(notification_id), fields=sorted(updates)
    )
    return notification_to_out(notification)


def delete_notification(db: Session, viewer_id: UUID, notification_id: UUID) -> None:
    """Delete one of the viewer's notifications.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    notification = _get_owned(db, viewer_id, notification_id, "delete")
    with transaction(db):
        db.delete(notification)
    logger.info("notification_deleted", notification_id=str(notification_id))


def mark_notification_read(
    db: Session, viewer_id: UUID, notification_id: UUID
) -> NotificationOut:
    """Mark a notification read. Idempotent: an existing read_at is kept.

    Raises:
        NotFoundError(E_NOTIFICATION_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    notification = _get_owned(db, viewer_id, notification_id, "mark")
    if notification.read_at is None:
        with transaction(db):
            notification.read_at = utcnow()
    return notification_to_out(notification)


def mark_all_read(db: Session, viewer_id: UUID) -> int:
    """Mark every unread notification of the viewer read. Returns the count."""
    with transaction(db):
        result = db.execute(
            update(Notification)
            .where(Notification.user_id == viewer_id, Notification.read_at.is_(None))
            .values(read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
    logger.info("notifications_marked_read", count=result.rowcount)
    return result.rowcount


def list_my_notifications(
    db: Session, viewer_id: UUID, unread_only: bool = False
) -> list[NotificationOut]:
    """List the viewer's notifications, newest first."""
    query = select(Notification).where(Notification.user_id == viewer_id)
    if unread_only:
        query = query.where(Notification.read_at.is_(None))
    rows = db.scalars(
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
    ).all()
    return [notification_to_out(row) for row in rows]


def list_user_notifications(
    db: Session, viewer_id: UUID, user_id: UUID, unread_only: bool = False
) -> list[NotificationOut]:
    """List a user's notifications. Only the user themself may do this.

    Raises:
        NotFoundError(E_USER_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    get_user_or_404(db, user_id)
    if user_id != viewer_id:
        raise ForbiddenError(
            ApiErrorCode.E_FORBIDDEN, "You may only list your own notifications"
        )
    return list_my_notifications(db, viewer_id, unread_only=unread_only)
