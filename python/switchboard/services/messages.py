"""Message service layer.

Direct and group messages. Every operation takes the viewer explicitly and
validates input and authorization before any write.

Rules:
- Addressing: exactly one of receiver_id / group_id (E_INVALID_TARGET).
- Direct send: receiver must exist and the contact policy must allow it.
- Group send: group must exist and the sender must be a current member.
- Visibility: sender, receiver, or current member of the message's group
  (auth.permissions.can_read_message). Non-visible messages are E_FORBIDDEN.
- Edit and delete: sender only.
- Mark read: receiver only; idempotent (first read_at is kept).

Service functions correspond 1:1 with route handlers.
"""

from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session, joinedload

from switchboard.auth.permissions import can_read_message, viewer_group_ids
from switchboard.db.models import Message, utcnow
from switchboard.db.session import transaction
from switchboard.errors import ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from switchboard.logging import get_logger
from switchboard.schemas.message import MAX_MESSAGE_CONTENT_LENGTH, GroupRef, MessageOut
from switchboard.schemas.user import UserSummary
from switchboard.services.contact_policy import can_message
from switchboard.services.contacts import load_allow_list
from switchboard.services.groups import get_group_or_404, require_member
from switchboard.services.users import get_user_or_404

logger = get_logger(__name__)

_WITH_REFS = (
    joinedload(Message.sender),
    joinedload(Message.receiver),
    joinedload(Message.group),
)


# =============================================================================
# Helper Functions
# =============================================================================


def message_to_out(message: Message) -> MessageOut:
    """Convert Message ORM model to MessageOut schema with resolved references."""
    return MessageOut(
        id=message.id,
        content=message.content,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        group_id=message.group_id,
        read_at=message.read_at,
        created_at=message.created_at,
        updated_at=message.updated_at,
        sender=UserSummary.model_validate(message.sender) if message.sender else None,
        receiver=UserSummary.model_validate(message.receiver) if message.receiver else None,
        group=GroupRef.model_validate(message.group) if message.group else None,
    )


def validate_content(content: str | None) -> str:
    """Trim and validate message content.

    Raises:
        InvalidRequestError(E_CONTENT_INVALID): Blank or too long.
    """
    content = content.strip() if content is not None else ""
    if not content:
        raise InvalidRequestError(ApiErrorCode.E_CONTENT_INVALID, "Content must not be blank")
    if len(content) > MAX_MESSAGE_CONTENT_LENGTH:
        raise InvalidRequestError(
            ApiErrorCode.E_CONTENT_INVALID,
            f"Content exceeds {MAX_MESSAGE_CONTENT_LENGTH} characters",
        )
    return content


def validate_target(receiver_id: UUID | None, group_id: UUID | None) -> None:
    """Enforce exactly-one-of(receiver_id, group_id).

    Raises:
        InvalidRequestError(E_INVALID_TARGET)
    """
    if (receiver_id is None) == (group_id is None):
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_TARGET,
            "Exactly one of receiver_id or group_id must be provided",
            details=[
                {"loc": "receiver_id", "msg": "mutually exclusive with group_id"},
                {"loc": "group_id", "msg": "mutually exclusive with receiver_id"},
            ],
        )


def get_message_or_404(db: Session, message_id: UUID) -> Message:
    """Load a message with sender/receiver/group resolved.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND)
    """
    message = db.scalar(select(Message).options(*_WITH_REFS).where(Message.id == message_id))
    if message is None:
        raise NotFoundError(ApiErrorCode.E_MESSAGE_NOT_FOUND, "Message not found")
    return message


def _require_sender(message: Message, viewer_id: UUID, action: str) -> None:
    if message.sender_id != viewer_id:
        raise ForbiddenError(
            ApiErrorCode.E_FORBIDDEN, f"You do not have permission to {action} this message"
        )


# =============================================================================
# Service Functions
# =============================================================================


def send_message(
    db: Session,
    viewer_id: UUID,
    content: str,
    receiver_id: UUID | None = None,
    group_id: UUID | None = None,
) -> MessageOut:
    """Send a direct or group message.

    Raises:
        InvalidRequestError(E_INVALID_TARGET / E_CONTENT_INVALID)
        NotFoundError(E_USER_NOT_FOUND / E_GROUP_NOT_FOUND)
        ForbiddenError(E_CONTACT_NOT_ALLOWED): Contact policy rejected the send.
        ForbiddenError(E_NOT_GROUP_MEMBER): Sender is not in the group.
    """
    validate_target(receiver_id, group_id)
    content = validate_content(content)

    if group_id is not None:
        get_group_or_404(db, group_id)
        require_member(db, group_id, viewer_id)
    else:
        get_user_or_404(db, receiver_id)
        if not can_message(viewer_id, receiver_id, load_allow_list(db, viewer_id)):
            raise ForbiddenError(
                ApiErrorCode.E_CONTACT_NOT_ALLOWED, "You are not allowed to message this user"
            )

    with transaction(db):
        message = Message(
            content=content,
            sender_id=viewer_id,
            receiver_id=receiver_id,
            group_id=group_id,
        )
        db.add(message)
        db.flush()
        message_id = message.id

    logger.info(
        "message_sent",
        message_id=str(message_id),
        target="group" if group_id else "user",
    )
    return message_to_out(get_message_or_404(db, message_id))


def get_message(db: Session, viewer_id: UUID, message_id: UUID) -> MessageOut:
    """Get a message the viewer is allowed to see.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    message = get_message_or_404(db, message_id)
    if not can_read_message(db, viewer_id, message):
        raise ForbiddenError(
            ApiErrorCode.E_FORBIDDEN, "You do not have permission to view this message"
        )
    return message_to_out(message)


def update_message(db: Session, viewer_id: UUID, message_id: UUID, content: str) -> MessageOut:
    """Edit message content. Sender only.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
        InvalidRequestError(E_CONTENT_INVALID)
    """
    message = get_message_or_404(db, message_id)
    _require_sender(message, viewer_id, "update")
    content = validate_content(content)

    with transaction(db):
        message.content = content

    logger.info("message_updated", message_id=str(message_id))
    return message_to_out(message)


def delete_message(db: Session, viewer_id: UUID, message_id: UUID) -> None:
    """Delete a message. Sender only.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    message = get_message_or_404(db, message_id)
    _require_sender(message, viewer_id, "delete")

    with transaction(db):
        db.delete(message)

    logger.info("message_deleted", message_id=str(message_id))


def mark_message_read(db: Session, viewer_id: UUID, message_id: UUID) -> MessageOut:
    """Mark a direct message as read. Receiver only, idempotent.

    Group messages have no receiver and cannot be marked.

    Raises:
        NotFoundError(E_MESSAGE_NOT_FOUND)
        ForbiddenError(E_FORBIDDEN)
    """
    message = get_message_or_404(db, message_id)
    if message.receiver_id is None or message.receiver_id != viewer_id:
        raise ForbiddenError(
            ApiErrorCode.E_FORBIDDEN,
            "You do not have permission to mark this message as read",
        )

    if message.read_at is None:
        with transaction(db):
            message.read_at = utcnow()
        logger.info("message_read", message_id=str(message_id))

    return message_to_out(message)


def list_my_messages(db: Session, viewer_id: UUID) -> list[MessageOut]:
    """List messages the viewer sent or received, newest first."""
    messages = db.scalars(
        select(Message)
        .options(*_WITH_REFS)
        .where(or_(Message.sender_id == viewer_id, Message.receiver_id == viewer_id))
        .order_by(Message.created_at.desc(), Message.id.desc())
    ).all()
    return [message_to_out(m) for m in messages]


def get_conversation(db: Session, viewer_id: UUID, other_user_id: UUID) -> list[MessageOut]:
    """Direct messages between the viewer and another user, oldest first.

    Raises:
        NotFoundError(E_USER_NOT_FOUND)
    """
    get_user_or_404(db, other_user_id)

    messages = db.scalars(
        select(Message)
        .options(*_WITH_REFS)
        .where(
            or_(
                and_(Message.sender_id == viewer_id, Message.receiver_id == other_user_id),
                and_(Message.sender_id == other_user_id, Message.receiver_id == viewer_id),
            )
        )
        .order_by(Message.created_at, Message.id)
    ).all()
    return [message_to_out(m) for m in messages]


def get_group_messages(db: Session, viewer_id: UUID, group_id: UUID) -> list[MessageOut]:
    """All messages of a group, oldest first. Current members only.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER)
    """
    get_group_or_404(db, group_id)
    require_member(db, group_id, viewer_id)

    messages = db.scalars(
        select(Message)
        .options(*_WITH_REFS)
        .where(Message.group_id == group_id)
        .order_by(Message.created_at, Message.id)
    ).all()
    return [message_to_out(m) for m in messages]


def list_my_group_messages(db: Session, viewer_id: UUID) -> list[MessageOut]:
    """Messages from every group the viewer currently belongs to, newest first."""
    group_ids = viewer_group_ids(db, viewer_id)
    if not group_ids:
        return []

    messages = db.scalars(
        select(Message)
        .options(*_WITH_REFS)
        .where(Message.group_id.in_(group_ids))
        .order_by(Message.created_at.desc(), Message.id.desc())
    ).all()
    return [message_to_out(m) for m in messages]
