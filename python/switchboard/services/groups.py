"""Group service layer.

Group CRUD and the membership registry. Groups carry no roles: any
authenticated user may list and read groups, while changing a group or its
membership requires current membership (checked with permissions.is_member).

Membership invariants:
- (group, user) is unique, enforced by the group_members primary key.
- Adding an existing pair fails with E_ALREADY_MEMBER; removing an absent
  pair fails with E_NOT_MEMBER. Neither is a silent no-op.
- Membership changes lock the group row, serializing them with group
  notification fanout.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from switchboard.auth.permissions import is_member, lock_group
from switchboard.db.models import Group, GroupMember
from switchboard.db.session import transaction
from switchboard.errors import (
    ApiErrorCode,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from switchboard.logging import get_logger
from switchboard.schemas.group import MAX_GROUP_NAME_LENGTH, GroupMemberOut, GroupOut
from switchboard.schemas.user import UserSummary
from switchboard.services.users import get_user_or_404

logger = get_logger(__name__)

# Fields a caller may change on an existing group
UPDATABLE_GROUP_FIELDS = ("name", "description")


# =============================================================================
# Helper Functions
# =============================================================================


def group_to_out(group: Group) -> GroupOut:
    """Convert Group ORM model (with members loaded) to GroupOut schema."""
    members = [UserSummary.model_validate(m.user) for m in group.members]
    return GroupOut(
        id=group.id,
        name=group.name,
        description=group.description,
        member_count=len(members),
        members=members,
        created_at=group.created_at,
        updated_at=group.updated_at,
    )


def get_group_or_404(db: Session, group_id: UUID) -> Group:
    """Load a group.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND): If the group does not exist.
    """
    group = db.get(Group, group_id)
    if group is None:
        raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")
    return group


def require_member(db: Session, group_id: UUID, viewer_id: UUID) -> None:
    """Raise unless the viewer is currently a member of the group.

    Raises:
        ForbiddenError(E_NOT_GROUP_MEMBER)
    """
    if not is_member(db, group_id, viewer_id):
        raise ForbiddenError(ApiErrorCode.E_NOT_GROUP_MEMBER, "You are not a member of this group")


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name or len(name) > MAX_GROUP_NAME_LENGTH:
        raise InvalidRequestError(
            ApiErrorCode.E_NAME_INVALID,
            f"Name must be 1-{MAX_GROUP_NAME_LENGTH} characters",
        )
    return name


def _load_group_with_members(db: Session, group_id: UUID) -> Group:
    group = db.scalar(
        select(Group)
        .options(selectinload(Group.members).selectinload(GroupMember.user))
        .where(Group.id == group_id)
        .execution_options(populate_existing=True)
    )
    if group is None:
        raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")
    return group


# =============================================================================
# Group CRUD
# =============================================================================


def list_groups(db: Session, viewer_id: UUID) -> list[GroupOut]:
    """List all groups with their members, oldest first."""
    groups = db.scalars(
        select(Group)
        .options(selectinload(Group.members).selectinload(GroupMember.user))
        .order_by(Group.created_at, Group.id)
    ).all()
    return [group_to_out(g) for g in groups]


def get_group(db: Session, viewer_id: UUID, group_id: UUID) -> GroupOut:
    """Get a single group with its members.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND)
    """
    return group_to_out(_load_group_with_members(db, group_id))


def create_group(
    db: Session, viewer_id: UUID, name: str, description: str | None = None
) -> GroupOut:
    """Create a group. The creator becomes its first member.

    Raises:
        InvalidRequestError(E_NAME_INVALID): Name blank or too long.
    """
    name = _validate_name(name)

    with transaction(db):
        group = Group(name=name, description=description)
        db.add(group)
        db.flush()
        db.add(GroupMember(group_id=group.id, user_id=viewer_id))

    logger.info("group_created", group_id=str(group.id))
    return group_to_out(_load_group_with_members(db, group.id))


def update_group(
    db: Session, viewer_id: UUID, group_id: UUID, changes: dict[str, Any]
) -> GroupOut:
    """Update a group's name and/or description.

    Only keys in UPDATABLE_GROUP_FIELDS are applied; anything else in
    `changes` is ignored.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER)
        InvalidRequestError(E_NAME_INVALID)
    """
    group = get_group_or_404(db, group_id)
    require_member(db, group_id, viewer_id)

    updates = {k: v for k, v in changes.items() if k in UPDATABLE_GROUP_FIELDS}
    if "name" in updates:
        if updates["name"] is None:
            raise InvalidRequestError(ApiErrorCode.E_NAME_INVALID, "Name must not be null")
        updates["name"] = _validate_name(updates["name"])

    with transaction(db):
        for field, value in updates.items():
            setattr(group, field, value)

    logger.info("group_updated", group_id=str(group_id), fields=sorted(updates))
    return group_to_out(_load_group_with_members(db, group_id))


def delete_group(db: Session, viewer_id: UUID, group_id: UUID) -> None:
    """Delete a group.

    Cascades (in the database) to memberships, group messages and
    notifications that carry the group as provenance.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER)
    """
    get_group_or_404(db, group_id)
    require_member(db, group_id, viewer_id)

    with transaction(db):
        db.execute(delete(Group).where(Group.id == group_id))

    logger.info("group_deleted", group_id=str(group_id))


# =============================================================================
# Membership Registry
# =============================================================================


def add_member(db: Session, viewer_id: UUID, group_id: UUID, user_id: UUID) -> GroupMemberOut:
    """Add a user to a group. No other side effect (no join notification).

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND / E_USER_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER): Viewer is not a member.
        ConflictError(E_ALREADY_MEMBER): User already in the group.
    """
    get_user_or_404(db, user_id)

    try:
        with transaction(db):
            if lock_group(db, group_id) is None:
                raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")
            require_member(db, group_id, viewer_id)
            if is_member(db, group_id, user_id):
                raise ConflictError(
                    ApiErrorCode.E_ALREADY_MEMBER, "User is already in this group"
                )
            membership = GroupMember(group_id=group_id, user_id=user_id)
            db.add(membership)
            db.flush()
    except IntegrityError as exc:
        # Concurrent add of the same pair won the primary key
        raise ConflictError(
            ApiErrorCode.E_ALREADY_MEMBER, "User is already in this group"
        ) from exc

    logger.info("group_member_added", group_id=str(group_id), member_id=str(user_id))
    return GroupMemberOut(
        group_id=group_id, user_id=user_id, created_at=membership.created_at
    )


def remove_member(db: Session, viewer_id: UUID, group_id: UUID, user_id: UUID) -> None:
    """Remove a user from a group. A member may always remove themself.

    Raises:
        NotFoundError(E_GROUP_NOT_FOUND / E_USER_NOT_FOUND)
        ForbiddenError(E_NOT_GROUP_MEMBER): Viewer is not a member.
        ConflictError(E_NOT_MEMBER): User is not in the group.
    """
    get_user_or_404(db, user_id)

    with transaction(db):
        if lock_group(db, group_id) is None:
            raise NotFoundError(ApiErrorCode.E_GROUP_NOT_FOUND, "Group not found")
        if user_id != viewer_id:
            require_member(db, group_id, viewer_id)

        membership = db.get(GroupMember, (group_id, user_id))
        if membership is None:
            raise ConflictError(ApiErrorCode.E_NOT_MEMBER, "User is not in this group")
        db.delete(membership)

    logger.info("group_member_removed", group_id=str(group_id), member_id=str(user_id))
