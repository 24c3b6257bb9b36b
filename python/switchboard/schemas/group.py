"""Group and membership Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from switchboard.schemas.user import UserSummary

MAX_GROUP_NAME_LENGTH = 255


# =============================================================================
# Response Schemas
# =============================================================================


class GroupOut(BaseModel):
    """Response schema for a group.

    members is populated on single-group reads and on listings; it is the
    membership snapshot at read time.
    """

    id: UUID
    name: str
    description: str | None = None
    member_count: int
    members: list[UserSummary] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupMemberOut(BaseModel):
    """Response schema for a membership change."""

    group_id: UUID
    user_id: UUID
    created_at: datetime


# =============================================================================
# Request Schemas
# =============================================================================


class CreateGroupRequest(BaseModel):
    """Request body for POST /groups."""

    name: str = Field(..., min_length=1, max_length=MAX_GROUP_NAME_LENGTH)
    description: str | None = None


class UpdateGroupRequest(BaseModel):
    """Request body for PATCH /groups/{id}. Omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=MAX_GROUP_NAME_LENGTH)
    description: str | None = None


class AddMemberRequest(BaseModel):
    """Request body for POST /groups/{id}/users."""

    user_id: UUID
