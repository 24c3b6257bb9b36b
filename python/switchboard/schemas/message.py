"""Message Pydantic schemas.

Exactly-one-of(receiver_id, group_id) is enforced by the message service,
not here, so that direct service callers get the same E_INVALID_TARGET
error as HTTP callers.
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from switchboard.schemas.user import UserSummary

MAX_MESSAGE_CONTENT_LENGTH = 20000


# =============================================================================
# Response Schemas
# =============================================================================


class GroupRef(BaseModel):
    """Compact group reference embedded in group messages."""

    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class MessageOut(BaseModel):
    """Response schema for a message.

    sender/receiver/group are resolved references; receiver and group are
    mutually exclusive, matching receiver_id/group_id.
    """

    id: UUID
    content: str
    sender_id: UUID
    receiver_id: UUID | None = None
    group_id: UUID | None = None
    read_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    sender: UserSummary | None = None
    receiver: UserSummary | None = None
    group: GroupRef | None = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Request Schemas
# =============================================================================


class SendMessageRequest(BaseModel):
    """Request body for POST /messages.

    `recipient_id` is accepted as an alias of `receiver_id`.
    """

    content: str
    receiver_id: UUID | None = Field(
        default=None, validation_alias=AliasChoices("receiver_id", "recipient_id")
    )
    group_id: UUID | None = None


class UpdateMessageRequest(BaseModel):
    """Request body for PATCH /messages/{id}. Only content is editable."""

    content: str
