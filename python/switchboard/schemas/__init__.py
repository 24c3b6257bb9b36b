"""Pydantic schemas for Switchboard API."""

from switchboard.schemas.contact import AddContactRequest, ContactOut
from switchboard.schemas.group import (
    AddMemberRequest,
    CreateGroupRequest,
    GroupMemberOut,
    GroupOut,
    UpdateGroupRequest,
)
from switchboard.schemas.message import (
    GroupRef,
    MessageOut,
    SendMessageRequest,
    UpdateMessageRequest,
)
from switchboard.schemas.notification import (
    CreateNotificationRequest,
    MarkAllReadOut,
    NotificationOut,
    SendToGroupRequest,
    UpdateNotificationRequest,
)
from switchboard.schemas.user import (
    AuthTokenOut,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UserOut,
    UserSummary,
)

__all__ = [
    "AddContactRequest",
    "ContactOut",
    "AddMemberRequest",
    "CreateGroupRequest",
    "GroupMemberOut",
    "GroupOut",
    "UpdateGroupRequest",
    "GroupRef",
    "MessageOut",
    "SendMessageRequest",
    "UpdateMessageRequest",
    "CreateNotificationRequest",
    "MarkAllReadOut",
    "NotificationOut",
    "SendToGroupRequest",
    "UpdateNotificationRequest",
    "AuthTokenOut",
    "ChangePasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "UserOut",
    "UserSummary",
]
