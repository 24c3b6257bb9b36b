"""Notification Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

MAX_TITLE_LENGTH = 255


class NotificationOut(BaseModel):
    """Response schema for a notification.

    user_id is always the concrete recipient; group_id is provenance only.
    """

    id: UUID
    title: str
    message: str
    user_id: UUID
    group_id: UUID | None = None
    read_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkAllReadOut(BaseModel):
    """Response for POST /notifications/read-all."""

    updated: int


class CreateNotificationRequest(BaseModel):
    """Request body for POST /notifications. Exactly one of user_id / group_id."""

    title: str
    message: str
    user_id: UUID | None = None
    group_id: UUID | None = None


class SendToGroupRequest(BaseModel):
    """Request body for POST /notifications/send-to-group."""

    title: str
    message: str
    group_id: UUID


class UpdateNotificationRequest(BaseModel):
    """Request body for PATCH /notifications/{id}.

    Only title and message are editable; read state changes go through
    the mark-read endpoints.
    """

    title: str | None = None
    message: str | None = None
