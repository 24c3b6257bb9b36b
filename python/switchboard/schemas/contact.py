"""Allowed-contact Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from switchboard.schemas.user import UserSummary


class ContactOut(BaseModel):
    """An entry of the viewer's allow-list."""

    id: UUID
    contact_id: UUID
    contact: UserSummary
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AddContactRequest(BaseModel):
    """Request body for POST /allowed-contacts."""

    contact_id: UUID
