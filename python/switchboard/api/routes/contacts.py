"""Allowed-contact routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from switchboard.api.deps import Viewer, get_db, get_viewer
from switchboard.responses import success_response
from switchboard.schemas.contact import AddContactRequest
from switchboard.services import contacts as contacts_service

router = APIRouter()


@router.get("/allowed-contacts")
def list_contacts(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List the viewer's allow-list, oldest first."""
    result = contacts_service.list_contacts(db, viewer.user_id)
    return success_response([c.model_dump(mode="json") for c in result])


@router.post("/allowed-contacts", status_code=201)
def add_contact(
    body: AddContactRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Add a user to the viewer's allow-list.

    Once the list is non-empty, the viewer may only send direct messages to
    users on it.
    """
    result = contacts_service.add_contact(db, viewer.user_id, body.contact_id)
    return success_response(result.model_dump(mode="json"))


@router.delete("/allowed-contacts/{contact_id}", status_code=204)
def remove_contact(
    contact_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Remove a user from the viewer's allow-list."""
    contacts_service.remove_contact(db, viewer.user_id, contact_id)
    return Response(status_code=204)
