"""Message routes.

Routes are transport-only:
- Extract viewer from request.state
- Call exactly one service function
- Return success(...) or raise ApiError

/groups/{group_id}/messages and /user/group-messages also live here since
they return messages.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from switchboard.api.deps import Viewer, get_db, get_viewer
from switchboard.responses import success_response
from switchboard.schemas.message import SendMessageRequest, UpdateMessageRequest
from switchboard.services import messages as messages_service

router = APIRouter()


@router.get("/messages")
def list_messages(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List messages the viewer sent or received, newest first."""
    result = messages_service.list_my_messages(db, viewer.user_id)
    return success_response([m.model_dump(mode="json") for m in result])


@router.post("/messages", status_code=201)
def send_message(
    body: SendMessageRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Send a direct or group message.

    Exactly one of receiver_id (alias recipient_id) or group_id is required.
    """
    result = messages_service.send_message(
        db,
        viewer.user_id,
        content=body.content,
        receiver_id=body.receiver_id,
        group_id=body.group_id,
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/messages/{message_id}")
def get_message(
    message_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a message visible to the viewer."""
    result = messages_service.get_message(db, viewer.user_id, message_id)
    return success_response(result.model_dump(mode="json"))


@router.api_route("/messages/{message_id}", methods=["PATCH", "PUT"])
def update_message(
    message_id: UUID,
    body: UpdateMessageRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit a message's content. Sender only."""
    result = messages_service.update_message(db, viewer.user_id, message_id, body.content)
    return success_response(result.model_dump(mode="json"))


@router.delete("/messages/{message_id}", status_code=204)
def delete_message(
    message_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a message. Sender only."""
    messages_service.delete_message(db, viewer.user_id, message_id)
    return Response(status_code=204)


@router.post("/messages/{message_id}/read")
def mark_message_read(
    message_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Mark a direct message read. Receiver only; repeat calls keep read_at."""
    result = messages_service.mark_message_read(db, viewer.user_id, message_id)
    return success_response(result.model_dump(mode="json"))


@router.get("/conversations/{user_id}")
def get_conversation(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Direct messages between the viewer and another user, oldest first."""
    result = messages_service.get_conversation(db, viewer.user_id, user_id)
    return success_response([m.model_dump(mode="json") for m in result])


@router.get("/groups/{group_id}/messages")
def get_group_messages(
    group_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """All messages of a group, oldest first. Current members only."""
    result = messages_service.get_group_messages(db, viewer.user_id, group_id)
    return success_response([m.model_dump(mode="json") for m in result])


@router.get("/user/group-messages")
def list_my_group_messages(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Messages from all of the viewer's groups, newest first."""
    result = messages_service.list_my_group_messages(db, viewer.user_id)
    return success_response([m.model_dump(mode="json") for m in result])
