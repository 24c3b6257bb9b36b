"""Notification routes.

Routes are transport-only:
- Extract viewer from request.state
- Call exactly one service function
- Return success(...) or raise ApiError

IMPORTANT: Static routes (/notifications/send-to-group, /notifications/read-all)
must be registered BEFORE dynamic routes (/notifications/{notification_id}).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from switchboard.api.deps import Viewer, get_db, get_viewer
from switchboard.responses import success_response
from switchboard.schemas.notification import (
    CreateNotificationRequest,
    MarkAllReadOut,
    SendToGroupRequest,
    UpdateNotificationRequest,
)
from switchboard.services import notifications as notifications_service

router = APIRouter()


@router.get("/notifications")
def list_notifications(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    unread: Annotated[bool, Query(description="Only unread notifications")] = False,
) -> dict:
    """List the viewer's notifications, newest first."""
    result = notifications_service.list_my_notifications(db, viewer.user_id, unread_only=unread)
    return success_response([n.model_dump(mode="json") for n in result])


@router.post("/notifications", status_code=201)
def create_notification(
    body: CreateNotificationRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a notification for one user, or fan out to a group.

    Always returns the array of created rows.
    """
    result = notifications_service.create_notification(
        db,
        viewer.user_id,
        title=body.title,
        message=body.message,
        user_id=body.user_id,
        group_id=body.group_id,
    )
    return success_response([n.model_dump(mode="json") for n in result])


# =============================================================================
# Static routes (MUST be before /notifications/{notification_id})
# =============================================================================


@router.post("/notifications/send-to-group", status_code=201)
def send_to_group(
    body: SendToGroupRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Fan a notification out to every current member of a group."""
    result = notifications_service.send_to_group(
        db, viewer.user_id, group_id=body.group_id, title=body.title, message=body.message
    )
    return success_response([n.model_dump(mode="json") for n in result])


@router.post("/notifications/read-all")
def mark_all_read(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Mark all of the viewer's unread notifications read."""
    updated = notifications_service.mark_all_read(db, viewer.user_id)
    return success_response(MarkAllReadOut(updated=updated).model_dump(mode="json"))


# =============================================================================
# Single-notification routes
# =============================================================================


@router.get("/notifications/{notification_id}")
def get_notification(
    notification_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get one of the viewer's notifications."""
    result = notifications_service.get_notification(db, viewer.user_id, notification_id)
    return success_response(result.model_dump(mode="json"))


@router.api_route("/notifications/{notification_id}", methods=["PATCH", "PUT"])
def update_notification(
    notification_id: UUID,
    body: UpdateNotificationRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Edit a notification's title and/or message. Recipient only."""
    result = notifications_service.update_notification(
        db, viewer.user_id, notification_id, body.model_dump(exclude_unset=True)
    )
    return success_response(result.model_dump(mode="json"))


@router.delete("/notifications/{notification_id}", status_code=204)
def delete_notification(
    notification_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a notification. Recipient only."""
    notifications_service.delete_notification(db, viewer.user_id, notification_id)
    return Response(status_code=204)


@router.post("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Mark a notification read. Recipient only; repeat calls keep read_at."""
    result = notifications_service.mark_notification_read(db, viewer.user_id, notification_id)
    return success_response(result.model_dump(mode="json"))


@router.get("/users/{user_id}/notifications")
def list_user_notifications(
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    unread: Annotated[bool, Query(description="Only unread notifications")] = False,
) -> dict:
    """List a user's notifications. Only the user themself may call this."""
    result = notifications_service.list_user_notifications(
        db, viewer.user_id, user_id, unread_only=unread
    )
    return success_response([n.model_dump(mode="json") for n in result])
