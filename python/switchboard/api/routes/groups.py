"""Group routes.

Routes are transport-only:
- Extract viewer from request.state
- Call exactly one service function
- Return success(...) or raise ApiError

PATCH and PUT share one handler; both apply only the fields present in the
body.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from switchboard.api.deps import Viewer, get_db, get_viewer
from switchboard.responses import success_response
from switchboard.schemas.group import AddMemberRequest, CreateGroupRequest, UpdateGroupRequest
from switchboard.services import groups as groups_service

router = APIRouter()


@router.get("/groups")
def list_groups(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """List all groups with their members."""
    result = groups_service.list_groups(db, viewer.user_id)
    return success_response([g.model_dump(mode="json") for g in result])


@router.post("/groups", status_code=201)
def create_group(
    body: CreateGroupRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a group. The creator becomes its first member."""
    result = groups_service.create_group(
        db, viewer.user_id, name=body.name, description=body.description
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/groups/{group_id}")
def get_group(
    group_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get a group with its members."""
    result = groups_service.get_group(db, viewer.user_id, group_id)
    return success_response(result.model_dump(mode="json"))


@router.api_route("/groups/{group_id}", methods=["PATCH", "PUT"])
def update_group(
    group_id: UUID,
    body: UpdateGroupRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Update a group's name and/or description. Members only."""
    result = groups_service.update_group(
        db, viewer.user_id, group_id, body.model_dump(exclude_unset=True)
    )
    return success_response(result.model_dump(mode="json"))


@router.delete("/groups/{group_id}", status_code=204)
def delete_group(
    group_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a group with its memberships, messages and notifications. Members only."""
    groups_service.delete_group(db, viewer.user_id, group_id)
    return Response(status_code=204)


@router.post("/groups/{group_id}/users", status_code=201)
def add_member(
    group_id: UUID,
    body: AddMemberRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Add a user to a group. Members only; 409 if already a member."""
    result = groups_service.add_member(db, viewer.user_id, group_id, body.user_id)
    return success_response(result.model_dump(mode="json"))


@router.delete("/groups/{group_id}/users/{user_id}", status_code=204)
def remove_member(
    group_id: UUID,
    user_id: UUID,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Remove a user from a group. Members only, except that anyone may leave."""
    groups_service.remove_member(db, viewer.user_id, group_id, user_id)
    return Response(status_code=204)
