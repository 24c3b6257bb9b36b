"""Identity endpoints.

/register and /login are public (see auth.middleware.PUBLIC_PATHS); the rest
require a bearer token. Routes are transport-only and call exactly one
service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from switchboard.api.deps import Viewer, get_db, get_viewer
from switchboard.responses import success_response
from switchboard.schemas.user import ChangePasswordRequest, LoginRequest, RegisterRequest
from switchboard.services import users as users_service

router = APIRouter()


@router.post("/register", status_code=201)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create an account and return its first access token."""
    result = users_service.register(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        device_name=body.device_name,
    )
    return success_response(result.model_dump(mode="json"))


@router.post("/login")
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Exchange credentials for a device access token."""
    result = users_service.login(
        db, email=body.email, password=body.password, device_name=body.device_name
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/user")
def get_user(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get the authenticated user's profile."""
    result = users_service.get_current_user(db, viewer.user_id)
    return success_response(result.model_dump(mode="json"))


@router.post("/logout")
def logout(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Revoke the token used for this request. Other devices stay logged in."""
    users_service.logout(db, viewer.user_id, viewer.token_id)
    return success_response({"message": "Logged out"})


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Change the authenticated user's password."""
    users_service.change_password(
        db,
        viewer.user_id,
        current_password=body.current_password,
        new_password=body.new_password,
        new_password_confirmation=body.new_password_confirmation,
    )
    return success_response({"message": "Password changed"})
