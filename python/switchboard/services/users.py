"""Identity service layer.

Registration, login, logout, password change and user lookup. Tokens are
issued per device; logging out revokes only the token used for the request.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from switchboard.auth.passwords import hash_password, needs_rehash, verify_password
from switchboard.auth.verifier import generate_token, hash_token
from switchboard.config import get_settings
from switchboard.db.models import AccessToken, User
from switchboard.db.session import transaction
from switchboard.errors import (
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    UnauthenticatedError,
)
from switchboard.logging import get_logger
from switchboard.schemas.user import AuthTokenOut, UserOut

logger = get_logger(__name__)


def user_to_out(user: User) -> UserOut:
    """Convert User ORM model to UserOut schema."""
    return UserOut(id=user.id, name=user.name, email=user.email, created_at=user.created_at)


def get_user_or_404(db: Session, user_id: UUID) -> User:
    """Load a user.

    Raises:
        NotFoundError(E_USER_NOT_FOUND): If the user does not exist.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user


def _validate_password(password: str) -> None:
    min_length = get_settings().password_min_length
    if len(password) < min_length:
        raise InvalidRequestError(
            ApiErrorCode.E_PASSWORD_INVALID,
            f"Password must be at least {min_length} characters",
        )


def _issue_token(db: Session, user_id: UUID, device_name: str) -> str:
    """Create an access token row and return the plaintext token.

    Must be called inside a transaction.
    """
    token = generate_token()
    db.add(AccessToken(user_id=user_id, name=device_name.strip(), token_hash=hash_token(token)))
    return token


def register(
    db: Session, name: str, email: str, password: str, device_name: str
) -> AuthTokenOut:
    """Create a user and issue their first token.

    Raises:
        InvalidRequestError(E_NAME_INVALID): Name is blank.
        InvalidRequestError(E_PASSWORD_INVALID): Password is too short.
        ConflictError(E_EMAIL_TAKEN): Email already registered.
    """
    name = name.strip()
    if not name:
        raise InvalidRequestError(ApiErrorCode.E_NAME_INVALID, "Name must not be blank")
    _validate_password(password)

    existing = db.scalar(select(User.id).where(User.email == email))
    if existing is not None:
        raise ConflictError(ApiErrorCode.E_EMAIL_TAKEN, "Email is already registered")

    try:
        with transaction(db):
            user = User(name=name, email=email, password_hash=hash_password(password))
            db.add(user)
            db.flush()
            token = _issue_token(db, user.id, device_name)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email
        raise ConflictError(ApiErrorCode.E_EMAIL_TAKEN, "Email is already registered") from exc

    logger.info("user_registered", registered_user_id=str(user.id))
    return AuthTokenOut(token=token, user=user_to_out(user))


def login(db: Session, email: str, password: str, device_name: str) -> AuthTokenOut:
    """Verify credentials and issue a token for the device.

    Raises:
        UnauthenticatedError(E_INVALID_CREDENTIALS): Unknown email or wrong password.
    """
    user = db.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("login_failed")
        raise UnauthenticatedError(
            ApiErrorCode.E_INVALID_CREDENTIALS, "The provided credentials are incorrect"
        )

    with transaction(db):
        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
        token = _issue_token(db, user.id, device_name)

    logger.info("user_logged_in", login_user_id=str(user.id), device_name=device_name)
    return AuthTokenOut(token=token, user=user_to_out(user))


def logout(db: Session, viewer_id: UUID, token_id: UUID) -> None:
    """Revoke the token used for the current request."""
    with transaction(db):
        db.execute(
            delete(AccessToken).where(
                AccessToken.id == token_id,
                AccessToken.user_id == viewer_id,
            )
        )
    logger.info("user_logged_out", token_id=str(token_id))


def get_current_user(db: Session, viewer_id: UUID) -> UserOut:
    """Return the viewer's profile.

    Raises:
        NotFoundError(E_USER_NOT_FOUND): The user row vanished after token issue.
    """
    return user_to_out(get_user_or_404(db, viewer_id))


def change_password(
    db: Session,
    viewer_id: UUID,
    current_password: str,
    new_password: str,
    new_password_confirmation: str,
) -> None:
    """Change the viewer's password.

    Other devices stay logged in; their tokens are not revoked.

    Raises:
        UnauthenticatedError(E_INVALID_CREDENTIALS): Current password is wrong.
        InvalidRequestError(E_PASSWORD_INVALID): New password too short, equal to
            the current one, or confirmation mismatch.
    """
    user = get_user_or_404(db, viewer_id)
    if not verify_password(current_password, user.password_hash):
        raise UnauthenticatedError(
            ApiErrorCode.E_INVALID_CREDENTIALS, "Current password is incorrect"
        )

    _validate_password(new_password)
    if new_password == current_password:
        raise InvalidRequestError(
            ApiErrorCode.E_PASSWORD_INVALID,
            "New password must differ from the current password",
        )
    if new_password != new_password_confirmation:
        raise InvalidRequestError(
            ApiErrorCode.E_PASSWORD_INVALID, "Password confirmation does not match"
        )

    with transaction(db):
        user.password_hash = hash_password(new_password)

    logger.info("password_changed")
