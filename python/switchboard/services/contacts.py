"""Allowed-contact service layer.

Manages the viewer's directed allow-list and exposes the allow-list as data
for the contact policy. The policy itself lives in
switchboard.services.contact_policy and takes no session.
"""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from switchboard.db.models import AllowedContact
from switchboard.db.session import transaction
from switchboard.errors import ApiErrorCode, ConflictError, InvalidRequestError, NotFoundError
from switchboard.logging import get_logger
from switchboard.schemas.contact import ContactOut
from switchboard.schemas.user import UserSummary
from switchboard.services.users import get_user_or_404

logger = get_logger(__name__)


def contact_to_out(contact: AllowedContact) -> ContactOut:
    """Convert AllowedContact ORM model to ContactOut schema."""
    return ContactOut(
        id=contact.id,
        contact_id=contact.contact_id,
        contact=UserSummary.model_validate(contact.contact),
        created_at=contact.created_at,
    )


def load_allow_list(db: Session, owner_id: UUID) -> set[UUID]:
    """Return the set of contact ids the owner has allowed."""
    query = select(AllowedContact.contact_id).where(AllowedContact.user_id == owner_id)
    return set(db.execute(query).scalars().all())


def list_contacts(db: Session, viewer_id: UUID) -> list[ContactOut]:
    """List the viewer's allowed contacts, oldest first."""
    rows = db.scalars(
        select(AllowedContact)
        .options(joinedload(AllowedContact.contact))
        .where(AllowedContact.user_id == viewer_id)
        .order_by(AllowedContact.created_at, AllowedContact.id)
    ).all()
    return [contact_to_out(row) for row in rows]


def add_contact(db: Session, viewer_id: UUID, contact_id: UUID) -> ContactOut:
    """Add a user to the viewer's allow-list.

    Raises:
        InvalidRequestError(E_INVALID_REQUEST): contact_id is the viewer.
        NotFoundError(E_USER_NOT_FOUND): Contact user does not exist.
        ConflictError(E_CONTACT_EXISTS): Contact already on the list.
    """
    if contact_id == viewer_id:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, "You cannot add yourself as a contact"
        )
    get_user_or_404(db, contact_id)

    try:
        with transaction(db):
            contact = AllowedContact(user_id=viewer_id, contact_id=contact_id)
            db.add(contact)
            db.flush()
    except IntegrityError as exc:
        raise ConflictError(ApiErrorCode.E_CONTACT_EXISTS, "Contact already added") from exc

    db.refresh(contact, attribute_names=["contact"])
    logger.info("contact_added", contact_id=str(contact_id))
    return contact_to_out(contact)


def remove_contact(db: Session, viewer_id: UUID, contact_id: UUID) -> None:
    """Remove a user from the viewer's allow-list.

    Raises:
        NotFoundError(E_CONTACT_NOT_FOUND): Contact is not on the list.
    """
    with transaction(db):
        result = db.execute(
            delete(AllowedContact).where(
                AllowedContact.user_id == viewer_id,
                AllowedContact.contact_id == contact_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError(ApiErrorCode.E_CONTACT_NOT_FOUND, "Contact not found")

    logger.info("contact_removed", contact_id=str(contact_id))
