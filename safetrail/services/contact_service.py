"""Emergency contact service."""

from datetime import datetime, timezone

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from safetrail.models.emergency_contact import EmergencyContact


def list_contacts(db: Session, user_id: int) -> list[EmergencyContact]:
    """List the user's contacts, primary first."""
    result = db.execute(
        select(EmergencyContact)
        .where(EmergencyContact.user_id == user_id)
        .order_by(EmergencyContact.is_primary.desc(), EmergencyContact.id)
    )
    return list(result.scalars().all())


def _get_owned(db: Session, contact_id: int, user_id: int) -> EmergencyContact:
    contact = db.get(EmergencyContact, contact_id)
    if not contact:
        raise ValueError("Contact not found")
    if contact.user_id != user_id:
        raise ValueError("Only the owner can modify this contact")
    return contact


def add_contact(
    db: Session,
    user_id: int,
    name: str,
    phone: str,
    relationship: str | None = None,
    is_primary: bool = False,
) -> EmergencyContact:
    contact = EmergencyContact(
        user_id=user_id,
        name=name.strip(),
        phone=phone.strip(),
        relationship=relationship,
        is_primary=False,
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    if is_primary:
        contact = set_primary(db, contact.id, user_id)
    return contact


def update_contact(db: Session, contact_id: int, user_id: int, updates: dict) -> EmergencyContact:
    """Apply a partial update. `is_primary=True` goes through set_primary."""
    contact = _get_owned(db, contact_id, user_id)
    make_primary = updates.pop("is_primary", None)
    for field in ("name", "phone", "relationship"):
        if field in updates:
            value = updates[field]
            setattr(contact, field, value.strip() if isinstance(value, str) else value)
    if make_primary is False:
        contact.is_primary = False
    contact.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(contact)
    if make_primary:
        contact = set_primary(db, contact.id, user_id)
    return contact


def delete_contact(db: Session, contact_id: int, user_id: int) -> None:
    contact = _get_owned(db, contact_id, user_id)
    db.delete(contact)
    db.commit()


def set_primary(db: Session, contact_id: int, user_id: int) -> EmergencyContact:
    """Make one contact primary in a single UPDATE.

    All of the user's rows are rewritten in one statement, so readers never
    see two primaries or none.
    """
    contact = _get_owned(db, contact_id, user_id)
    db.execute(
        update(EmergencyContact)
        .where(EmergencyContact.user_id == user_id)
        .values(
            is_primary=case((EmergencyContact.id == contact_id, True), else_=False),
            updated_at=datetime.now(timezone.utc),
        )
        .execution_options(synchronize_session="fetch")
    )
    db.commit()
    db.refresh(contact)
    return contact
