"""Emergency contacts API."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from safetrail.core.deps import get_current_user_id
from safetrail.db.session import get_db
from safetrail.schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from safetrail.services.contact_service import (
    add_contact,
    delete_contact,
    list_contacts,
    set_primary,
    update_contact,
)

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _raise_for(e: ValueError) -> None:
    detail = str(e)
    if "not found" in detail.lower():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


@router.get("", response_model=list[ContactResponse])
def list_mine(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """List emergency contacts, primary first."""
    return list_contacts(db, user_id)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create(
    data: ContactCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return add_contact(db, user_id, data.name, data.phone, data.relationship, data.is_primary)


@router.patch("/{contact_id}", response_model=ContactResponse)
def update(
    contact_id: int,
    data: ContactUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        return update_contact(db, contact_id, user_id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        _raise_for(e)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete(
    contact_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    try:
        delete_contact(db, contact_id, user_id)
    except ValueError as e:
        _raise_for(e)


@router.post("/{contact_id}/primary", response_model=ContactResponse)
def make_primary(
    contact_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Make this the single primary contact."""
    try:
        return set_primary(db, contact_id, user_id)
    except ValueError as e:
        _raise_for(e)
