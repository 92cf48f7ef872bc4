"""
Contact messages: public submission, staff triage.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from folio.api.schemas import (
    ContactCreate,
    ContactOut,
    ContactReceipt,
    ContactStats,
    ContactStatusUpdate,
    Message,
    Paginated,
    paginated,
    to_record,
)
from folio.auth.context import AuthContext
from folio.auth.policies import require_admin, require_editor
from folio.core.models import ContactCategory, ContactPriority, ContactStatus
from folio.core.query import ListParams, list_params
from folio.services.contacts import ContactService
from folio.storage.database import get_session

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.post("", response_model=ContactReceipt, status_code=201)
def submit_contact(
    data: ContactCreate,
    request: Request,
    session: Session = Depends(get_session),
):
    """Public form; provenance comes from the request, never the body."""
    contact = ContactService(session).create(
        to_record(data),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        referrer=request.headers.get("referer"),
    )
    return ContactReceipt.model_validate(contact)


@router.get("", response_model=Paginated[ContactOut])
def list_contacts(
    params: ListParams = Depends(list_params),
    status: ContactStatus | None = None,
    category: ContactCategory | None = None,
    priority: ContactPriority | None = None,
    search: str | None = None,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    page = ContactService(session).list(
        params,
        status=status,
        category=category,
        priority=priority,
        search=search,
    )
    return paginated(page, ContactOut)


@router.get("/stats", response_model=ContactStats)
def contact_stats(
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    return ContactStats(**ContactService(session).stats())


@router.get("/{contact_id}", response_model=ContactOut)
def get_contact(
    contact_id: int,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    return ContactOut.model_validate(ContactService(session).open(contact_id))


@router.put("/{contact_id}/status", response_model=ContactOut)
def update_contact_status(
    contact_id: int,
    data: ContactStatusUpdate,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    contact = ContactService(session).update_status(
        contact_id,
        status=data.status,
        priority=data.priority,
        notes=data.notes,
        notes_set="notes" in data.model_fields_set,
    )
    return ContactOut.model_validate(contact)


@router.put("/{contact_id}/spam", response_model=ContactOut)
def mark_contact_spam(
    contact_id: int,
    ctx: AuthContext = Depends(require_editor),
    session: Session = Depends(get_session),
):
    return ContactOut.model_validate(ContactService(session).mark_spam(contact_id))


@router.delete("/{contact_id}", response_model=Message)
def delete_contact(
    contact_id: int,
    ctx: AuthContext = Depends(require_admin),
    session: Session = Depends(get_session),
):
    ContactService(session).delete(contact_id)
    return Message(message="Contact deleted successfully")
