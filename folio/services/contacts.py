"""
Contact messages.

Public visitors create them; staff triage them. Status moves
new -> read -> replied (or closed), and `read_at` / `replied_at` are stamped
on the first transition only.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from folio.core.errors import NotFound
from folio.core.models import Contact, ContactPriority, ContactStatus
from folio.core.query import ListParams, ListQuery, Page
from folio.core.utils import utc_now

logger = logging.getLogger(__name__)

# Higher rank sorts first
PRIORITY_RANK = {
    ContactPriority.LOW.value: 0,
    ContactPriority.MEDIUM.value: 1,
    ContactPriority.HIGH.value: 2,
    ContactPriority.URGENT.value: 3,
}


class ContactService:
    """Create, triage and delete contact messages."""

    search_fields = ("name", "email", "subject", "message")

    def __init__(self, session: Session):
        self.session = session

    def get(self, contact_id: int) -> Contact:
        contact = self.session.get(Contact, contact_id)
        if contact is None:
            raise NotFound("Contact not found")
        return contact

    def create(
        self,
        data: dict[str, Any],
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
    ) -> Contact:
        contact = Contact(
            **data,
            ip_address=ip_address,
            user_agent=user_agent,
            referrer=referrer,
        )
        self.session.add(contact)
        self.session.commit()
        logger.info(f"Contact message {contact.id} received from {ip_address}")
        return contact

    def list(self, params: ListParams, **filters: Any) -> Page:
        priority_rank = case(PRIORITY_RANK, value=Contact.priority, else_=0)
        query = (
            ListQuery(
                Contact,
                params,
                search_fields=self.search_fields,
                leading_order=(priority_rank.desc(),),
            )
            .filter_equal("status", filters.get("status"))
            .filter_equal("category", filters.get("category"))
            .filter_equal("priority", filters.get("priority"))
            .search(filters.get("search"))
        )
        return query.fetch(self.session)

    def open(self, contact_id: int) -> Contact:
        """Staff read of a message: a new message becomes read."""
        contact = self.get(contact_id)
        if contact.status == ContactStatus.NEW.value:
            self._transition(contact, ContactStatus.READ)
            self.session.commit()
        return contact

    def _transition(self, contact: Contact, status: ContactStatus) -> None:
        contact.status = status.value
        if status == ContactStatus.READ and contact.read_at is None:
            contact.read_at = utc_now()
        if status == ContactStatus.REPLIED and contact.replied_at is None:
            contact.replied_at = utc_now()

    def update_status(
        self,
        contact_id: int,
        status: ContactStatus | None = None,
        priority: ContactPriority | None = None,
        notes: str | None = None,
        notes_set: bool = False,
    ) -> Contact:
        contact = self.get(contact_id)

        if status is not None:
            self._transition(contact, ContactStatus(status))
        if priority is not None:
            contact.priority = ContactPriority(priority).value
        if notes_set:
            contact.notes = notes

        self.session.commit()
        return contact

    def mark_spam(self, contact_id: int) -> Contact:
        contact = self.get(contact_id)
        contact.is_spam = True
        contact.status = ContactStatus.CLOSED.value
        self.session.commit()
        logger.info(f"Contact {contact_id} marked as spam")
        return contact

    def delete(self, contact_id: int) -> None:
        contact = self.get(contact_id)
        self.session.delete(contact)
        self.session.commit()
        logger.info(f"Contact {contact_id} deleted")

    def stats(self) -> dict[str, int]:
        by_status = dict(
            self.session.execute(
                select(Contact.status, func.count()).group_by(Contact.status)
            ).all()
        )
        total = self.session.scalar(select(func.count()).select_from(Contact)) or 0
        spam = self.session.scalar(
            select(func.count()).select_from(Contact).where(Contact.is_spam.is_(True))
        ) or 0

        return {
            "total": total,
            **{status.value: by_status.get(status.value, 0) for status in ContactStatus},
            "spam": spam,
        }
