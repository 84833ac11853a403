"""
A founder's relationship contacts.

Rows come from the contacts CSV import; this module reads, edits and
deletes them, always scoped to the owning founder. It also lists the
directory firms an admin has sent to the founder.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from venturematch.core.models import FounderContact, FounderFirmContact, InvestorFirm

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = [
    "company_name",
    "full_name",
    "email",
    "investor_type",
    "stage",
    "phone",
    "linkedin_url",
    "notes",
    "hq_country",
    "hq_city",
    "hq_geography",
]


def contact_to_dict(contact: FounderContact) -> Dict[str, Any]:
    data = {"id": contact.id, "founder_id": contact.founder_id}
    for field in EDITABLE_FIELDS:
        data[field] = getattr(contact, field)
    data["created_at"] = contact.created_at.isoformat() if contact.created_at else None
    data["last_modified"] = contact.last_modified.isoformat() if contact.last_modified else None
    return data


class FounderContactService:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, contact_id: int, founder_id: int) -> Optional[FounderContact]:
        return (
            self.db.query(FounderContact)
            .filter(FounderContact.id == contact_id, FounderContact.founder_id == founder_id)
            .first()
        )

    def list_contacts(self, founder_id: int, stage: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.db.query(FounderContact).filter(FounderContact.founder_id == founder_id)
        if stage:
            query = query.filter(FounderContact.stage == stage)
        rows = query.order_by(FounderContact.created_at.desc(), FounderContact.id.desc()).all()
        return [contact_to_dict(r) for r in rows]

    def get_contact_by_email(self, email: str, founder_id: int) -> Optional[Dict[str, Any]]:
        row = (
            self.db.query(FounderContact)
            .filter(FounderContact.founder_id == founder_id, FounderContact.email == email.strip())
            .order_by(FounderContact.id)
            .first()
        )
        return contact_to_dict(row) if row else None

    def update_contact(self, contact_id: int, founder_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update the given fields of one of the founder's contacts.

        Raises:
            LookupError: No such contact for this founder
            ValueError: The update would leave the contact without email, name and company
        """
        contact = self._owned(contact_id, founder_id)
        if not contact:
            raise LookupError(f"Contact {contact_id} not found")

        for field in EDITABLE_FIELDS:
            if field in data:
                value = data[field]
                setattr(contact, field, (value.strip() or None) if isinstance(value, str) else value)
        if not (contact.email or contact.full_name or contact.company_name):
            self.db.rollback()
            raise ValueError("A contact needs an email, a name or a company")

        self.db.commit()
        return contact_to_dict(contact)

    def update_contact_status(self, contact_id: int, founder_id: int, status: str) -> Dict[str, Any]:
        if not (status or "").strip():
            raise ValueError("Status is required")
        return self.update_contact(contact_id, founder_id, {"stage": status})

    def delete_contact(self, contact_id: int, founder_id: int) -> bool:
        """Returns False when the founder has no such contact."""
        deleted = (
            self.db.query(FounderContact)
            .filter(FounderContact.id == contact_id, FounderContact.founder_id == founder_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Founder {founder_id} deleted contact {contact_id}")
        return deleted > 0

    def list_shared_firms(self, founder_id: int) -> List[Dict[str, Any]]:
        """Directory firms an admin sent to this founder, newest first."""
        rows = (
            self.db.query(FounderFirmContact, InvestorFirm)
            .join(InvestorFirm, InvestorFirm.id == FounderFirmContact.investor_firm_id)
            .filter(FounderFirmContact.founder_id == founder_id)
            .order_by(FounderFirmContact.created_at.desc(), FounderFirmContact.id.desc())
            .all()
        )
        return [
            {
                "id": link.id,
                "firm_id": firm.id,
                "firm_name": firm.firm_name,
                "website_url": firm.website_url,
                "investor_type": firm.investor_type,
                "hq_location": firm.hq_location,
                "stage_focus": firm.stage_focus,
                "industries_invested": firm.industries_invested,
                "added_by_platform": link.added_by_platform,
                "created_at": link.created_at.isoformat() if link.created_at else None,
            }
            for link, firm in rows
        ]
