"""
Investor directory enrichment.

Finds firms and contacts with missing public data and applies enrichment
payloads supplied by the admin. Batch requests only hand out job ids;
there is no worker behind them.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from venturematch.core.models import InvestorFirm, InvestorContact
from venturematch.admin.firms import firm_to_dict

logger = logging.getLogger(__name__)

FIRM_ENRICHMENT_FIELDS = {
    "website_url",
    "linkedin_url",
    "fund_size",
    "check_size_range",
    "industries_invested",
    "geographies_invested",
    "investment_thesis_summary",
    "recent_exits",
    "activity_score",
}
CONTACT_ENRICHMENT_FIELDS = {"linkedin_url", "phone"}
ENRICHMENT_TYPES = {"firm", "contact"}


def contact_to_dict(contact: InvestorContact) -> Dict[str, Any]:
    return {
        "id": contact.id,
        "firm_id": contact.firm_id,
        "investor_profile_id": contact.investor_profile_id,
        "full_name": contact.full_name,
        "email": contact.email,
        "title": contact.title,
        "role_type": contact.role_type,
        "linkedin_url": contact.linkedin_url,
        "phone": contact.phone,
        "verified": contact.verified,
        "source": contact.source,
    }


class EnrichmentService:
    def __init__(self, db: Session):
        self.db = db

    def get_firms_needing_enrichment(self, limit: int = 10) -> List[Dict[str, Any]]:
        firms = (
            self.db.query(InvestorFirm)
            .filter(or_(
                InvestorFirm.website_url.is_(None),
                InvestorFirm.linkedin_url.is_(None),
                InvestorFirm.fund_size.is_(None),
            ))
            .order_by(InvestorFirm.id)
            .limit(limit)
            .all()
        )
        return [firm_to_dict(f) for f in firms]

    def get_contacts_needing_enrichment(self, limit: int = 10) -> List[Dict[str, Any]]:
        contacts = (
            self.db.query(InvestorContact)
            .filter(or_(InvestorContact.linkedin_url.is_(None), InvestorContact.phone.is_(None)))
            .order_by(InvestorContact.id)
            .limit(limit)
            .all()
        )
        return [contact_to_dict(c) for c in contacts]

    def enrich_firm(self, firm_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        firm = self.db.get(InvestorFirm, firm_id)
        if not firm:
            raise LookupError(f"Firm {firm_id} not found")

        for field, value in data.items():
            if field in FIRM_ENRICHMENT_FIELDS:
                setattr(firm, field, value)
        firm.last_updated_at = datetime.utcnow()
        self.db.commit()

        logger.info(f"Enriched firm {firm_id} with {sorted(set(data) & FIRM_ENRICHMENT_FIELDS)}")
        return firm_to_dict(firm)

    def enrich_contact(self, contact_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        contact = self.db.get(InvestorContact, contact_id)
        if not contact:
            raise LookupError(f"Contact {contact_id} not found")

        for field, value in data.items():
            if field in CONTACT_ENRICHMENT_FIELDS:
                setattr(contact, field, value)
        self.db.commit()
        return contact_to_dict(contact)

    def batch_enrich(self, items: List[Dict[str, Any]]) -> List[str]:
        """Issue a job id per item. Nothing consumes them."""
        job_ids = []
        for item in items:
            if item.get("type") not in ENRICHMENT_TYPES:
                raise ValueError(f"Invalid type '{item.get('type')}'. Use 'firm' or 'contact'")
            job_id = f"job_{uuid.uuid4().hex[:12]}"
            logger.info(f"Created enrichment job {job_id} for {item['type']} {item.get('id')}")
            job_ids.append(job_id)
        return job_ids
