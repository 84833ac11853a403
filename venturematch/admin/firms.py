"""
Admin CRUD over the investor firm directory.
"""

import logging
import math
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from venturematch.core.database import LIKE_ESCAPE, contains_pattern
from venturematch.core.errors import ConflictError
from venturematch.core.models import (
    FounderFirmContact, FounderProfile, InvestorFirm, InvestorContact, InvestorSource,
)
from venturematch.investors.sources import (
    ADMIN_SOURCES, is_valid_source, source_description, to_investor_source,
)

logger = logging.getLogger(__name__)

FIRM_FIELDS = [
    "firm_name",
    "website_url",
    "linkedin_url",
    "investor_type",
    "hq_location",
    "other_locations",
    "fund_size",
    "stage_focus",
    "check_size_range",
    "geographies_invested",
    "industries_invested",
    "sub_industries_invested",
    "portfolio_companies",
    "investment_thesis_summary",
    "fund_vintage_year",
    "recent_exits",
    "activity_score",
]


def firm_to_dict(firm: InvestorFirm) -> Dict[str, Any]:
    data = {"id": firm.id}
    for field in FIRM_FIELDS:
        data[field] = getattr(firm, field)
    data["source"] = firm.source or InvestorSource.ADMIN.value
    data["created_by_id"] = firm.created_by_id
    data["created_at"] = firm.created_at.isoformat() if firm.created_at else None
    data["last_updated_at"] = firm.last_updated_at.isoformat() if firm.last_updated_at else None
    return data


def admin_source(source: Optional[str]) -> str:
    """Coerce to a source the admin section may write: 'admin' or 'ai'."""
    value = to_investor_source(source)
    if value not in ADMIN_SOURCES:
        logger.warning(f"Invalid source '{source}' for admin section, defaulting to 'admin'")
        return InvestorSource.ADMIN.value
    return value


class FirmService:
    def __init__(self, db: Session):
        self.db = db

    def list_firms(
        self, page: int = 1, limit: int = 25, q: Optional[str] = None, source: Optional[str] = None
    ) -> Dict[str, Any]:
        page = max(page, 1)
        limit = max(limit, 1)

        query = self.db.query(InvestorFirm)
        if q:
            like = contains_pattern(q.strip())
            query = query.filter(or_(
                InvestorFirm.firm_name.ilike(like, escape=LIKE_ESCAPE),
                InvestorFirm.investor_type.ilike(like, escape=LIKE_ESCAPE),
                InvestorFirm.hq_location.ilike(like, escape=LIKE_ESCAPE),
            ))
        if source and is_valid_source(source):
            query = query.filter(InvestorFirm.source == source)

        total = query.count()
        firms = (
            query.order_by(InvestorFirm.last_updated_at.desc(), InvestorFirm.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "firms": [firm_to_dict(f) for f in firms],
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": max(1, math.ceil(total / limit)),
        }

    def create_firms(self, investors: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Insert a batch of firms.

        The batch is rejected as a whole if any firm_name already exists.

        Raises:
            ValueError: Empty batch, or an entry without a firm name
            ConflictError: One or more firm names already exist
        """
        if not investors:
            raise ValueError("No investor data provided")

        firm_names = [(inv.get("firm_name") or "").strip() for inv in investors]
        if not any(firm_names):
            raise ValueError("No valid firm names found in the data")
        unnamed = [str(i) for i, name in enumerate(firm_names, start=1) if not name]
        if unnamed:
            raise ValueError(f"Missing firm_name for entries: {', '.join(unnamed)}")

        existing = [
            row[0]
            for row in self.db.query(InvestorFirm.firm_name).filter(InvestorFirm.firm_name.in_(firm_names))
        ]
        if existing:
            raise ConflictError(
                "Cannot save investors. The following firm(s) already exist in the database: "
                + ", ".join(existing)
            )

        now = datetime.utcnow()
        firms = []
        for inv in investors:
            firm = InvestorFirm(**{f: inv.get(f) for f in FIRM_FIELDS})
            firm.firm_name = firm.firm_name.strip()
            firm.source = admin_source(inv.get("source"))
            firm.created_by_id = None
            firm.last_updated_at = now
            firms.append(firm)

        self.db.add_all(firms)
        self.db.commit()

        source_stats = dict(Counter(f.source for f in firms))
        breakdown = ", ".join(f"{source_description(s)}: {n}" for s, n in source_stats.items())
        logger.info(f"Saved {len(firms)} investor firms ({source_stats})")

        return {
            "success": True,
            "savedInvestors": [firm_to_dict(f) for f in firms],
            "sourceStats": source_stats,
            "message": f"Successfully saved {len(firms)} investor firms with sources: {breakdown}",
        }

    def update_firm(self, firm_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        firm = self.db.get(InvestorFirm, firm_id)
        if not firm:
            raise LookupError(f"Firm {firm_id} not found")

        for field in FIRM_FIELDS:
            if field in data:
                setattr(firm, field, data[field])
        if "source" in data:
            firm.source = admin_source(data["source"])
        if not (firm.firm_name or "").strip():
            raise ValueError("firm_name cannot be empty")

        firm.last_updated_at = datetime.utcnow()
        self.db.commit()
        return firm_to_dict(firm)

    def delete_firms(self, firm_ids: List[int]) -> Dict[str, Any]:
        if not firm_ids:
            raise ValueError("No firm IDs provided")

        self.db.query(FounderFirmContact).filter(FounderFirmContact.investor_firm_id.in_(firm_ids)).delete(
            synchronize_session=False
        )
        # contacts outlive their firm
        self.db.query(InvestorContact).filter(InvestorContact.firm_id.in_(firm_ids)).update(
            {InvestorContact.firm_id: None}, synchronize_session=False
        )
        deleted = (
            self.db.query(InvestorFirm)
            .filter(InvestorFirm.id.in_(firm_ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()

        logger.info(f"Deleted {deleted} of {len(firm_ids)} requested firms")
        suffix = "" if len(firm_ids) == 1 else "s"
        return {
            "success": True,
            "deletedCount": deleted,
            "message": f"Successfully deleted {deleted} investor firm{suffix}",
        }

    def send_to_founders(self, founder_ids: List[int], firm_ids: List[int]) -> Dict[str, Any]:
        """
        Share directory firms with founders: one founder_contacts row per
        (founder, firm) pair. Pairs that already exist are skipped and counted.

        Raises:
            ValueError: Empty id list, or an id that does not exist
        """
        if not founder_ids:
            raise ValueError("Founder IDs are required and must be a non-empty array")
        if not firm_ids:
            raise ValueError("Investor firm IDs are required and must be a non-empty array")
        founder_ids = list(dict.fromkeys(founder_ids))
        firm_ids = list(dict.fromkeys(firm_ids))

        founders = self.db.query(FounderProfile).filter(FounderProfile.id.in_(founder_ids)).all()
        found = {f.id for f in founders}
        missing = [str(i) for i in founder_ids if i not in found]
        if missing:
            raise ValueError(f"Some founders were not found: {', '.join(missing)}")

        firms = self.db.query(InvestorFirm).filter(InvestorFirm.id.in_(firm_ids)).all()
        found = {f.id for f in firms}
        missing = [str(i) for i in firm_ids if i not in found]
        if missing:
            raise ValueError(f"Some investor firms were not found: {', '.join(missing)}")

        existing = {
            (row.founder_id, row.investor_firm_id)
            for row in self.db.query(FounderFirmContact).filter(
                FounderFirmContact.founder_id.in_(founder_ids),
                FounderFirmContact.investor_firm_id.in_(firm_ids),
            )
        }
        pairs = [(f, i) for f in founder_ids for i in firm_ids]
        new_rows = [
            FounderFirmContact(founder_id=f, investor_firm_id=i, added_by_platform=True)
            for f, i in pairs
            if (f, i) not in existing
        ]
        duplicates = len(pairs) - len(new_rows)

        if new_rows:
            self.db.add_all(new_rows)
            self.db.commit()
        logger.info(f"Sent {len(firm_ids)} firms to {len(founder_ids)} founders: {len(new_rows)} new, {duplicates} skipped")

        founder_names = {f.id: f"{f.first_name or ''} {f.last_name or ''}".strip() for f in founders}
        firm_names = {f.id: f.firm_name for f in firms}

        if new_rows:
            message = (
                f"Successfully sent {_plural(len(firms), 'investor firm')} to {_plural(len(founders), 'founder')}. "
                f"{_plural(len(new_rows), 'new contact')} created"
            )
            message += f", {_plural(duplicates, 'duplicate')} skipped." if duplicates else "."
        else:
            message = "All selected investor firms have already been sent to the selected founders. No new contacts created."

        return {
            "success": True,
            "message": message,
            "insertedCount": len(new_rows),
            "duplicateCount": duplicates,
            "totalAttempted": len(pairs),
            "details": {
                "founders": [founder_names[i] for i in founder_ids],
                "firms": [firm_names[i] for i in firm_ids],
                "insertedContacts": [
                    {
                        "id": row.id,
                        "founder_name": founder_names[row.founder_id],
                        "firm_name": firm_names[row.investor_firm_id],
                        "created_at": row.created_at.isoformat() if row.created_at else None,
                    }
                    for row in new_rows
                ],
            },
        }


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
