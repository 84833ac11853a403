"""
Founder company profiles.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from venturematch.core.models import Company, FounderProfile

logger = logging.getLogger(__name__)

COMPANY_FIELDS = [
    "company_name",
    "short_description",
    "full_description",
    "website",
    "country",
    "city",
]


def company_to_dict(company: Company) -> Dict[str, Any]:
    return {
        "id": company.id,
        "owner_id": company.owner_id,
        "company_name": company.company_name,
        "short_description": company.short_description,
        "full_description": company.full_description,
        "logo_url": company.logo_url,
        "cover_image_url": company.cover_image_url,
        "website": company.website,
        "country": company.country,
        "city": company.city,
        "created_at": company.created_at.isoformat() if company.created_at else None,
        "updated_at": company.updated_at.isoformat() if company.updated_at else None,
    }


class CompanyService:
    """Company lookup, ownership checks and profile updates."""

    def __init__(self, db: Session):
        self.db = db

    def list_user_companies(self, user_id: int) -> List[Company]:
        return (
            self.db.query(Company)
            .filter(Company.owner_id == user_id)
            .order_by(Company.created_at, Company.id)
            .all()
        )

    def get_company(self, company_id: int) -> Optional[Company]:
        return self.db.get(Company, company_id)

    def resolve_company(self, user_id: int, company_id: Optional[int] = None) -> Company:
        """
        Pick the company a founder is acting on.

        Order: explicit id, the profile's active company, the first owned
        company. Raises LookupError when the user owns none and
        PermissionError when the chosen company is not theirs.
        """
        target_id = company_id

        if target_id is None:
            profile = self.db.get(FounderProfile, user_id)
            if profile and profile.active_company_id:
                target_id = profile.active_company_id

        if target_id is None:
            companies = self.list_user_companies(user_id)
            if not companies:
                raise LookupError("No companies found")
            if len(companies) > 1:
                logger.warning(
                    f"User {user_id} owns {len(companies)} companies and has no active one; "
                    f"using company {companies[0].id}"
                )
            target_id = companies[0].id

        company = (
            self.db.query(Company)
            .filter(Company.id == target_id, Company.owner_id == user_id)
            .first()
        )
        if not company:
            logger.warning(f"Company access verification failed for user {user_id}, company {target_id}")
            raise PermissionError("You don't have access to this company")
        return company

    def upsert_company(
        self, user_id: int, data: Dict[str, Any], company_id: Optional[int] = None
    ) -> Company:
        """Update an owned company, or create one when company_id is None."""
        if company_id is not None:
            company = self.resolve_company(user_id, company_id)
        else:
            if not (data.get("company_name") or "").strip():
                raise ValueError("Company name is required")
            company = Company(owner_id=user_id)
            self.db.add(company)

        for field in COMPANY_FIELDS:
            if field in data and data[field] is not None:
                setattr(company, field, data[field])

        self.db.commit()
        self.db.refresh(company)

        profile = self.db.get(FounderProfile, user_id)
        if profile and not profile.active_company_id:
            profile.active_company_id = company.id
            self.db.commit()

        return company

    def set_active_company(self, user_id: int, company_id: int) -> Company:
        company = self.resolve_company(user_id, company_id)
        profile = self.db.get(FounderProfile, user_id)
        if not profile:
            profile = FounderProfile(id=user_id)
            self.db.add(profile)
        profile.active_company_id = company.id
        self.db.commit()
        return company

    def set_logo_url(self, user_id: int, company_id: int, url: str) -> Company:
        company = self.resolve_company(user_id, company_id)
        company.logo_url = url
        self.db.commit()
        return company

    def set_cover_url(self, user_id: int, company_id: int, url: str) -> Company:
        company = self.resolve_company(user_id, company_id)
        company.cover_image_url = url
        self.db.commit()
        return company
