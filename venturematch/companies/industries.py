"""
Company industry selections.

Saving replaces every company_industries row for the company (delete all,
then insert). The two statements are not wrapped in one transaction.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from venturematch.companies.profiles import CompanyService
from venturematch.core.models import CompanyIndustry

logger = logging.getLogger(__name__)


class IndustryService:
    def __init__(self, db: Session):
        self.db = db
        self.companies = CompanyService(db)

    def save_company_industries(
        self,
        user_id: int,
        selected_categories: Dict[str, List[str]],
        company_id: Optional[int] = None,
    ) -> Dict[str, object]:
        """
        Replace the company's industries.

        selected_categories maps category id -> subcategory ids. A category
        with no subcategories is stored as a single row with a null subcategory.
        """
        company = self.companies.resolve_company(user_id, company_id)

        self.db.query(CompanyIndustry).filter(
            CompanyIndustry.company_id == company.id
        ).delete(synchronize_session=False)
        self.db.commit()

        entries = []
        for category_id, subcategory_ids in selected_categories.items():
            if not subcategory_ids:
                entries.append(CompanyIndustry(
                    company_id=company.id, category_id=category_id, subcategory_id=None
                ))
                continue
            for subcategory_id in subcategory_ids:
                entries.append(CompanyIndustry(
                    company_id=company.id, category_id=category_id, subcategory_id=subcategory_id
                ))

        if entries:
            self.db.add_all(entries)
            self.db.commit()

        logger.info(f"Saved {len(entries)} industry rows for company {company.id}")
        return {"success": True, "message": "Industry information saved successfully"}

    def get_company_industries(
        self, user_id: int, company_id: Optional[int] = None
    ) -> Dict[str, List[str]]:
        company = self.companies.resolve_company(user_id, company_id)

        rows = (
            self.db.query(CompanyIndustry)
            .filter(CompanyIndustry.company_id == company.id)
            .order_by(CompanyIndustry.id)
            .all()
        )

        selected: Dict[str, List[str]] = {}
        for row in rows:
            subs = selected.setdefault(row.category_id, [])
            if row.subcategory_id:
                subs.append(row.subcategory_id)
        return selected
