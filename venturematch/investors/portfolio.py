"""
Investor portfolio companies.

The API speaks the camelCase shape the portfolio screens use; columns are
snake_case. Rows belong to one investor and are only changed by that investor.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from venturematch.core.models import InvestorPortfolioCompany

logger = logging.getLogger(__name__)

# API key -> column
FIELD_MAP = {
    "name": "company_name",
    "website": "company_website",
    "logoUrl": "company_logo_url",
    "investmentDate": "investment_date",
    "investmentAmount": "investment_amount",
    "stage": "investment_stage",
    "ownershipPercentage": "ownership_percentage",
    "industry": "company_industry",
    "location": "company_location",
    "notes": "notes",
}
NUMERIC_FIELDS = {"investmentAmount", "ownershipPercentage"}


def portfolio_to_dict(row: InvestorPortfolioCompany) -> Dict[str, Any]:
    data = {"id": row.id}
    for key, column in FIELD_MAP.items():
        data[key] = getattr(row, column)
    return data


def _column_values(company: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for key, column in FIELD_MAP.items():
        value = company.get(key)
        if key in NUMERIC_FIELDS:
            try:
                values[column] = float(value) if value is not None and value != "" else None
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be a number")
        else:
            values[column] = value or None
    return values


class PortfolioService:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, investor_id: int, company_id: int) -> InvestorPortfolioCompany:
        row = self.db.get(InvestorPortfolioCompany, company_id)
        if not row:
            raise LookupError(f"Portfolio company {company_id} not found")
        if row.investor_id != investor_id:
            raise PermissionError("Unauthorized access to portfolio company")
        return row

    def list_companies(self, investor_id: int) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(InvestorPortfolioCompany)
            .filter(InvestorPortfolioCompany.investor_id == investor_id)
            .order_by(InvestorPortfolioCompany.created_at.desc(), InvestorPortfolioCompany.id.desc())
            .all()
        )
        return [portfolio_to_dict(r) for r in rows]

    def add_company(self, investor_id: int, company: Dict[str, Any]) -> Dict[str, Any]:
        if not (company.get("name") or "").strip():
            raise ValueError("Company name is required")

        row = InvestorPortfolioCompany(investor_id=investor_id, **_column_values(company))
        self.db.add(row)
        self.db.commit()
        logger.info(f"Investor {investor_id} added portfolio company {row.company_name} (id={row.id})")
        return portfolio_to_dict(row)

    def update_company(self, investor_id: int, company_id: int, company: Dict[str, Any]) -> Dict[str, Any]:
        """Replace every field of the row; fields left out are cleared."""
        if not (company.get("name") or "").strip():
            raise ValueError("Company name is required")

        row = self._owned(investor_id, company_id)
        for column, value in _column_values(company).items():
            setattr(row, column, value)
        row.updated_at = datetime.utcnow()
        self.db.commit()
        return portfolio_to_dict(row)

    def delete_company(self, investor_id: int, company_id: int) -> None:
        row = self._owned(investor_id, company_id)
        self.db.delete(row)
        self.db.commit()
        logger.info(f"Investor {investor_id} deleted portfolio company {company_id}")
