"""
Cap table aggregation.

Ownership is a point-in-time ratio of each investment against the single
stored current-round valuation; there is no dilution or waterfall model.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from venturematch.core.models import FundraisingCurrent, FundraisingInvestor

logger = logging.getLogger(__name__)


def ownership_percentage(amount: Optional[float], valuation: Optional[float]) -> float:
    """amount / valuation as a percentage, two decimals; 0 without a positive valuation."""
    if not valuation or valuation <= 0:
        return 0
    return round((amount or 0) / valuation * 100, 2)


def investor_display_name(row: FundraisingInvestor) -> str:
    name = f"{row.first_name or ''} {row.last_name or ''}".strip()
    return name or row.company or "Unknown Investor"


class CaptableService:
    def __init__(self, db: Session):
        self.db = db

    def _current_round(self, company_id: int) -> Optional[FundraisingCurrent]:
        return (
            self.db.query(FundraisingCurrent)
            .filter(FundraisingCurrent.company_id == company_id)
            .first()
        )

    def _investments(self, company_id: int) -> List[FundraisingInvestor]:
        return (
            self.db.query(FundraisingInvestor)
            .filter(
                FundraisingInvestor.company_id == company_id,
                FundraisingInvestor.is_investment.is_(True),
            )
            .order_by(FundraisingInvestor.created_at.desc(), FundraisingInvestor.id.desc())
            .all()
        )

    def get_captable_investors(self, company_id: int) -> List[Dict[str, Any]]:
        rows = self._investments(company_id)
        current = self._current_round(company_id)
        valuation = (current.current_valuation if current else None) or 0

        return [
            {
                "id": row.id,
                "investor_name": investor_display_name(row),
                "investment_date": row.created_at.date().isoformat() if row.created_at else "",
                "round_type": row.stage or "N/A",
                "security_type": row.type or "N/A",
                "valuation": row.valuation,
                "share_price": row.share_price,
                "shares": row.num_shares,
                "investment_amount": row.amount or 0,
                "ownership_percentage": ownership_percentage(row.amount, valuation),
                "growth_percentage": 0,
                "company_id": row.company_id,
                "user_id": row.user_id,
                "created_at": row.created_at.isoformat() if row.created_at else None,
                "updated_at": row.updated_at.isoformat() if row.updated_at else None,
            }
            for row in rows
        ]

    def get_captable_summary(self, company_id: int) -> Dict[str, float]:
        total_equity = 0.0
        total_debt = 0.0
        for row in self._investments(company_id):
            if row.type == "debt":
                total_debt += row.amount or 0
            else:
                total_equity += row.amount or 0

        current = self._current_round(company_id)
        return {
            "total_equity": total_equity,
            "total_debt": total_debt,
            "open_for_investment": (current.raising_amount if current else None) or 0,
        }
