"""
Fundraising rounds and founder-tracked investors.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from venturematch.core.errors import ConflictError, is_unique_violation
from venturematch.core.models import (
    FundraisingCurrent, FundraisingPast, FundraisingInvestor,
)

logger = logging.getLogger(__name__)

FUNDING_TYPES = {"equity", "debt", "mixed"}


def parse_numeric_string(value: Any) -> Optional[float]:
    """'1,500,000' -> 1500000.0. Blank -> None; anything unparsable raises ValueError."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    value = str(value).replace(",", "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Invalid number: {value}")


def current_round_to_dict(row: FundraisingCurrent) -> Dict[str, Any]:
    return {
        "company_id": row.company_id,
        "capital_reason": row.capital_reason,
        "raising_amount": row.raising_amount,
        "latest_valuation": row.latest_valuation,
        "current_valuation": row.current_valuation,
        "funding_type": row.funding_type,
        "equity_percentage": row.equity_percentage,
        "interest_rate": row.interest_rate,
        "equity_amount": row.equity_amount,
        "debt_amount": row.debt_amount,
        "min_investment": row.min_investment,
        "max_investment": row.max_investment,
        "closing_time": row.closing_time,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def investor_to_dict(row: FundraisingInvestor) -> Dict[str, Any]:
    return {
        "id": row.id,
        "company_id": row.company_id,
        "first_name": row.first_name,
        "last_name": row.last_name,
        "company": row.company or "",
        "email": row.email or "",
        "type": row.type or "",
        "stage": row.stage or "",
        "country": row.country or "",
        "city": row.city or "",
        "amount": row.amount,
        "valuation": row.valuation,
        "share_price": row.share_price,
        "num_shares": row.num_shares,
        "investment_type": row.investment_type,
        "is_investment": row.is_investment,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


class FundraisingService:
    """Current round, past fundraising and the founder's investor list."""

    def __init__(self, db: Session):
        self.db = db

    def get_current_round(self, company_id: int) -> Optional[Dict[str, Any]]:
        row = (
            self.db.query(FundraisingCurrent)
            .filter(FundraisingCurrent.company_id == company_id)
            .first()
        )
        return current_round_to_dict(row) if row else None

    def save_current_round(self, company_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert the company's current round. Conditional fields follow funding_type."""
        funding_type = data.get("funding_type") or "equity"
        if funding_type not in FUNDING_TYPES:
            raise ValueError(f"funding_type must be one of {sorted(FUNDING_TYPES)}")

        row = (
            self.db.query(FundraisingCurrent)
            .filter(FundraisingCurrent.company_id == company_id)
            .first()
        )
        if not row:
            row = FundraisingCurrent(company_id=company_id)
            self.db.add(row)

        row.capital_reason = data.get("capital_reason")
        row.raising_amount = parse_numeric_string(data.get("raising_amount"))
        row.latest_valuation = parse_numeric_string(data.get("latest_valuation"))
        row.current_valuation = parse_numeric_string(data.get("current_valuation"))
        row.funding_type = funding_type
        row.equity_percentage = parse_numeric_string(data.get("equity_percentage"))
        row.min_investment = parse_numeric_string(data.get("min_investment"))
        row.max_investment = parse_numeric_string(data.get("max_investment"))
        row.closing_time = data.get("closing_time")

        if funding_type in ("debt", "mixed"):
            row.interest_rate = parse_numeric_string(data.get("interest_rate"))
        if funding_type == "mixed":
            row.equity_amount = parse_numeric_string(data.get("equity_amount"))
            row.debt_amount = parse_numeric_string(data.get("debt_amount"))

        self.db.commit()
        logger.info(f"Saved current round for company {company_id} ({funding_type})")
        return current_round_to_dict(row)

    def get_past_fundraising(self, company_id: int) -> Optional[Dict[str, Any]]:
        row = (
            self.db.query(FundraisingPast)
            .filter(FundraisingPast.company_id == company_id)
            .first()
        )
        if not row:
            return None
        return {
            "company_id": row.company_id,
            "previous_raised": row.previous_raised,
            "paid_percentage": row.paid_percentage or 0,
            "investor_types": row.investor_types or ["angel"],
        }

    def save_past_fundraising(self, company_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        row = (
            self.db.query(FundraisingPast)
            .filter(FundraisingPast.company_id == company_id)
            .first()
        )
        if not row:
            row = FundraisingPast(company_id=company_id)
            self.db.add(row)

        row.previous_raised = parse_numeric_string(data.get("previous_raised"))
        row.paid_percentage = data.get("paid_percentage")
        row.investor_types = list(data.get("investor_types") or [])
        self.db.commit()
        return self.get_past_fundraising(company_id)

    def list_investors(self, user_id: int, company_id: int) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(FundraisingInvestor)
            .filter(
                FundraisingInvestor.company_id == company_id,
                FundraisingInvestor.user_id == user_id,
            )
            .order_by(FundraisingInvestor.created_at.desc(), FundraisingInvestor.id.desc())
            .all()
        )
        return [investor_to_dict(r) for r in rows]

    def add_investor(self, user_id: int, company_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        if not (data.get("first_name") or "").strip():
            raise ValueError("First name is required")

        row = FundraisingInvestor(
            user_id=user_id,
            company_id=company_id,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            company=data.get("company") or None,
            email=data.get("email") or None,
            type=data.get("type") or None,
            stage=data.get("stage") or None,
            country=data.get("country") or None,
            city=data.get("city") or None,
            amount=parse_numeric_string(data.get("amount")),
            valuation=parse_numeric_string(data.get("valuation")),
            num_shares=data.get("num_shares"),
            is_investment=bool(data.get("is_investment")),
        )
        if row.amount and row.num_shares:
            row.share_price = row.amount / row.num_shares
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise ConflictError("An investor with this email already exists")
            raise
        return investor_to_dict(row)

    def delete_investor(self, user_id: int, investor_id: int) -> bool:
        """Delete one of the user's investor rows. Returns False when nothing matched."""
        deleted = (
            self.db.query(FundraisingInvestor)
            .filter(
                FundraisingInvestor.id == investor_id,
                FundraisingInvestor.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0
