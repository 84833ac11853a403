"""
Company matching for investors.

Keyword and industry terms become case-insensitive LIKE filters over the
companies table, ORed together: a company is returned when any term hits
its name or either description, or any industry hits its short description.

match_score is display-only. It is deterministic: 70 plus a share of 29
proportional to how many (term, field) pairs a company hits.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from venturematch.core.database import LIKE_ESCAPE, contains_pattern
from venturematch.core.errors import ConflictError, is_unique_violation
from venturematch.core.models import Company, InvestorMatchHistory, InvestorSavedMatch
from venturematch.companies.profiles import company_to_dict

logger = logging.getLogger(__name__)

MATCH_LIMIT = 20
HISTORY_LIMIT = 5
MIN_SCORE = 70
MAX_SCORE = 99

SEARCH_FIELDS = ("company_name", "short_description", "full_description")


def split_keywords(keywords: Optional[str]) -> List[str]:
    return [t for t in re.split(r"[\s,]+", keywords or "") if t]


def match_score(company: Company, terms: List[str], industries: List[str]) -> int:
    """Score in [70, 99]; 70 when nothing was searched for."""
    possible = len(terms) * len(SEARCH_FIELDS) + len(industries)
    if possible == 0:
        return MIN_SCORE

    hits = 0
    for term in terms:
        needle = term.lower()
        for field in SEARCH_FIELDS:
            if needle in (getattr(company, field) or "").lower():
                hits += 1
    short = (company.short_description or "").lower()
    hits += sum(1 for industry in industries if industry.lower() in short)

    return MIN_SCORE + round((MAX_SCORE - MIN_SCORE) * hits / possible)


class CompanyMatcher:
    def __init__(self, db: Session):
        self.db = db

    def get_company_matches(self, investor_id: int, criteria: Dict[str, Any]) -> List[Dict[str, Any]]:
        terms = split_keywords(criteria.get("keywords"))
        industries = [i for i in (criteria.get("industries") or []) if i]

        filters = []
        for term in terms:
            like = contains_pattern(term)
            filters.extend(getattr(Company, f).ilike(like, escape=LIKE_ESCAPE) for f in SEARCH_FIELDS)
        for industry in industries:
            filters.append(Company.short_description.ilike(contains_pattern(industry), escape=LIKE_ESCAPE))

        query = self.db.query(Company)
        if filters:
            query = query.filter(or_(*filters))
        companies = query.order_by(Company.id).limit(MATCH_LIMIT).all()

        try:
            self.db.add(InvestorMatchHistory(
                investor_id=investor_id,
                search_query=criteria.get("keywords") or "",
                search_criteria=criteria,
                results_count=len(companies),
                saved_count=0,
            ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving match history: {e}")

        results = []
        for company in companies:
            item = company_to_dict(company)
            item["match_score"] = match_score(company, terms, industries)
            results.append(item)

        # stable: equal scores keep id order
        results.sort(key=lambda r: r["match_score"], reverse=True)
        logger.info(f"Investor {investor_id} matched {len(results)} companies for {terms}")
        return results

    def save_company_match(self, investor_id: int, company_id: int) -> Dict[str, Any]:
        if not self.db.get(Company, company_id):
            raise LookupError(f"Company {company_id} not found")

        try:
            self.db.add(InvestorSavedMatch(investor_id=investor_id, company_id=company_id))
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_unique_violation(e):
                raise ConflictError("You have already saved this company")
            raise

        latest = (
            self.db.query(InvestorMatchHistory)
            .filter(InvestorMatchHistory.investor_id == investor_id)
            .order_by(InvestorMatchHistory.created_at.desc(), InvestorMatchHistory.id.desc())
            .first()
        )
        if latest:
            try:
                latest.saved_count = (latest.saved_count or 0) + 1
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error updating match history saved count: {e}")

        return {"success": True}

    def get_match_history(self, investor_id: int, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        rows = (
            self.db.query(InvestorMatchHistory)
            .filter(InvestorMatchHistory.investor_id == investor_id)
            .order_by(InvestorMatchHistory.created_at.desc(), InvestorMatchHistory.id.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": r.id,
                "search_query": r.search_query,
                "search_criteria": r.search_criteria,
                "results_count": r.results_count,
                "saved_count": r.saved_count,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ]
