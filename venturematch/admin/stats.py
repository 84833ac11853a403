"""
Admin statistics aggregators.

Each stats object is assembled from several independent count / group-by
queries. The total count is critical and propagates its failure; every other
query degrades to an empty value with a logged warning.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from venturematch.core.models import InvestorProfile, InvestorFirm, InvestorSource

logger = logging.getLogger(__name__)

TOP_N = 5
GROWTH_MONTHS = 6
RECENT_DAYS = 30
MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def month_start(year: int, month: int) -> datetime:
    """First instant of a month; month may run outside 1..12."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1)


def month_label(dt: datetime) -> str:
    return f"{MONTH_ABBR[dt.month - 1]} {dt.year}"


def top_counts(values: List[Optional[str]], key: str, n: int = TOP_N) -> List[Dict[str, Any]]:
    """[{key: value, "count": n}, ...] for the n most frequent non-empty values."""
    counts = Counter(v for v in values if v)
    return [{key: value, "count": count} for value, count in counts.most_common(n)]


class AdminStats:
    """Read-only statistics for the admin dashboard cards."""

    def __init__(self, db: Session):
        self.db = db

    def _optional(self, label: str, query: Callable[[], Any], default: Any) -> Any:
        try:
            return query()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Stats query '{label}' failed, using default: {e}")
            return default

    def _count_profiles(self, *criteria) -> int:
        return self.db.query(func.count(InvestorProfile.id)).filter(*criteria).scalar() or 0

    def get_investor_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        first_of_month = month_start(now.year, now.month)

        # Critical
        total = self._count_profiles()

        admin_added = self._optional(
            "adminAdded", lambda: self._count_profiles(InvestorProfile.created_by_admin.is_(True)), 0
        )
        user_registered = self._optional(
            "userRegistered", lambda: self._count_profiles(InvestorProfile.created_by_admin.is_(False)), 0
        )
        this_month = self._optional(
            "thisMonth", lambda: self._count_profiles(InvestorProfile.created_at >= first_of_month), 0
        )

        countries = self._optional(
            "topCountries",
            lambda: [r[0] for r in self.db.query(InvestorProfile.country)
                     .filter(InvestorProfile.country.isnot(None))],
            [],
        )
        categories = self._optional(
            "topCategories",
            lambda: [r[0] for r in self.db.query(InvestorProfile.investor_category)
                     .filter(InvestorProfile.investor_category.isnot(None))],
            [],
        )

        growth_data = []
        for offset in range(GROWTH_MONTHS - 1, -1, -1):
            start = month_start(now.year, now.month - offset)
            end = month_start(now.year, now.month - offset + 1)
            count = self._optional(
                f"growth {month_label(start)}",
                lambda: self._count_profiles(
                    InvestorProfile.created_at >= start, InvestorProfile.created_at < end
                ),
                None,
            )
            if count is not None:
                growth_data.append({"month": month_label(start), "count": count})

        stats = {
            "total": total,
            "adminAdded": admin_added,
            "userRegistered": user_registered,
            "thisMonth": this_month,
            "insights": {
                "topCountries": top_counts(countries, "country"),
                "topCategories": top_counts(categories, "category"),
                "growthData": growth_data,
            },
        }
        logger.info(
            f"Investor stats: total={total} admin={admin_added} "
            f"user={user_registered} this_month={this_month}"
        )
        return stats

    def get_firm_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()

        # Critical
        total = self.db.query(func.count(InvestorFirm.id)).scalar() or 0

        def by_source() -> Dict[str, int]:
            rows = self.db.query(InvestorFirm.source, func.count(InvestorFirm.id)).group_by(InvestorFirm.source)
            counts: Dict[str, int] = {}
            for source, count in rows:
                key = source or InvestorSource.ADMIN.value
                counts[key] = counts.get(key, 0) + count
            return counts

        source_counts = self._optional("by source", by_source, {})

        recent_growth = self._optional(
            "recentGrowth",
            lambda: self.db.query(func.count(InvestorFirm.id))
            .filter(InvestorFirm.last_updated_at >= now - timedelta(days=RECENT_DAYS))
            .scalar() or 0,
            0,
        )
        types = self._optional(
            "topTypes",
            lambda: [r[0] for r in self.db.query(InvestorFirm.investor_type)
                     .filter(InvestorFirm.investor_type.isnot(None))],
            [],
        )
        locations = self._optional(
            "topLocations",
            lambda: [r[0] for r in self.db.query(InvestorFirm.hq_location)
                     .filter(InvestorFirm.hq_location.isnot(None))],
            [],
        )

        stats = {
            "total": total,
            "adminUploaded": source_counts.get(InvestorSource.ADMIN.value, 0),
            "foundersAdded": source_counts.get(InvestorSource.FOUNDER.value, 0),
            "selfRegistered": source_counts.get(InvestorSource.INVESTOR.value, 0),
            "aiAdded": source_counts.get(InvestorSource.AI.value, 0),
            "insights": {
                "topTypes": top_counts(types, "type"),
                "topLocations": top_counts(locations, "location"),
                "recentGrowth": recent_growth,
            },
        }
        logger.info(f"Firm stats: total={total} by_source={source_counts} recent={recent_growth}")
        return stats
