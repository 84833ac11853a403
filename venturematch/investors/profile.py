"""
Investor-facing profile mutations: profile, business info, mandate, metrics
and the preference row the admin investors table filters on.

Every save is an upsert keyed on the investor's user id; concurrent saves
are last-writer-wins.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from venturematch.core.models import (
    InvestorProfile, InvestorLocation, InvestorStage, InvestorIndustry,
    InvestorMetrics, InvestorPreference,
)

logger = logging.getLogger(__name__)

PROFILE_FIELDS = [
    "investment_preference",
    "about",
    "first_name",
    "last_name",
    "email",
    "profile_image_url",
    "company_name",
    "company_url",
    "country",
    "city",
    "investor_category",
]

BUSINESS_FIELDS = [
    "company_name",
    "company_url",
    "company_logo_url",
    "country",
    "city",
    "investor_category",
]

MANDATE_FIELDS = [
    "deal_frequency",
    "funded_amount",
    "investment_range",
    "investment_sweet_spot",
    "investment_speed",
    "anonymity_preference",
    "dealflow_frequency",
    "invest_in_spvs",
    "invest_in_pre_ipos",
]

PREFERENCE_LIST_FIELDS = ["sectors", "regions", "business_type", "stage", "model", "sales_type"]

REVENUE_GROWTH_PREFERENCES = ["less-than-5", "5-10", "10-20", "more-than-20"]
BUSINESS_TYPES = ["startup", "small-business", "corporation", "non-profit"]
BUSINESS_MODELS = [
    "ecommerce",
    "online-marketplaces",
    "service-based",
    "software",
    "manufacturing",
    "wholesale",
    "franchise",
    "real-estate",
]

DEFAULT_METRICS = {
    "minGrossMargin": 0,
    "maxGrossMargin": 100,
    "minEbitdaMargin": 0,
    "maxEbitdaMargin": 100,
    "minCacLtvRatio": 1,
    "maxCacLtvRatio": 20,
    "requiresRecurringRevenue": False,
    "revenueGrowthPreference": None,
    "preferredBusinessTypes": [],
    "preferredBusinessModels": [],
}

# API key -> column
METRIC_COLUMNS = {
    "minGrossMargin": "min_gross_margin",
    "maxGrossMargin": "max_gross_margin",
    "minEbitdaMargin": "min_ebitda_margin",
    "maxEbitdaMargin": "max_ebitda_margin",
    "minCacLtvRatio": "min_cac_ltv_ratio",
    "maxCacLtvRatio": "max_cac_ltv_ratio",
}
METRIC_RANGES = [
    ("minGrossMargin", "maxGrossMargin", "Gross margin"),
    ("minEbitdaMargin", "maxEbitdaMargin", "EBITDA margin"),
    ("minCacLtvRatio", "maxCacLtvRatio", "CAC:LTV ratio"),
]


def profile_to_dict(profile: InvestorProfile) -> Dict[str, Any]:
    data = {"id": profile.id}
    for field in PROFILE_FIELDS + ["company_logo_url", "location"] + MANDATE_FIELDS:
        data[field] = getattr(profile, field)
    data["source"] = profile.source
    data["created_at"] = profile.created_at.isoformat() if profile.created_at else None
    data["updated_at"] = profile.updated_at.isoformat() if profile.updated_at else None
    return data


class InvestorProfileService:
    def __init__(self, db: Session):
        self.db = db

    def _get_or_create(self, user_id: int) -> InvestorProfile:
        profile = self.db.get(InvestorProfile, user_id)
        if not profile:
            profile = InvestorProfile(id=user_id)
            self.db.add(profile)
        return profile

    # -- profile ----------------------------------------------------------

    def get_profile(self, user_id: int) -> Optional[Dict[str, Any]]:
        profile = self.db.get(InvestorProfile, user_id)
        return profile_to_dict(profile) if profile else None

    def upsert_profile(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        profile = self._get_or_create(user_id)
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(profile, field, data[field])
        if profile.city or profile.country:
            profile.location = ", ".join(p for p in (profile.city, profile.country) if p)
        self.db.commit()
        logger.info(f"Saved investor profile {user_id}")
        return profile_to_dict(profile)

    # -- business ---------------------------------------------------------

    def get_business(self, user_id: int) -> Optional[Dict[str, Any]]:
        profile = self.db.get(InvestorProfile, user_id)
        if not profile:
            return None
        return {field: getattr(profile, field) for field in BUSINESS_FIELDS}

    def update_business(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        profile = self._get_or_create(user_id)
        for field in BUSINESS_FIELDS:
            if field in data:
                setattr(profile, field, data[field])
        self.db.commit()
        return self.get_business(user_id)

    def set_image_url(self, user_id: int, field: str, url: str) -> None:
        profile = self._get_or_create(user_id)
        setattr(profile, field, url)
        self.db.commit()

    # -- mandate ----------------------------------------------------------

    def get_mandate(self, user_id: int) -> Dict[str, Any]:
        profile = self.db.get(InvestorProfile, user_id)
        data = {field: getattr(profile, field) for field in MANDATE_FIELDS} if profile else {}

        regions = self.db.query(InvestorLocation.location).filter(InvestorLocation.investor_id == user_id)
        stages = self.db.query(InvestorStage.stage).filter(InvestorStage.investor_id == user_id)
        industries = self.db.query(InvestorIndustry.industry).filter(InvestorIndustry.investor_id == user_id)

        return {
            "data": data,
            "related_data": {
                "regions": [r[0] for r in regions.order_by(InvestorLocation.id)],
                "stages": [s[0] for s in stages.order_by(InvestorStage.id)],
                "industries": [i[0] for i in industries.order_by(InvestorIndustry.id)],
            },
        }

    def update_mandate(
        self,
        user_id: int,
        main_data: Dict[str, Any],
        regions: List[str],
        industries: List[str],
        stages: List[str],
    ) -> Dict[str, Any]:
        """
        Upsert mandate fields, then replace the three child tables.

        The profile write, the deletes and the inserts are separate
        commits. A failed child insert is logged and the save still
        reports success.
        """
        profile = self._get_or_create(user_id)
        for field in MANDATE_FIELDS:
            if field in main_data:
                setattr(profile, field, main_data[field])
        self.db.commit()

        for model in (InvestorLocation, InvestorIndustry, InvestorStage):
            self.db.query(model).filter(model.investor_id == user_id).delete(synchronize_session=False)
        self.db.commit()

        children = (
            ("regions", [InvestorLocation(investor_id=user_id, location=r) for r in regions or []]),
            ("industries", [InvestorIndustry(investor_id=user_id, industry=i) for i in industries or []]),
            ("stages", [InvestorStage(investor_id=user_id, stage=s) for s in stages or []]),
        )
        for label, rows in children:
            if not rows:
                continue
            try:
                self.db.add_all(rows)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error inserting {label} for investor {user_id}: {e}")

        return {"success": True}

    # -- metrics ----------------------------------------------------------

    def get_metrics(self, user_id: int) -> Dict[str, Any]:
        row = self.db.query(InvestorMetrics).filter(InvestorMetrics.investor_id == user_id).first()
        if not row:
            return dict(DEFAULT_METRICS)

        result = {}
        for key, column in METRIC_COLUMNS.items():
            value = getattr(row, column)
            result[key] = value if value is not None else DEFAULT_METRICS[key]
        result["requiresRecurringRevenue"] = bool(row.requires_recurring_revenue)
        result["revenueGrowthPreference"] = (
            row.revenue_growth_preference
            if row.revenue_growth_preference in REVENUE_GROWTH_PREFERENCES else None
        )
        result["preferredBusinessTypes"] = [
            t for t in (row.preferred_business_types or []) if t in BUSINESS_TYPES
        ]
        result["preferredBusinessModels"] = [
            m for m in (row.preferred_business_models or []) if m in BUSINESS_MODELS
        ]
        return result

    def update_metrics(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        merged = {**DEFAULT_METRICS, **{k: v for k, v in data.items() if v is not None}}

        for low, high, label in METRIC_RANGES:
            if float(merged[low]) > float(merged[high]):
                raise ValueError(f"{label}: minimum cannot exceed maximum")

        growth = merged.get("revenueGrowthPreference")
        if growth is not None and growth not in REVENUE_GROWTH_PREFERENCES:
            raise ValueError(f"revenueGrowthPreference must be one of {REVENUE_GROWTH_PREFERENCES}")

        self._get_or_create(user_id)
        self.db.flush()

        row = self.db.query(InvestorMetrics).filter(InvestorMetrics.investor_id == user_id).first()
        if not row:
            row = InvestorMetrics(investor_id=user_id)
            self.db.add(row)

        for key, column in METRIC_COLUMNS.items():
            setattr(row, column, float(merged[key]))
        row.requires_recurring_revenue = bool(merged["requiresRecurringRevenue"])
        row.revenue_growth_preference = growth
        row.preferred_business_types = [t for t in merged["preferredBusinessTypes"] if t in BUSINESS_TYPES]
        row.preferred_business_models = [m for m in merged["preferredBusinessModels"] if m in BUSINESS_MODELS]

        self.db.commit()
        return self.get_metrics(user_id)

    # -- preferences ------------------------------------------------------

    def get_preferences(self, user_id: int) -> Optional[Dict[str, Any]]:
        row = (
            self.db.query(InvestorPreference)
            .filter(InvestorPreference.investor_profile_id == user_id)
            .first()
        )
        return preference_to_dict(row) if row else None

    def update_preferences(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        self._get_or_create(user_id)
        self.db.flush()

        row = (
            self.db.query(InvestorPreference)
            .filter(InvestorPreference.investor_profile_id == user_id)
            .first()
        )
        if not row:
            row = InvestorPreference(investor_profile_id=user_id)
            self.db.add(row)

        for field in PREFERENCE_LIST_FIELDS:
            if field in data:
                setattr(row, field, [v for v in (data[field] or []) if v])
        if "range" in data:
            row.range = data["range"]

        self.db.commit()
        return preference_to_dict(row)


def preference_to_dict(row: InvestorPreference) -> Dict[str, Any]:
    data = {field: getattr(row, field) or [] for field in PREFERENCE_LIST_FIELDS}
    data["range"] = row.range
    return data
