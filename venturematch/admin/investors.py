"""
Admin investor management: the filterable investors table, detail view,
idempotent deletes, e-mail checks, manual creation and the founders list.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Set

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from venturematch.core.database import LIKE_ESCAPE, contains_pattern
from venturematch.core.errors import ConflictError
from venturematch.core.models import (
    User, UserRole, FounderProfile, Company,
    InvestorProfile, InvestorLocation, InvestorStage, InvestorIndustry,
    InvestorMetrics, InvestorPreference, InvestorFirm, InvestorContact,
    InvestorMatchHistory, InvestorSavedMatch, PipelineEntry, InvestorPortfolioCompany,
)
from venturematch.investors.directory import InvestorDirectory
from venturematch.investors.profile import preference_to_dict

logger = logging.getLogger(__name__)

SORT_FIELDS = {"first_name", "email", "firm_name", "created_at", "activity_score", "source"}
DEFAULT_SORT = "created_at"
PREFERENCE_FILTERS = ["sectors", "regions", "business_type", "stage", "model", "sales_type"]
MANUAL_REQUIRED = ["first_name", "last_name", "email", "country", "city"]
MAX_LISTED_FAILURES = 5

EXISTING_EMAIL_MESSAGES = {
    "user": "A user with this email already exists",
    "investor": "An investor profile with this email already exists",
    "contact": "An investor contact with this email already exists",
}

# Investor-owned rows removed before the profile itself
PROFILE_CHILDREN = (
    (InvestorLocation, InvestorLocation.investor_id),
    (InvestorStage, InvestorStage.investor_id),
    (InvestorIndustry, InvestorIndustry.investor_id),
    (InvestorMetrics, InvestorMetrics.investor_id),
    (InvestorPreference, InvestorPreference.investor_profile_id),
    (InvestorContact, InvestorContact.investor_profile_id),
)
USER_CHILDREN = (
    (InvestorMatchHistory, InvestorMatchHistory.investor_id),
    (InvestorSavedMatch, InvestorSavedMatch.investor_id),
    (PipelineEntry, PipelineEntry.investor_id),
    (InvestorPortfolioCompany, InvestorPortfolioCompany.investor_id),
    (UserRole, UserRole.user_id),
)


def split_csv_param(value: Optional[str]) -> List[str]:
    """'a, b,,c' -> ['a', 'b', 'c']"""
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _overlaps(stored: Optional[Iterable[str]], wanted: List[str]) -> bool:
    return bool(set(stored or []) & set(wanted))


class AdminInvestorService:
    def __init__(self, db: Session):
        self.db = db

    # -- table ------------------------------------------------------------

    def _matching_preference_ids(self, filters: Dict[str, List[str]]) -> Set[int]:
        """Profile ids whose preference arrays overlap every non-empty filter."""
        ranges = filters.get("ranges") or []
        ids = set()
        for pref in self.db.query(InvestorPreference):
            if ranges and pref.range not in ranges:
                continue
            if all(
                _overlaps(getattr(pref, field), filters[field])
                for field in PREFERENCE_FILTERS
                if filters.get(field)
            ):
                ids.add(pref.investor_profile_id)
        return ids

    def list_investors_table(
        self,
        page: int = 1,
        limit: int = 25,
        sort_by: str = DEFAULT_SORT,
        sort_order: str = "desc",
        q: Optional[str] = None,
        filters: Optional[Dict[str, List[str]]] = None,
    ) -> Dict[str, Any]:
        filters = {k: v for k, v in (filters or {}).items() if v}
        page = max(page, 1)
        limit = max(limit, 1)

        allowed_ids = None
        if filters:
            allowed_ids = self._matching_preference_ids(filters)
            if not allowed_ids:
                return {"investors": [], "total": 0, "page": page, "limit": limit, "totalPages": 1}

        # first contact per profile carries the firm
        first_contact = (
            self.db.query(
                InvestorContact.investor_profile_id.label("profile_id"),
                func.min(InvestorContact.id).label("contact_id"),
            )
            .filter(InvestorContact.investor_profile_id.isnot(None))
            .group_by(InvestorContact.investor_profile_id)
            .subquery()
        )

        query = (
            self.db.query(InvestorProfile, InvestorContact, InvestorFirm, User)
            .outerjoin(first_contact, first_contact.c.profile_id == InvestorProfile.id)
            .outerjoin(InvestorContact, InvestorContact.id == first_contact.c.contact_id)
            .outerjoin(InvestorFirm, InvestorFirm.id == InvestorContact.firm_id)
            .outerjoin(User, User.id == InvestorProfile.id)
        )

        if allowed_ids is not None:
            query = query.filter(InvestorProfile.id.in_(allowed_ids))

        q = (q or "").strip()
        if q:
            like = contains_pattern(q)
            query = query.filter(or_(
                InvestorProfile.first_name.ilike(like, escape=LIKE_ESCAPE),
                InvestorProfile.last_name.ilike(like, escape=LIKE_ESCAPE),
                InvestorProfile.email.ilike(like, escape=LIKE_ESCAPE),
                InvestorFirm.firm_name.ilike(like, escape=LIKE_ESCAPE),
            ))

        total = query.count()

        if sort_by not in SORT_FIELDS:
            sort_by = DEFAULT_SORT
        sort_column = InvestorFirm.firm_name if sort_by == "firm_name" else getattr(InvestorProfile, sort_by)
        sort_column = sort_column.asc() if sort_order == "asc" else sort_column.desc()

        rows = (
            query.order_by(sort_column, InvestorProfile.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        investors = [
            {
                "id": profile.id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "email": profile.email,
                "profile_image_url": profile.profile_image_url,
                "investor_category": profile.investor_category,
                "location": profile.location,
                "source": profile.source,
                "created_at": profile.created_at.isoformat() if profile.created_at else None,
                "last_verified_at": profile.last_verified_at.isoformat() if profile.last_verified_at else None,
                "last_login": user.last_login_at.isoformat() if user and user.last_login_at else None,
                "activity_score": profile.activity_score,
                "email_confirmed": bool(user and user.email_confirmed),
                "created_by_admin": bool(profile.created_by_admin),
                "firm_name": firm.firm_name if firm else None,
                "firm_website": firm.website_url if firm else None,
                "firm_type": firm.investor_type if firm else None,
                "firm_location": firm.hq_location if firm else None,
                "contact_title": contact.title if contact else None,
                "contact_verified": bool(contact and contact.verified),
            }
            for profile, contact, firm, user in rows
        ]

        return {
            "investors": investors,
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": max(1, math.ceil(total / limit)),
        }

    # -- detail -----------------------------------------------------------

    def get_investor_detail(self, profile_id: int) -> Dict[str, Any]:
        profile = self.db.get(InvestorProfile, profile_id)
        if not profile:
            raise LookupError("Not found")

        user = self.db.get(User, profile_id)
        contact = (
            self.db.query(InvestorContact)
            .filter(InvestorContact.investor_profile_id == profile_id)
            .order_by(InvestorContact.id)
            .first()
        )
        firm = self.db.get(InvestorFirm, contact.firm_id) if contact and contact.firm_id else None
        preferences = (
            self.db.query(InvestorPreference)
            .filter(InvestorPreference.investor_profile_id == profile_id)
            .first()
        )

        return {
            "id": profile.id,
            "first_name": profile.first_name,
            "last_name": profile.last_name,
            "email": profile.email,
            "profile_image_url": profile.profile_image_url,
            "about": profile.about,
            "location": profile.location,
            "investor_category": profile.investor_category,
            "created_at": profile.created_at.isoformat() if profile.created_at else None,
            "last_login": user.last_login_at.isoformat() if user and user.last_login_at else None,
            "last_verified_at": profile.last_verified_at.isoformat() if profile.last_verified_at else None,
            "activity_score": profile.activity_score,
            "source": profile.source,
            "contact": {
                "id": contact.id,
                "title": contact.title,
                "verified": contact.verified,
            } if contact else None,
            "firm": {
                "id": firm.id,
                "firm_name": firm.firm_name,
                "investor_type": firm.investor_type,
                "website_url": firm.website_url,
                "hq_location": firm.hq_location,
            } if firm else None,
            "preferences": preference_to_dict(preferences) if preferences else None,
        }

    # -- delete -----------------------------------------------------------

    def _delete_user(self, user_id: int) -> None:
        for model, column in USER_CHILDREN:
            self.db.query(model).filter(column == user_id).delete(synchronize_session=False)
        self.db.query(User).filter(User.id == user_id).delete(synchronize_session=False)

    def _delete_profile(self, profile_id: int) -> bool:
        for model, column in PROFILE_CHILDREN:
            self.db.query(model).filter(column == profile_id).delete(synchronize_session=False)
        deleted = (
            self.db.query(InvestorProfile)
            .filter(InvestorProfile.id == profile_id)
            .delete(synchronize_session=False)
        )
        return deleted > 0

    def delete_investor(self, profile_id: int) -> Dict[str, Any]:
        """Delete an investor's account, profile and child rows. Safe to repeat."""
        if not self.db.get(InvestorProfile, profile_id):
            # the account may outlive a half-finished delete
            if self.db.get(User, profile_id):
                self._delete_user(profile_id)
                self.db.commit()
            return {"success": True, "message": "Already deleted (no profile found)"}

        try:
            self._delete_profile(profile_id)
            self._delete_user(profile_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted investor {profile_id}")
        return {"success": True, "deleted_profile_id": profile_id}

    def bulk_delete(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        normalized = []
        for item in items or []:
            raw_id = item.get("id")
            email = (item.get("email") or "").strip().lower() or None
            if raw_id in (None, "") and not email:
                continue
            normalized.append({"id": raw_id, "email": email})

        if not normalized:
            raise ValueError("Provide items with id and/or email")

        results = []
        for item in normalized:
            result = {"authId": item["id"], "email": item["email"], "ok": False}
            try:
                user_id = None
                if item["id"] not in (None, "") and self.db.get(User, int(item["id"])):
                    user_id = int(item["id"])
                if user_id is None and item["email"]:
                    match = self.db.query(User.id).filter(User.email == item["email"]).first()
                    user_id = match[0] if match else None

                if user_id is None:
                    profile_id = int(item["id"]) if item["id"] not in (None, "") else None
                    if profile_id is None or not self.db.get(InvestorProfile, profile_id):
                        result.update(ok=True, note="already deleted")
                    else:
                        self._delete_profile(profile_id)
                        self.db.commit()
                        result.update(authId=profile_id, ok=True, note="deleted via profile fallback")
                    results.append(result)
                    continue

                self._delete_profile(user_id)
                self._delete_user(user_id)
                self.db.commit()
                result.update(authId=user_id, ok=True)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Bulk delete failed for {item}: {e}")
                result["error"] = str(e) or "unknown error"
            results.append(result)

        success_count = sum(1 for r in results if r["ok"])
        failure_count = len(results) - success_count
        if failure_count == 0:
            noun = "investor" if success_count == 1 else "investors"
            message = f"Deleted {success_count} {noun}."
        else:
            failed = [r for r in results if not r["ok"]][:MAX_LISTED_FAILURES]
            names = ", ".join(str(r["email"] or r["authId"] or "unknown") for r in failed)
            more = "..." if failure_count > len(failed) else ""
            message = f"Deleted {success_count}, failed {failure_count}: {names}{more}"

        return {
            "successCount": success_count,
            "failureCount": failure_count,
            "results": results,
            "message": message,
        }

    # -- create -----------------------------------------------------------

    def check_email(self, email: str) -> Dict[str, Any]:
        email = (email or "").strip().lower()
        if not email:
            raise ValueError("Email is required")

        if self.db.query(User.id).filter(User.email == email).first():
            return {"exists": True, "type": "user"}
        if self.db.query(InvestorProfile.id).filter(InvestorProfile.email == email).first():
            return {"exists": True, "type": "investor"}
        return {"exists": False}

    def add_manual_investor(self, data: Dict[str, Any]) -> Dict[str, Any]:
        if any(not str(data.get(field) or "").strip() for field in MANUAL_REQUIRED):
            raise ValueError("Missing required fields")
        if data.get("invests_via_company") and not (data.get("investor_type") and data.get("company_name")):
            raise ValueError("Investor type and company name required for company investors")

        directory = InvestorDirectory(self.db)
        existing = directory.existing_email(data["email"])
        if existing:
            raise ConflictError(EXISTING_EMAIL_MESSAGES[existing])

        created = directory.create_investor(data)
        logger.info(f"Admin added investor {data['email']} (profile {created['profileId']})")
        return {"success": True, "message": "Investor added successfully", "data": created}

    # -- founders ---------------------------------------------------------

    def list_founders(self) -> Dict[str, Any]:
        profiles = (
            self.db.query(FounderProfile)
            .order_by(FounderProfile.first_name.asc(), FounderProfile.id)
            .all()
        )

        founders = []
        for profile in profiles:
            company = (
                self.db.query(Company)
                .filter(Company.owner_id == profile.id)
                .order_by(Company.created_at.asc(), Company.id.asc())
                .first()
            )
            founders.append({
                "id": profile.id,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "email": profile.email,
                "company_function": profile.company_function,
                "company_name": company.company_name if company else None,
                "company_id": company.id if company else None,
            })

        return {"success": True, "founders": founders, "total": len(founders)}
