"""
Investor directory writes shared by the admin manual add and spreadsheet import.

Creating an investor is four independent writes (account, profile, firm,
contact). Each is committed on its own; when a later step fails the rows
created so far are deleted again in reverse order.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from venturematch.core.models import (
    User, UserRole, InvestorProfile, InvestorFirm, InvestorContact, InvestorSource,
)
from venturematch.users.auth import AuthService

logger = logging.getLogger(__name__)

INDIVIDUAL_FIRM_TYPE = "Individual Association"


class InvestorDirectory:
    """Create and look up investors, firms and contacts."""

    def __init__(self, db: Session):
        self.db = db

    def existing_email(self, email: str) -> Optional[str]:
        """Return which record already uses the email: 'user', 'investor', 'contact' or None."""
        email = email.strip().lower()
        if self.db.query(User.id).filter(User.email == email).first():
            return "user"
        if self.db.query(InvestorProfile.id).filter(InvestorProfile.email == email).first():
            return "investor"
        if self.db.query(InvestorContact.id).filter(InvestorContact.email == email).first():
            return "contact"
        return None

    def find_firm(self, firm_name: str) -> Optional[InvestorFirm]:
        return (
            self.db.query(InvestorFirm)
            .filter(InvestorFirm.firm_name == firm_name.strip())
            .first()
        )

    def find_or_create_firm(
        self,
        firm_name: str,
        investor_type: Optional[str] = None,
        hq_location: Optional[str] = None,
        source: str = InvestorSource.ADMIN.value,
    ) -> Tuple[InvestorFirm, bool]:
        """Look up a firm by exact name, creating it if missing. Returns (firm, created)."""
        firm = self.find_firm(firm_name)
        if firm:
            return firm, False

        firm = InvestorFirm(
            firm_name=firm_name.strip(),
            investor_type=investor_type,
            hq_location=hq_location,
            source=source,
        )
        self.db.add(firm)
        self.db.commit()
        self.db.refresh(firm)
        logger.info(f"Created investor firm {firm.firm_name} (id={firm.id})")
        return firm, True

    def create_investor(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create account, profile and (when a company is given) firm + contact.

        Expects first_name, last_name, email, country, city and optionally
        invests_via_company, investor_type, company_name, title.
        Raises on failure after deleting whatever was already created.
        """
        email = data["email"].strip().lower()
        first_name = data["first_name"].strip()
        last_name = data["last_name"].strip()
        via_company = bool(data.get("invests_via_company"))
        investor_type = (data.get("investor_type") or "").strip() or None
        company_name = (data.get("company_name") or "").strip()
        location = f"{data['city']}, {data['country']}"

        created_user_id = None
        created_profile_id = None
        created_firm_id = None
        created_contact_id = None

        try:
            user = AuthService(self.db).create_managed_user(email, first_name, last_name)
            self.db.commit()
            created_user_id = user.id

            profile = InvestorProfile(
                id=user.id,
                first_name=first_name,
                last_name=last_name,
                email=email,
                country=data.get("country"),
                city=data.get("city"),
                location=location,
                investor_category=(investor_type or "Company") if via_company else "Individual",
                investment_preference="company" if via_company else "individual",
                source=InvestorSource.ADMIN.value,
                created_by_admin=True,
            )
            self.db.add(profile)
            self.db.commit()
            created_profile_id = profile.id

            firm_id = None
            if company_name:
                firm, created = self.find_or_create_firm(
                    company_name,
                    investor_type=investor_type if via_company else INDIVIDUAL_FIRM_TYPE,
                    hq_location=location,
                )
                firm_id = firm.id
                if created:
                    created_firm_id = firm.id

                contact = InvestorContact(
                    firm_id=firm.id,
                    investor_profile_id=profile.id,
                    first_name=first_name,
                    last_name=last_name,
                    full_name=f"{first_name} {last_name}".strip(),
                    email=email,
                    title=(data.get("title") or "").strip() or None,
                    source=InvestorSource.ADMIN.value,
                )
                self.db.add(contact)
                self.db.commit()
                created_contact_id = contact.id

        except Exception:
            self.db.rollback()
            self._cleanup(created_contact_id, created_firm_id, created_profile_id, created_user_id)
            raise

        return {
            "userId": created_user_id,
            "profileId": created_profile_id,
            "firmId": firm_id,
            "newFirm": created_firm_id is not None,
            "contactId": created_contact_id,
            "investorType": investor_type if via_company else "Individual",
            "hasCompany": firm_id is not None,
        }

    def _cleanup(self, contact_id, firm_id, profile_id, user_id) -> None:
        """Delete partially created rows, newest first."""
        for model, row_id in (
            (InvestorContact, contact_id),
            (InvestorFirm, firm_id),
            (InvestorProfile, profile_id),
            (User, user_id),
        ):
            if row_id is None:
                continue
            try:
                if model is User:
                    self.db.query(UserRole).filter(UserRole.user_id == row_id).delete(synchronize_session=False)
                self.db.query(model).filter(model.id == row_id).delete(synchronize_session=False)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Cleanup of {model.__tablename__} id={row_id} failed: {e}")
