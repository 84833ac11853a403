"""
Founder API endpoints.

Company profile, industries, fundraising rounds, tracked investors,
relationship contacts, CSV imports, cap table and image uploads. Every route requires a founder
session and acts on the founder's resolved company.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from venturematch.core.config import get_settings
from venturematch.core.database import get_db
from venturematch.core.models import Company
from venturematch.api.v1.deps import require_founder
from venturematch.companies import CompanyService, IndustryService
from venturematch.companies.profiles import company_to_dict
from venturematch.contacts import FounderContactService
from venturematch.fundraising import CaptableService, FundraisingService
from venturematch.import_data import FounderInvestorImporter, FounderContactImporter
from venturematch.import_data.parser import parse_file, validate_file
from venturematch.storage import upload_image
from venturematch.users.auth import AuthService

router = APIRouter(prefix="/founder", tags=["founder"])


# Request/Response Models


class CompanyRequest(BaseModel):
    company_name: Optional[str] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    website: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None


class IndustriesRequest(BaseModel):
    selected_categories: Dict[str, List[str]] = Field(
        ..., description="Category id -> selected subcategory ids"
    )
    company_id: Optional[int] = None


class CurrentRoundRequest(BaseModel):
    capital_reason: Optional[str] = None
    raising_amount: Optional[str] = None
    latest_valuation: Optional[str] = None
    current_valuation: Optional[str] = None
    funding_type: str = Field("equity", description="equity, debt or mixed")
    equity_percentage: Optional[str] = None
    interest_rate: Optional[str] = None
    equity_amount: Optional[str] = None
    debt_amount: Optional[str] = None
    min_investment: Optional[str] = None
    max_investment: Optional[str] = None
    closing_time: Optional[str] = None


class PastFundraisingRequest(BaseModel):
    previous_raised: Optional[str] = None
    paid_percentage: Optional[float] = Field(None, ge=0, le=100)
    investor_types: List[str] = Field(default_factory=list)


class InvestorRequest(BaseModel):
    first_name: str
    last_name: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    type: Optional[str] = None
    stage: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    amount: Optional[str] = None
    valuation: Optional[str] = None
    num_shares: Optional[int] = None
    is_investment: bool = False



class ContactUpdateRequest(BaseModel):
    company_name: Optional[str] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    investor_type: Optional[str] = None
    stage: Optional[str] = None
    phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    notes: Optional[str] = None
    hq_country: Optional[str] = None
    hq_city: Optional[str] = None
    hq_geography: Optional[str] = None


class ContactStatusRequest(BaseModel):
    status: str


# Helpers


def _resolve(db: Session, user_id: int, company_id: Optional[int] = None) -> Company:
    try:
        return CompanyService(db).resolve_company(user_id, company_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


async def _read_csv_upload(file: UploadFile) -> List[Dict[str, Any]]:
    content = await file.read()
    errors = validate_file(file.filename or "", len(content), get_settings().max_csv_upload_mb)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    parsed = parse_file(file.filename or "", content)
    if parsed.errors and not parsed.rows:
        raise HTTPException(status_code=400, detail="; ".join(parsed.errors))
    return parsed.rows


# Companies


@router.get("/companies")
def list_companies(
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """List the founder's companies."""
    companies = CompanyService(db).list_user_companies(current_user["user_id"])
    return {"companies": [company_to_dict(c) for c in companies]}


@router.post("/companies")
def create_company(
    request: CompanyRequest,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Create a company; the first one becomes the active company."""
    try:
        company = CompanyService(db).upsert_company(
            current_user["user_id"], request.model_dump(exclude_none=True)
        )
        return company_to_dict(company)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/companies/current")
def get_current_company(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """The company the founder is acting on."""
    return company_to_dict(_resolve(db, current_user["user_id"], company_id))


@router.put("/companies/{company_id}")
def update_company(
    company_id: int,
    request: CompanyRequest,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Update an owned company."""
    _resolve(db, current_user["user_id"], company_id)
    try:
        company = CompanyService(db).upsert_company(
            current_user["user_id"], request.model_dump(exclude_none=True), company_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return company_to_dict(company)


@router.post("/companies/{company_id}/activate")
def activate_company(
    company_id: int,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Make a company the founder's active company."""
    _resolve(db, current_user["user_id"], company_id)
    company = CompanyService(db).set_active_company(current_user["user_id"], company_id)
    return company_to_dict(company)


@router.post("/companies/{company_id}/logo")
async def upload_company_logo(
    company_id: int,
    file: UploadFile = File(...),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Upload the company logo and store its public URL."""
    _resolve(db, current_user["user_id"], company_id)
    content = await file.read()
    try:
        url = upload_image("company-logos", current_user["user_id"], file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    CompanyService(db).set_logo_url(current_user["user_id"], company_id, url)
    return {"success": True, "url": url}


@router.post("/companies/{company_id}/cover")
async def upload_company_cover(
    company_id: int,
    file: UploadFile = File(...),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Upload the company cover image and store its public URL."""
    _resolve(db, current_user["user_id"], company_id)
    content = await file.read()
    try:
        url = upload_image("company-covers", current_user["user_id"], file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    CompanyService(db).set_cover_url(current_user["user_id"], company_id, url)
    return {"success": True, "url": url}


# Industries


@router.get("/industries")
def get_industries(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Selected categories and subcategories of the company."""
    try:
        return {"selected_categories": IndustryService(db).get_company_industries(current_user["user_id"], company_id)}
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.put("/industries")
def save_industries(
    request: IndustriesRequest,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Replace the company's industries."""
    try:
        return IndustryService(db).save_company_industries(
            current_user["user_id"], request.selected_categories, request.company_id
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))


# Fundraising


@router.get("/fundraising/current")
def get_current_round(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    return {"data": FundraisingService(db).get_current_round(company.id)}


@router.put("/fundraising/current")
def save_current_round(
    request: CurrentRoundRequest,
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    try:
        return {"success": True, "data": FundraisingService(db).save_current_round(company.id, request.model_dump())}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/fundraising/past")
def get_past_fundraising(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    return {"data": FundraisingService(db).get_past_fundraising(company.id)}


@router.put("/fundraising/past")
def save_past_fundraising(
    request: PastFundraisingRequest,
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    try:
        return {"success": True, "data": FundraisingService(db).save_past_fundraising(company.id, request.model_dump())}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Investors


@router.get("/investors")
def list_investors(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Investors the founder tracks for the company."""
    company = _resolve(db, current_user["user_id"], company_id)
    return {"investors": FundraisingService(db).list_investors(current_user["user_id"], company.id)}


@router.post("/investors")
def add_investor(
    request: InvestorRequest,
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    try:
        return FundraisingService(db).add_investor(current_user["user_id"], company.id, request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/investors/{investor_id}")
def delete_investor(
    investor_id: int,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    if not FundraisingService(db).delete_investor(current_user["user_id"], investor_id):
        raise HTTPException(status_code=404, detail="Investor not found")
    return {"success": True}


@router.post("/investors/import")
async def import_investors(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Import the founder's investor list from CSV or Excel."""
    rows = await _read_csv_upload(file)
    return FounderInvestorImporter(db).bulk_import(rows, current_user["user_id"])


@router.post("/contacts/import")
async def import_contacts(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Import relationship contacts; each also records an introduced investor."""
    rows = await _read_csv_upload(file)
    user = AuthService(db).get_user(current_user["user_id"]) or {}
    introducer = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    try:
        return FounderContactImporter(db).import_contacts(
            rows, current_user["user_id"], introducer or None, current_user["email"]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Contacts


@router.get("/contacts")
def list_contacts(
    stage: Optional[str] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    return {"contacts": FounderContactService(db).list_contacts(current_user["user_id"], stage)}


@router.patch("/contacts/{contact_id}")
def update_contact(
    contact_id: int,
    request: ContactUpdateRequest,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    try:
        contact = FounderContactService(db).update_contact(
            contact_id, current_user["user_id"], request.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "contact": contact}


@router.put("/contacts/{contact_id}/status")
def update_contact_status(
    contact_id: int,
    request: ContactStatusRequest,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    try:
        contact = FounderContactService(db).update_contact_status(
            contact_id, current_user["user_id"], request.status
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "contact": contact}


@router.delete("/contacts/{contact_id}")
def delete_contact(
    contact_id: int,
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    if not FounderContactService(db).delete_contact(contact_id, current_user["user_id"]):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"success": True}


@router.get("/investor-firms")
def list_shared_firms(
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    """Directory firms the platform has sent to this founder."""
    return {"firms": FounderContactService(db).list_shared_firms(current_user["user_id"])}


# Cap table


@router.get("/captable")
def get_captable(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    return {"investors": CaptableService(db).get_captable_investors(company.id)}


@router.get("/captable/summary")
def get_captable_summary(
    company_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_founder),
    db: Session = Depends(get_db),
):
    company = _resolve(db, current_user["user_id"], company_id)
    return CaptableService(db).get_captable_summary(company.id)
