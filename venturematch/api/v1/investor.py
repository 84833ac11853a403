"""
Investor API endpoints.

Profile, business info, mandate, metrics and preferences; company matching,
the portfolio and the deal pipeline.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from venturematch.core.database import get_db
from venturematch.api.v1.deps import require_investor
from venturematch.investors import InvestorProfileService, PortfolioService
from venturematch.matching import CompanyMatcher
from venturematch.deals import DealPipeline
from venturematch.storage import upload_image

router = APIRouter(prefix="/investor", tags=["investor"])


# Request/Response Models


class ProfileRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    about: Optional[str] = None
    investment_preference: Optional[str] = None
    company_name: Optional[str] = None
    company_url: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    investor_category: Optional[str] = None


class BusinessRequest(BaseModel):
    company_name: Optional[str] = None
    company_url: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    investor_category: Optional[str] = None


class MandateRequest(BaseModel):
    main_data: Dict[str, Any] = Field(default_factory=dict)
    regions: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    stages: List[str] = Field(default_factory=list)


class MetricsRequest(BaseModel):
    minGrossMargin: Optional[float] = Field(None, ge=0, le=100)
    maxGrossMargin: Optional[float] = Field(None, ge=0, le=100)
    minEbitdaMargin: Optional[float] = Field(None, ge=0, le=100)
    maxEbitdaMargin: Optional[float] = Field(None, ge=0, le=100)
    minCacLtvRatio: Optional[float] = Field(None, ge=1, le=20)
    maxCacLtvRatio: Optional[float] = Field(None, ge=1, le=20)
    requiresRecurringRevenue: Optional[bool] = None
    revenueGrowthPreference: Optional[str] = None
    preferredBusinessTypes: Optional[List[str]] = None
    preferredBusinessModels: Optional[List[str]] = None


class PreferencesRequest(BaseModel):
    sectors: Optional[List[str]] = None
    regions: Optional[List[str]] = None
    business_type: Optional[List[str]] = None
    stage: Optional[List[str]] = None
    model: Optional[List[str]] = None
    sales_type: Optional[List[str]] = None
    range: Optional[str] = None


class MatchRequest(BaseModel):
    keywords: Optional[str] = Field(None, description="Comma separated search terms")
    industries: List[str] = Field(default_factory=list)


class PortfolioCompanyRequest(BaseModel):
    name: Optional[str] = None
    website: Optional[str] = None
    logoUrl: Optional[str] = None
    investmentDate: Optional[str] = None
    investmentAmount: Optional[float] = None
    stage: Optional[str] = None
    ownershipPercentage: Optional[float] = Field(None, ge=0, le=100)
    industry: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class PipelineCreateRequest(BaseModel):
    founder_id: int
    stage: str = "interested"
    notes: Optional[str] = None


class PipelineUpdateRequest(BaseModel):
    stage: str
    notes: Optional[str] = None


# Profile


@router.get("/profile")
def get_profile(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return {"data": InvestorProfileService(db).get_profile(current_user["user_id"])}


@router.put("/profile")
def update_profile(
    request: ProfileRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    """Upsert the investor profile; location is derived from city and country."""
    data = InvestorProfileService(db).upsert_profile(
        current_user["user_id"], request.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": data}


@router.post("/profile/image")
async def upload_profile_image(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    content = await file.read()
    try:
        url = upload_image("profile-images", current_user["user_id"], file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    InvestorProfileService(db).set_image_url(current_user["user_id"], "profile_image_url", url)
    return {"success": True, "url": url}


# Business


@router.get("/business")
def get_business(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return {"data": InvestorProfileService(db).get_business(current_user["user_id"])}


@router.put("/business")
def update_business(
    request: BusinessRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    data = InvestorProfileService(db).update_business(
        current_user["user_id"], request.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": data}


@router.post("/business/logo")
async def upload_business_logo(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    content = await file.read()
    try:
        url = upload_image("company-logos", current_user["user_id"], file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    InvestorProfileService(db).set_image_url(current_user["user_id"], "company_logo_url", url)
    return {"success": True, "url": url}


# Mandate


@router.get("/mandate")
def get_mandate(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    """Mandate fields plus regions, stages and industries."""
    return InvestorProfileService(db).get_mandate(current_user["user_id"])


@router.put("/mandate")
def update_mandate(
    request: MandateRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return InvestorProfileService(db).update_mandate(
        current_user["user_id"],
        request.main_data,
        request.regions,
        request.industries,
        request.stages,
    )


# Metrics


@router.get("/metrics")
def get_metrics(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    """Metric preferences, or the defaults when none were saved."""
    return InvestorProfileService(db).get_metrics(current_user["user_id"])


@router.put("/metrics")
def update_metrics(
    request: MetricsRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        return InvestorProfileService(db).update_metrics(
            current_user["user_id"], request.model_dump(exclude_none=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Preferences


@router.get("/preferences")
def get_preferences(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return {"data": InvestorProfileService(db).get_preferences(current_user["user_id"])}


@router.put("/preferences")
def update_preferences(
    request: PreferencesRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    data = InvestorProfileService(db).update_preferences(
        current_user["user_id"], request.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": data}


# Matching


@router.post("/matches")
def find_matches(
    request: MatchRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    """Search companies by keywords and industries, best matches first."""
    matches = CompanyMatcher(db).get_company_matches(current_user["user_id"], request.model_dump())
    return {"matches": matches, "total": len(matches)}


@router.post("/matches/{company_id}/save")
def save_match(
    company_id: int,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        return CompanyMatcher(db).save_company_match(current_user["user_id"], company_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/matches/history")
def match_history(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return {"history": CompanyMatcher(db).get_match_history(current_user["user_id"])}


# Portfolio


@router.get("/portfolio")
def list_portfolio(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    return {"data": PortfolioService(db).list_companies(current_user["user_id"])}


@router.post("/portfolio")
def add_portfolio_company(
    request: PortfolioCompanyRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        data = PortfolioService(db).add_company(current_user["user_id"], request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": data}


@router.put("/portfolio/{company_id}")
def update_portfolio_company(
    company_id: int,
    request: PortfolioCompanyRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        data = PortfolioService(db).update_company(current_user["user_id"], company_id, request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"success": True, "data": data}


@router.delete("/portfolio/{company_id}")
def delete_portfolio_company(
    company_id: int,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        PortfolioService(db).delete_company(current_user["user_id"], company_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"success": True}


@router.post("/portfolio/logo")
async def upload_portfolio_logo(
    file: UploadFile = File(...),
    current_user: dict = Depends(require_investor),
):
    """Store a portfolio company logo; the returned url goes into logoUrl."""
    content = await file.read()
    try:
        url = upload_image("profile-images", current_user["user_id"], file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "url": url}


# Pipeline


@router.get("/pipeline")
def pipeline_dashboard(
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    """Stage counts and recent activity for the investor's pipeline."""
    return DealPipeline(db).get_dashboard(current_user["user_id"])


@router.post("/pipeline")
def add_to_pipeline(
    request: PipelineCreateRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        return DealPipeline(db).create_entry(
            current_user["user_id"], request.founder_id, request.stage, request.notes
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/pipeline/{founder_id}")
def update_pipeline_stage(
    founder_id: int,
    request: PipelineUpdateRequest,
    current_user: dict = Depends(require_investor),
    db: Session = Depends(get_db),
):
    try:
        entry = DealPipeline(db).update_stage(
            current_user["user_id"], founder_id, request.stage, request.notes
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if entry is None:
        raise HTTPException(status_code=404, detail="Founder is not in your pipeline")
    return entry
