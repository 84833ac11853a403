"""
Admin API endpoints.

Investor and firm directory management, statistics, spreadsheet uploads
and enrichment. Every route requires an admin session and a configured
service role key.

Static /investors/* routes are declared before /investors/{profile_id}.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from venturematch.core.config import get_settings
from venturematch.core.database import get_db
from venturematch.api.v1.deps import require_admin
from venturematch.admin import AdminStats, AdminInvestorService, FirmService, EnrichmentService
from venturematch.admin.investors import split_csv_param
from venturematch.import_data import InvestorContactUploader, InvestorFileImporter
from venturematch.import_data.parser import parse_file, validate_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# Request/Response Models


class FirmsCreateRequest(BaseModel):
    investors: List[Dict[str, Any]] = Field(default_factory=list)


class FirmUpdateRequest(BaseModel):
    id: int
    data: Dict[str, Any] = Field(default_factory=dict)


class FirmsDeleteRequest(BaseModel):
    ids: List[int] = Field(default_factory=list)


class SendToFoundersRequest(BaseModel):
    founderIds: List[int] = Field(default_factory=list)
    investorFirmIds: List[int] = Field(default_factory=list)


class BulkDeleteItem(BaseModel):
    id: Optional[int] = None
    email: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    items: List[BulkDeleteItem] = Field(default_factory=list)


class CheckEmailRequest(BaseModel):
    email: Optional[str] = None


class ManualInvestorRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    invests_via_company: bool = False
    investor_type: Optional[str] = None
    company_name: Optional[str] = None
    title: Optional[str] = None


class EnrichItem(BaseModel):
    type: str = Field(..., description="firm or contact")
    id: int


class BatchEnrichRequest(BaseModel):
    items: List[EnrichItem] = Field(default_factory=list)


class EnrichRequest(BaseModel):
    type: str = Field(..., description="firm or contact")
    id: int
    data: Dict[str, Any] = Field(default_factory=dict)


# Founders


@router.get("/founders")
def list_founders(db: Session = Depends(get_db)):
    return AdminInvestorService(db).list_founders()


@router.post("/founder-contacts")
def send_to_founders(request: SendToFoundersRequest, db: Session = Depends(get_db)):
    """Share the selected directory firms with every selected founder."""
    try:
        return FirmService(db).send_to_founders(request.founderIds, request.investorFirmIds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Firms


@router.get("/investor-firms/stats")
def firm_stats(db: Session = Depends(get_db)):
    """Firm counts by source plus type, location and recent-growth insights."""
    try:
        return AdminStats(db).get_firm_stats()
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch firm statistics: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch firm statistics", "details": str(e)},
        )


@router.get("/investor-firms")
def list_firms(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=200),
    q: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return FirmService(db).list_firms(page=page, limit=limit, q=q, source=source)


@router.post("/investor-firms")
def create_firms(request: FirmsCreateRequest, db: Session = Depends(get_db)):
    """Insert a batch of firms; rejected whole if any name already exists."""
    try:
        return FirmService(db).create_firms(request.investors)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/investor-firms")
def update_firm(request: FirmUpdateRequest, db: Session = Depends(get_db)):
    try:
        return {"success": True, "firm": FirmService(db).update_firm(request.id, request.data)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/investor-firms")
def delete_firms(request: FirmsDeleteRequest, db: Session = Depends(get_db)):
    try:
        return FirmService(db).delete_firms(request.ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Investors


@router.get("/investors/stats")
def investor_stats(db: Session = Depends(get_db)):
    """Investor counts, top countries/categories and six months of growth."""
    try:
        return AdminStats(db).get_investor_stats()
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch investor statistics: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch investor statistics", "details": str(e)},
        )


@router.get("/investors/table")
def investors_table(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=200),
    sortBy: str = Query("created_at"),
    sortOrder: str = Query("desc"),
    q: Optional[str] = Query(None),
    sectors: Optional[str] = Query(None),
    regions: Optional[str] = Query(None),
    business_type: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    sales_type: Optional[str] = Query(None),
    ranges: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Paginated investors table.

    Preference filters are comma separated and match on any overlap;
    ranges matches the preference range exactly.
    """
    filters = {
        "sectors": split_csv_param(sectors),
        "regions": split_csv_param(regions),
        "business_type": split_csv_param(business_type),
        "stage": split_csv_param(stage),
        "model": split_csv_param(model),
        "sales_type": split_csv_param(sales_type),
        "ranges": split_csv_param(ranges),
    }
    return AdminInvestorService(db).list_investors_table(
        page=page, limit=limit, sort_by=sortBy, sort_order=sortOrder, q=q, filters=filters
    )


@router.post("/investors/bulk-delete")
def bulk_delete(request: BulkDeleteRequest, db: Session = Depends(get_db)):
    try:
        return AdminInvestorService(db).bulk_delete(
            [item.model_dump(exclude_none=True) for item in request.items]
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/investors/check-email")
def check_email(request: CheckEmailRequest, db: Session = Depends(get_db)):
    try:
        return AdminInvestorService(db).check_email(request.email or "")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/investors/manual")
def add_manual_investor(request: ManualInvestorRequest, db: Session = Depends(get_db)):
    """Create account, profile and (for company investors) firm plus contact."""
    try:
        return AdminInvestorService(db).add_manual_investor(request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/investors/bulk")
async def upload_investors(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Import an investor spreadsheet: one account per valid row."""
    content = await file.read()
    importer = InvestorFileImporter(db, max_size_mb=get_settings().max_investor_file_mb)

    parsed = importer.parse(file.filename or "", content)
    if not parsed["success"]:
        return JSONResponse(
            status_code=400,
            content={"success": False, "errors": parsed["errors"], "warnings": parsed["warnings"]},
        )

    result = importer.import_rows(parsed["data"])
    result["validationErrors"] = parsed["errors"]
    return result


@router.post("/investors/contacts/upload")
async def upload_investor_contacts(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    """Validate a contacts CSV and save the valid rows."""
    content = await file.read()
    errors = validate_file(file.filename or "", len(content), get_settings().max_csv_upload_mb)
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    uploader = InvestorContactUploader(db)
    validated = uploader.validate(parse_file(file.filename or "", content))
    if not validated["contacts"]:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "No valid contacts found in file",
                "validationErrors": validated["errors"],
                "duplicates": validated["duplicates"],
            },
        )

    result = uploader.save(validated["contacts"])
    result["validationErrors"] = validated["errors"]
    result["duplicates"] = validated["duplicates"]
    return result


# Enrichment


@router.get("/investors/enrich")
def needing_enrichment(
    type: str = Query("firm", description="firm or contact"),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    service = EnrichmentService(db)
    if type == "firm":
        return {"type": type, "items": service.get_firms_needing_enrichment(limit)}
    if type == "contact":
        return {"type": type, "items": service.get_contacts_needing_enrichment(limit)}
    raise HTTPException(status_code=400, detail="Invalid type. Use 'firm' or 'contact'")


@router.post("/investors/enrich")
def batch_enrich(request: BatchEnrichRequest, db: Session = Depends(get_db)):
    try:
        job_ids = EnrichmentService(db).batch_enrich([item.model_dump() for item in request.items])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "jobIds": job_ids}


@router.put("/investors/enrich")
def enrich(request: EnrichRequest, db: Session = Depends(get_db)):
    service = EnrichmentService(db)
    try:
        if request.type == "firm":
            item = service.enrich_firm(request.id, request.data)
        elif request.type == "contact":
            item = service.enrich_contact(request.id, request.data)
        else:
            raise HTTPException(status_code=400, detail="Invalid type. Use 'firm' or 'contact'")
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": item}


# Single investor


@router.get("/investors/{profile_id}")
def get_investor(profile_id: int, db: Session = Depends(get_db)):
    try:
        return AdminInvestorService(db).get_investor_detail(profile_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/investors/{profile_id}")
def delete_investor(profile_id: int, db: Session = Depends(get_db)):
    """Idempotent: deleting a missing profile still succeeds."""
    return AdminInvestorService(db).delete_investor(profile_id)
