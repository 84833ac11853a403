"""
Unit tests for founder companies and industry selections.
"""
import pytest

from venturematch.companies import CompanyService, IndustryService
from venturematch.core.models import CompanyIndustry, FounderProfile


@pytest.mark.unit
def test_first_company_becomes_active(test_db, founder, sample_company):
    profile = test_db.get(FounderProfile, founder["id"])
    assert profile.active_company_id == sample_company.id


@pytest.mark.unit
def test_company_name_required_on_create(test_db, founder):
    with pytest.raises(ValueError, match="Company name is required"):
        CompanyService(test_db).upsert_company(founder["id"], {"company_name": "  "})


@pytest.mark.unit
def test_resolve_without_companies(test_db, founder):
    with pytest.raises(LookupError, match="No companies found"):
        CompanyService(test_db).resolve_company(founder["id"])


@pytest.mark.unit
def test_resolve_rejects_foreign_company(test_db, make_account, sample_company):
    other = make_account("founder", "mallory@other.io")

    with pytest.raises(PermissionError):
        CompanyService(test_db).resolve_company(other["id"], sample_company.id)


@pytest.mark.unit
def test_resolve_prefers_active_company(test_db, founder, sample_company):
    service = CompanyService(test_db)
    second = service.upsert_company(founder["id"], {"company_name": "Second Co"})

    assert service.resolve_company(founder["id"]).id == sample_company.id

    service.set_active_company(founder["id"], second.id)
    assert service.resolve_company(founder["id"]).id == second.id


@pytest.mark.unit
def test_resolve_falls_back_to_first_company(test_db, founder, sample_company):
    service = CompanyService(test_db)
    service.upsert_company(founder["id"], {"company_name": "Second Co"})
    test_db.get(FounderProfile, founder["id"]).active_company_id = None
    test_db.commit()

    assert service.resolve_company(founder["id"]).id == sample_company.id


@pytest.mark.unit
def test_update_only_touches_given_fields(test_db, founder, sample_company):
    updated = CompanyService(test_db).upsert_company(
        founder["id"], {"website": "https://ledgerly.io"}, sample_company.id
    )

    assert updated.website == "https://ledgerly.io"
    assert updated.company_name == "Ledgerly"


@pytest.mark.unit
def test_save_industries_replaces_all_rows(test_db, founder, sample_company):
    service = IndustryService(test_db)
    service.save_company_industries(founder["id"], {"old": ["x", "y", "z"], "other": []})

    result = service.save_company_industries(founder["id"], {"catA": ["sub1", "sub2"]})

    assert result["success"] is True
    rows = (
        test_db.query(CompanyIndustry)
        .filter(CompanyIndustry.company_id == sample_company.id)
        .order_by(CompanyIndustry.id)
        .all()
    )
    assert [(r.category_id, r.subcategory_id) for r in rows] == [("catA", "sub1"), ("catA", "sub2")]


@pytest.mark.unit
def test_category_without_subcategories_stored_once(test_db, founder, sample_company):
    service = IndustryService(test_db)
    service.save_company_industries(founder["id"], {"fintech": [], "saas": ["b2b"]})

    assert service.get_company_industries(founder["id"]) == {"fintech": [], "saas": ["b2b"]}
