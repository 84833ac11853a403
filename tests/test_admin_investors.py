"""
Unit tests for admin investor management.
"""
import pytest

from venturematch.admin import AdminInvestorService
from venturematch.admin.investors import split_csv_param
from venturematch.core.errors import ConflictError
from venturematch.core.models import (
    InvestorContact, InvestorFirm, InvestorLocation, InvestorProfile, User, UserRole,
)
from venturematch.investors import InvestorProfileService

MANUAL = {
    "first_name": "Katherine",
    "last_name": "Johnson",
    "email": "katherine@orbit.vc",
    "country": "USA",
    "city": "Hampton",
    "invests_via_company": True,
    "investor_type": "VC",
    "company_name": "Orbit Ventures",
    "title": "Partner",
}


@pytest.fixture
def admin_investors(test_db, app_env):
    return AdminInvestorService(test_db)


@pytest.mark.unit
def test_split_csv_param():
    assert split_csv_param("fintech, b2b,,") == ["fintech", "b2b"]
    assert split_csv_param(None) == []


@pytest.mark.unit
def test_table_filters_by_preference_overlap(admin_investors, test_db, make_account):
    profiles = InvestorProfileService(test_db)
    fintech = make_account("investor", "fin@angels.io")
    b2b = make_account("investor", "b2b@angels.io")
    health = make_account("investor", "health@angels.io")
    profiles.update_preferences(fintech["id"], {"sectors": ["fintech"], "regions": ["Europe"]})
    profiles.update_preferences(b2b["id"], {"sectors": ["b2b", "saas"]})
    profiles.update_preferences(health["id"], {"sectors": ["healthtech"]})

    result = admin_investors.list_investors_table(
        sort_by="email", sort_order="asc", filters={"sectors": ["fintech", "b2b"]}
    )

    assert [i["email"] for i in result["investors"]] == ["b2b@angels.io", "fin@angels.io"]
    assert result["total"] == 2
    assert result["totalPages"] == 1

    both = admin_investors.list_investors_table(filters={"sectors": ["fintech"], "regions": ["Asia"]})
    assert both["investors"] == []
    assert both["totalPages"] == 1


@pytest.mark.unit
def test_table_pagination_and_search(admin_investors, make_account):
    for name in ["amy", "bob", "cat"]:
        make_account("investor", f"{name}@angels.io")

    page = admin_investors.list_investors_table(page=2, limit=2, sort_by="email", sort_order="asc")
    assert [i["email"] for i in page["investors"]] == ["cat@angels.io"]
    assert page["total"] == 3
    assert page["totalPages"] == 2

    found = admin_investors.list_investors_table(q="BOB")
    assert [i["email"] for i in found["investors"]] == ["bob@angels.io"]


@pytest.mark.unit
def test_table_search_treats_wildcards_literally(admin_investors, make_account):
    make_account("investor", "a_b@angels.io")
    make_account("investor", "axb@angels.io")

    found = admin_investors.list_investors_table(q="a_b")
    assert [i["email"] for i in found["investors"]] == ["a_b@angels.io"]
    assert admin_investors.list_investors_table(q="%")["total"] == 0


@pytest.mark.unit
def test_table_unknown_sort_falls_back(admin_investors, investor):
    result = admin_investors.list_investors_table(sort_by="password_hash")
    assert result["total"] == 1


@pytest.mark.unit
def test_manual_investor_creates_firm_and_contact(admin_investors, test_db):
    result = admin_investors.add_manual_investor(dict(MANUAL))

    data = result["data"]
    assert result["success"] is True
    assert data["newFirm"] is True
    assert data["hasCompany"] is True

    profile = test_db.get(InvestorProfile, data["profileId"])
    assert profile.location == "Hampton, USA"
    assert profile.created_by_admin is True
    assert profile.investor_category == "VC"
    contact = test_db.get(InvestorContact, data["contactId"])
    assert contact.title == "Partner"
    assert test_db.get(InvestorFirm, data["firmId"]).firm_name == "Orbit Ventures"

    row = admin_investors.list_investors_table()["investors"][0]
    assert row["firm_name"] == "Orbit Ventures"
    assert row["contact_title"] == "Partner"


@pytest.mark.unit
def test_manual_investor_duplicate_email(admin_investors):
    admin_investors.add_manual_investor(dict(MANUAL))

    with pytest.raises(ConflictError) as exc_info:
        admin_investors.add_manual_investor(dict(MANUAL, email="KATHERINE@orbit.vc"))

    assert exc_info.value.message == "A user with this email already exists"


@pytest.mark.unit
def test_manual_investor_validation(admin_investors):
    with pytest.raises(ValueError, match="Missing required fields"):
        admin_investors.add_manual_investor(dict(MANUAL, city=" "))
    with pytest.raises(ValueError, match="Investor type and company name"):
        admin_investors.add_manual_investor(dict(MANUAL, investor_type=None))


@pytest.mark.unit
def test_manual_individual_without_company(admin_investors, test_db):
    data = admin_investors.add_manual_investor(
        dict(MANUAL, invests_via_company=False, company_name="", investor_type=None)
    )["data"]

    assert data["investorType"] == "Individual"
    assert data["hasCompany"] is False
    assert test_db.query(InvestorContact).count() == 0


@pytest.mark.unit
def test_check_email(admin_investors, investor):
    assert admin_investors.check_email(" Grace@Capital.io ") == {"exists": True, "type": "user"}
    assert admin_investors.check_email("nobody@capital.io") == {"exists": False}
    with pytest.raises(ValueError):
        admin_investors.check_email("")


@pytest.mark.unit
def test_delete_investor_is_idempotent(admin_investors, test_db, investor):
    InvestorProfileService(test_db).update_mandate(investor["id"], {}, regions=["Europe"], industries=[], stages=[])

    first = admin_investors.delete_investor(investor["id"])
    second = admin_investors.delete_investor(investor["id"])

    assert first == {"success": True, "deleted_profile_id": investor["id"]}
    assert second == {"success": True, "message": "Already deleted (no profile found)"}
    assert test_db.query(User).count() == 0
    assert test_db.query(UserRole).count() == 0
    assert test_db.query(InvestorLocation).count() == 0


@pytest.mark.unit
def test_delete_removes_orphaned_account(admin_investors, test_db, investor):
    test_db.query(InvestorProfile).filter_by(id=investor["id"]).delete()
    test_db.commit()

    result = admin_investors.delete_investor(investor["id"])

    assert result["message"] == "Already deleted (no profile found)"
    assert test_db.get(User, investor["id"]) is None


@pytest.mark.unit
def test_bulk_delete(admin_investors, test_db, investor, make_account):
    other = make_account("investor", "ops@angels.io")

    result = admin_investors.bulk_delete([
        {"id": investor["id"]},
        {"email": "OPS@angels.io"},
        {"email": "ghost@angels.io"},
        {},
    ])

    assert result["successCount"] == 3
    assert result["failureCount"] == 0
    assert result["message"] == "Deleted 3 investors."
    assert result["results"][1]["authId"] == other["id"]
    assert result["results"][2]["note"] == "already deleted"
    assert test_db.query(InvestorProfile).count() == 0


@pytest.mark.unit
def test_bulk_delete_requires_items(admin_investors):
    with pytest.raises(ValueError):
        admin_investors.bulk_delete([{"id": ""}])


@pytest.mark.unit
def test_investor_detail(admin_investors, test_db, investor):
    InvestorProfileService(test_db).update_preferences(investor["id"], {"sectors": ["fintech"]})

    detail = admin_investors.get_investor_detail(investor["id"])

    assert detail["email"] == "grace@capital.io"
    assert detail["contact"] is None
    assert detail["preferences"]["sectors"] == ["fintech"]

    with pytest.raises(LookupError):
        admin_investors.get_investor_detail(999)


@pytest.mark.unit
def test_list_founders_with_first_company(admin_investors, founder, sample_company, make_account):
    make_account("founder", "zed@startup.io", "Zed", "Zero")

    result = admin_investors.list_founders()

    assert result["total"] == 2
    assert result["founders"][0]["first_name"] == "Ada"
    assert result["founders"][0]["company_name"] == "Ledgerly"
    assert result["founders"][1]["company_id"] is None
