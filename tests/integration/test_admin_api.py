"""
Integration tests for the admin endpoints.
"""
import pytest

from venturematch.import_data.templates import render_template
from venturematch.investors import InvestorProfileService


class TestInvestorTable:
    """Tests for /api/v1/admin/investors/table and single-investor routes."""

    @pytest.mark.integration
    def test_table_filters_on_any_sector(self, client, admin, make_account, test_db):
        profiles = InvestorProfileService(test_db)
        fintech = make_account("investor", "fin@angels.io")
        b2b = make_account("investor", "b2b@angels.io")
        make_account("investor", "bio@angels.io")
        profiles.update_preferences(fintech["id"], {"sectors": ["fintech"]})
        profiles.update_preferences(b2b["id"], {"sectors": ["b2b"]})

        response = client.get(
            "/api/v1/admin/investors/table",
            params={"sectors": "fintech,b2b", "sortBy": "email", "sortOrder": "asc"},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        body = response.json()
        assert [i["email"] for i in body["investors"]] == ["b2b@angels.io", "fin@angels.io"]
        assert body["totalPages"] == 1

    @pytest.mark.integration
    def test_delete_twice_succeeds(self, client, admin, investor):
        url = f"/api/v1/admin/investors/{investor['id']}"

        first = client.delete(url, headers=admin["headers"])
        second = client.delete(url, headers=admin["headers"])

        assert first.json() == {"success": True, "deleted_profile_id": investor["id"]}
        assert second.status_code == 200
        assert second.json()["message"] == "Already deleted (no profile found)"
        assert client.get(url, headers=admin["headers"]).status_code == 404

    @pytest.mark.integration
    def test_bulk_delete(self, client, admin, investor):
        response = client.post(
            "/api/v1/admin/investors/bulk-delete",
            json={"items": [{"id": investor["id"]}, {"email": "ghost@angels.io"}]},
            headers=admin["headers"],
        )

        assert response.json()["message"] == "Deleted 2 investors."

        empty = client.post("/api/v1/admin/investors/bulk-delete", json={"items": []}, headers=admin["headers"])
        assert empty.status_code == 400

    @pytest.mark.integration
    def test_manual_add_and_check_email(self, client, admin):
        body = {
            "first_name": "Katherine", "last_name": "Johnson", "email": "katherine@orbit.vc",
            "country": "USA", "city": "Hampton", "invests_via_company": True,
            "investor_type": "VC", "company_name": "Orbit Ventures",
        }

        created = client.post("/api/v1/admin/investors/manual", json=body, headers=admin["headers"])
        assert created.status_code == 200
        assert created.json()["data"]["hasCompany"] is True

        duplicate = client.post("/api/v1/admin/investors/manual", json=body, headers=admin["headers"])
        assert duplicate.status_code == 409
        assert duplicate.json()["error"] == "A user with this email already exists"

        check = client.post(
            "/api/v1/admin/investors/check-email", json={"email": "katherine@orbit.vc"}, headers=admin["headers"]
        )
        assert check.json() == {"exists": True, "type": "user"}

        missing = client.post("/api/v1/admin/investors/manual", json={"email": "x@y.io"}, headers=admin["headers"])
        assert missing.status_code == 400


class TestUploads:
    """Tests for the admin spreadsheet uploads."""

    @pytest.mark.integration
    def test_investor_spreadsheet(self, client, admin):
        response = client.post(
            "/api/v1/admin/investors/bulk",
            files={"file": ("investors.csv", render_template("investors").encode(), "text/csv")},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        assert response.json()["summary"]["successful"] == 2
        assert response.json()["validationErrors"] == []

    @pytest.mark.integration
    def test_investor_spreadsheet_missing_columns(self, client, admin):
        response = client.post(
            "/api/v1/admin/investors/bulk",
            files={"file": ("investors.csv", b"Email\nx@y.io\n", "text/csv")},
            headers=admin["headers"],
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.integration
    def test_contact_upload(self, client, admin):
        response = client.post(
            "/api/v1/admin/investors/contacts/upload",
            files={"file": ("contacts.csv", render_template("investor_contacts").encode(), "text/csv")},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        assert response.json()["processed"] == 1

    @pytest.mark.integration
    def test_contact_upload_without_valid_rows(self, client, admin):
        response = client.post(
            "/api/v1/admin/investors/contacts/upload",
            files={"file": ("contacts.csv", b"Full Name,Email\nNobody,not-an-email\n", "text/csv")},
            headers=admin["headers"],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "No valid contacts found in file"


class TestFirmEndpoints:
    """Tests for /api/v1/admin/investor-firms."""

    @pytest.mark.integration
    def test_firm_crud(self, client, admin):
        headers = admin["headers"]

        created = client.post(
            "/api/v1/admin/investor-firms",
            json={"investors": [{"firm_name": "Acme Ventures", "source": "ai"}]},
            headers=headers,
        )
        firm_id = created.json()["savedInvestors"][0]["id"]

        conflict = client.post(
            "/api/v1/admin/investor-firms", json={"investors": [{"firm_name": "Acme Ventures"}]}, headers=headers
        )
        assert conflict.status_code == 409
        assert conflict.json()["success"] is False

        updated = client.put(
            "/api/v1/admin/investor-firms", json={"id": firm_id, "data": {"fund_size": "$20M"}}, headers=headers
        )
        assert updated.json()["firm"]["fund_size"] == "$20M"

        listed = client.get("/api/v1/admin/investor-firms", params={"source": "ai"}, headers=headers).json()
        assert listed["total"] == 1

        stats = client.get("/api/v1/admin/investor-firms/stats", headers=headers).json()
        assert stats["aiAdded"] == 1

        deleted = client.request("DELETE", "/api/v1/admin/investor-firms", json={"ids": [firm_id]}, headers=headers)
        assert deleted.json()["deletedCount"] == 1

    @pytest.mark.integration
    def test_batch_with_unnamed_entry_rejected(self, client, admin):
        response = client.post(
            "/api/v1/admin/investor-firms",
            json={"investors": [{"firm_name": "Alpha"}, {"website_url": "https://nofirm.io"}]},
            headers=admin["headers"],
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing firm_name for entries: 2"
        listed = client.get("/api/v1/admin/investor-firms", headers=admin["headers"]).json()
        assert listed["total"] == 0
        assert listed["totalPages"] == 1

    @pytest.mark.integration
    def test_send_firms_to_founders(self, client, admin, founder):
        headers = admin["headers"]
        created = client.post(
            "/api/v1/admin/investor-firms",
            json={"investors": [{"firm_name": "Acme Ventures"}, {"firm_name": "Blue Capital"}]},
            headers=headers,
        )
        firm_ids = [f["id"] for f in created.json()["savedInvestors"]]
        payload = {"founderIds": [founder["id"]], "investorFirmIds": firm_ids}

        sent = client.post("/api/v1/admin/founder-contacts", json=payload, headers=headers)
        assert sent.status_code == 200
        assert sent.json()["insertedCount"] == 2

        repeat = client.post("/api/v1/admin/founder-contacts", json=payload, headers=headers).json()
        assert repeat["insertedCount"] == 0
        assert repeat["duplicateCount"] == 2

        missing = client.post(
            "/api/v1/admin/founder-contacts",
            json={"founderIds": [founder["id"]], "investorFirmIds": [4242]},
            headers=headers,
        )
        assert missing.status_code == 400
        assert missing.json()["detail"] == "Some investor firms were not found: 4242"

        empty = client.post("/api/v1/admin/founder-contacts", json={"founderIds": []}, headers=headers)
        assert empty.status_code == 400

        forbidden = client.post("/api/v1/admin/founder-contacts", json=payload, headers=founder["headers"])
        assert forbidden.status_code == 403

    @pytest.mark.integration
    def test_enrichment_routes(self, client, admin):
        headers = admin["headers"]
        client.post("/api/v1/admin/investor-firms", json={"investors": [{"firm_name": "Bare Fund"}]}, headers=headers)

        pending = client.get("/api/v1/admin/investors/enrich", params={"type": "firm"}, headers=headers).json()
        assert [f["firm_name"] for f in pending["items"]] == ["Bare Fund"]

        firm_id = pending["items"][0]["id"]
        enriched = client.put(
            "/api/v1/admin/investors/enrich",
            json={"type": "firm", "id": firm_id, "data": {"website_url": "https://bare.vc"}},
            headers=headers,
        )
        assert enriched.json()["data"]["website_url"] == "https://bare.vc"

        jobs = client.post(
            "/api/v1/admin/investors/enrich", json={"items": [{"type": "firm", "id": firm_id}]}, headers=headers
        )
        assert len(jobs.json()["jobIds"]) == 1

        bad = client.get("/api/v1/admin/investors/enrich", params={"type": "person"}, headers=headers)
        assert bad.status_code == 400


class TestStatsAndTemplates:
    """Tests for statistics and CSV template downloads."""

    @pytest.mark.integration
    def test_investor_stats(self, client, admin, investor):
        stats = client.get("/api/v1/admin/investors/stats", headers=admin["headers"]).json()

        assert stats["total"] == 1
        assert stats["userRegistered"] == 1
        assert len(stats["insights"]["growthData"]) == 6

    @pytest.mark.integration
    def test_founders_list(self, client, admin, sample_company):
        body = client.get("/api/v1/admin/founders", headers=admin["headers"]).json()
        assert body["founders"][0]["company_name"] == "Ledgerly"

    @pytest.mark.integration
    def test_template_download(self, client):
        names = client.get("/api/v1/templates").json()["templates"]
        assert "contacts" in names

        response = client.get("/api/v1/templates/contacts")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "contacts_template.csv" in response.headers["content-disposition"]
        assert response.text.startswith("Full Name,Email")

        assert client.get("/api/v1/templates/nope").status_code == 404
