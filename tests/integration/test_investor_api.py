"""
Integration tests for the investor endpoints.
"""
import pytest


class TestProfileEndpoints:
    """Tests for profile, mandate, metrics and preferences."""

    @pytest.mark.integration
    def test_profile_roundtrip(self, client, investor):
        updated = client.put(
            "/api/v1/investor/profile",
            json={"about": "Seed fintech", "city": "Paris", "country": "France"},
            headers=investor["headers"],
        )
        assert updated.json()["success"] is True

        profile = client.get("/api/v1/investor/profile", headers=investor["headers"]).json()["data"]
        assert profile["location"] == "Paris, France"
        assert profile["about"] == "Seed fintech"

    @pytest.mark.integration
    def test_mandate_replaces_related_lists(self, client, investor):
        headers = investor["headers"]
        client.put("/api/v1/investor/mandate", json={"regions": ["Europe"], "stages": ["seed"]}, headers=headers)
        client.put("/api/v1/investor/mandate", json={"regions": ["MENA"]}, headers=headers)

        mandate = client.get("/api/v1/investor/mandate", headers=headers).json()
        assert mandate["related_data"]["regions"] == ["MENA"]
        assert mandate["related_data"]["stages"] == []

    @pytest.mark.integration
    def test_metrics_defaults_and_update(self, client, investor):
        headers = investor["headers"]
        defaults = client.get("/api/v1/investor/metrics", headers=headers).json()
        assert defaults["maxCacLtvRatio"] == 20

        saved = client.put(
            "/api/v1/investor/metrics",
            json={"minGrossMargin": 30, "requiresRecurringRevenue": True},
            headers=headers,
        )
        assert saved.status_code == 200
        assert saved.json()["minGrossMargin"] == 30.0

    @pytest.mark.integration
    def test_metrics_validation(self, client, investor):
        out_of_range = client.put("/api/v1/investor/metrics", json={"minCacLtvRatio": 0}, headers=investor["headers"])
        assert out_of_range.status_code == 422

        inverted = client.put(
            "/api/v1/investor/metrics",
            json={"minGrossMargin": 90, "maxGrossMargin": 10},
            headers=investor["headers"],
        )
        assert inverted.status_code == 400

    @pytest.mark.integration
    def test_preferences_partial_update(self, client, investor):
        headers = investor["headers"]
        client.put("/api/v1/investor/preferences", json={"sectors": ["fintech"]}, headers=headers)
        client.put("/api/v1/investor/preferences", json={"range": "1M-5M"}, headers=headers)

        prefs = client.get("/api/v1/investor/preferences", headers=headers).json()["data"]
        assert prefs["sectors"] == ["fintech"]
        assert prefs["range"] == "1M-5M"

    @pytest.mark.integration
    def test_profile_image_upload(self, client, investor):
        response = client.post(
            "/api/v1/investor/profile/image",
            files={"file": ("me.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 8, "image/png")},
            headers=investor["headers"],
        )

        assert response.status_code == 200
        profile = client.get("/api/v1/investor/profile", headers=investor["headers"]).json()["data"]
        assert profile["profile_image_url"] == response.json()["url"]


class TestMatchEndpoints:
    """Tests for /api/v1/investor/matches."""

    @pytest.mark.integration
    def test_search_save_and_history(self, client, investor, sample_company):
        headers = investor["headers"]

        found = client.post("/api/v1/investor/matches", json={"keywords": "fintech, payroll"}, headers=headers)
        assert found.status_code == 200
        body = found.json()
        assert body["total"] == 1
        assert body["matches"][0]["company_name"] == "Ledgerly"
        assert 70 <= body["matches"][0]["match_score"] <= 99

        saved = client.post(f"/api/v1/investor/matches/{sample_company.id}/save", headers=headers)
        assert saved.json() == {"success": True}

        again = client.post(f"/api/v1/investor/matches/{sample_company.id}/save", headers=headers)
        assert again.status_code == 409
        assert again.json() == {"success": False, "error": "You have already saved this company"}

        history = client.get("/api/v1/investor/matches/history", headers=headers).json()["history"]
        assert history[0]["search_query"] == "fintech, payroll"
        assert history[0]["saved_count"] == 1

    @pytest.mark.integration
    def test_save_unknown_company(self, client, investor):
        response = client.post("/api/v1/investor/matches/999/save", headers=investor["headers"])
        assert response.status_code == 404


class TestPipelineEndpoints:
    """Tests for /api/v1/investor/pipeline."""

    @pytest.mark.integration
    def test_pipeline_flow(self, client, investor, founder, sample_company):
        headers = investor["headers"]

        created = client.post("/api/v1/investor/pipeline", json={"founder_id": founder["id"]}, headers=headers)
        assert created.status_code == 200
        assert created.json()["stage"] == "interested"

        duplicate = client.post("/api/v1/investor/pipeline", json={"founder_id": founder["id"]}, headers=headers)
        assert duplicate.status_code == 409

        moved = client.patch(
            f"/api/v1/investor/pipeline/{founder['id']}",
            json={"stage": "term_sheet", "notes": "Strong team"},
            headers=headers,
        )
        assert moved.json()["stage"] == "term_sheet"

        dashboard = client.get("/api/v1/investor/pipeline", headers=headers).json()
        assert dashboard["by_stage"]["term_sheet"] == 1
        assert dashboard["recent"][0]["company_name"] == "Ledgerly"

    @pytest.mark.integration
    def test_pipeline_errors(self, client, investor, founder):
        headers = investor["headers"]

        bad_stage = client.post(
            "/api/v1/investor/pipeline", json={"founder_id": founder["id"], "stage": "ghosted"}, headers=headers
        )
        assert bad_stage.status_code == 400

        unknown = client.post("/api/v1/investor/pipeline", json={"founder_id": 999}, headers=headers)
        assert unknown.status_code == 404

        untracked = client.patch(
            f"/api/v1/investor/pipeline/{founder['id']}", json={"stage": "meeting"}, headers=headers
        )
        assert untracked.status_code == 404
        assert untracked.json()["detail"] == "Founder is not in your pipeline"


class TestPortfolioEndpoints:
    """Tests for /api/v1/investor/portfolio."""

    @pytest.mark.integration
    def test_portfolio_crud(self, client, investor):
        headers = investor["headers"]

        logo = client.post(
            "/api/v1/investor/portfolio/logo",
            files={"file": ("logo.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 8, "image/png")},
            headers=headers,
        )
        assert logo.status_code == 200
        assert "/profile-images/" in logo.json()["url"]

        added = client.post(
            "/api/v1/investor/portfolio",
            json={"name": "Ledgerly", "investmentAmount": 250000, "logoUrl": logo.json()["url"]},
            headers=headers,
        )
        assert added.status_code == 200
        company_id = added.json()["data"]["id"]

        updated = client.put(
            f"/api/v1/investor/portfolio/{company_id}",
            json={"name": "Ledgerly", "stage": "Seed"},
            headers=headers,
        )
        assert updated.json()["data"]["stage"] == "Seed"
        assert updated.json()["data"]["logoUrl"] is None

        listed = client.get("/api/v1/investor/portfolio", headers=headers).json()["data"]
        assert [c["id"] for c in listed] == [company_id]

        assert client.delete(f"/api/v1/investor/portfolio/{company_id}", headers=headers).json() == {"success": True}
        assert client.delete(f"/api/v1/investor/portfolio/{company_id}", headers=headers).status_code == 404

    @pytest.mark.integration
    def test_portfolio_errors(self, client, investor, make_account, founder):
        headers = investor["headers"]
        assert client.post("/api/v1/investor/portfolio", json={"website": "x.io"}, headers=headers).status_code == 400
        assert client.post(
            "/api/v1/investor/portfolio", json={"name": "Ledgerly", "ownershipPercentage": 120}, headers=headers
        ).status_code == 422

        company_id = client.post(
            "/api/v1/investor/portfolio", json={"name": "Ledgerly"}, headers=headers
        ).json()["data"]["id"]
        other = make_account("investor", "eve@capital.io")
        response = client.put(
            f"/api/v1/investor/portfolio/{company_id}", json={"name": "Mine"}, headers=other["headers"]
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Unauthorized access to portfolio company"

        assert client.get("/api/v1/investor/portfolio", headers=founder["headers"]).status_code == 403
