"""
Unit tests for the admin statistics aggregators.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from venturematch.admin import AdminStats
from venturematch.admin.stats import month_label, month_start, top_counts
from venturematch.core.models import InvestorFirm, InvestorProfile, User, UserRoleType

NOW = datetime(2026, 3, 15, 12, 0, 0)


def _investor(db, email, created_at, by_admin=False, country=None, category=None):
    user = User(email=email, password_hash="x", role=UserRoleType.INVESTOR)
    db.add(user)
    db.flush()
    db.add(InvestorProfile(
        id=user.id, email=email, created_at=created_at, created_by_admin=by_admin,
        country=country, investor_category=category,
    ))
    db.commit()


@pytest.mark.unit
def test_month_start_wraps_years():
    assert month_start(2026, 0) == datetime(2025, 12, 1)
    assert month_start(2026, -10) == datetime(2025, 2, 1)
    assert month_start(2026, 13) == datetime(2027, 1, 1)


@pytest.mark.unit
def test_month_label():
    assert month_label(datetime(2026, 1, 31)) == "Jan 2026"


@pytest.mark.unit
def test_top_counts_skips_empty_values():
    values = ["UK", "US", None, "UK", "", "DE", "UK", "US"]
    assert top_counts(values, "country", n=2) == [
        {"country": "UK", "count": 3},
        {"country": "US", "count": 2},
    ]


@pytest.mark.unit
def test_investor_stats_empty_database(test_db):
    stats = AdminStats(test_db).get_investor_stats(now=NOW)

    assert stats["total"] == 0
    assert stats["adminAdded"] == 0
    assert stats["insights"]["topCountries"] == []
    assert [g["month"] for g in stats["insights"]["growthData"]] == [
        "Oct 2025", "Nov 2025", "Dec 2025", "Jan 2026", "Feb 2026", "Mar 2026",
    ]
    assert {g["count"] for g in stats["insights"]["growthData"]} == {0}


@pytest.mark.unit
def test_investor_stats_counts(test_db):
    _investor(test_db, "a@x.io", NOW - timedelta(days=2), by_admin=True, country="UK", category="VC")
    _investor(test_db, "b@x.io", NOW - timedelta(days=40), country="UK", category="Angel")
    _investor(test_db, "c@x.io", datetime(2026, 3, 1), country="US", category="VC")
    _investor(test_db, "d@x.io", datetime(2025, 1, 1))

    stats = AdminStats(test_db).get_investor_stats(now=NOW)

    assert stats["total"] == 4
    assert stats["adminAdded"] == 1
    assert stats["userRegistered"] == 3
    assert stats["thisMonth"] == 2
    assert stats["insights"]["topCountries"][0] == {"country": "UK", "count": 2}
    assert stats["insights"]["topCategories"][0] == {"category": "VC", "count": 2}
    growth = {g["month"]: g["count"] for g in stats["insights"]["growthData"]}
    assert growth["Mar 2026"] == 2
    assert growth["Feb 2026"] == 1
    assert sum(growth.values()) == 3


@pytest.mark.unit
def test_optional_query_failure_uses_default(test_db):
    stats = AdminStats(test_db)

    def failing():
        raise OperationalError("SELECT 1", {}, Exception("relation missing"))

    assert stats._optional("adminAdded", failing, 0) == 0


@pytest.mark.unit
def test_total_failure_propagates(test_db, monkeypatch):
    stats = AdminStats(test_db)

    def failing(*criteria):
        raise OperationalError("SELECT count", {}, Exception("db down"))

    monkeypatch.setattr(stats, "_count_profiles", failing)

    with pytest.raises(OperationalError):
        stats.get_investor_stats(now=NOW)


@pytest.mark.unit
def test_firm_stats_by_source(test_db):
    test_db.add_all([
        InvestorFirm(firm_name="A", source="admin", investor_type="VC", hq_location="London",
                     last_updated_at=NOW - timedelta(days=1)),
        InvestorFirm(firm_name="B", source=None, investor_type="VC", last_updated_at=NOW - timedelta(days=60)),
        InvestorFirm(firm_name="C", source="founder", hq_location="London", last_updated_at=NOW),
        InvestorFirm(firm_name="D", source="ai", last_updated_at=NOW - timedelta(days=90)),
    ])
    test_db.commit()

    stats = AdminStats(test_db).get_firm_stats(now=NOW)

    assert stats["total"] == 4
    assert stats["adminUploaded"] == 2
    assert stats["foundersAdded"] == 1
    assert stats["selfRegistered"] == 0
    assert stats["aiAdded"] == 1
    assert stats["insights"]["topTypes"] == [{"type": "VC", "count": 2}]
    assert stats["insights"]["topLocations"] == [{"location": "London", "count": 2}]
    assert stats["insights"]["recentGrowth"] == 2
