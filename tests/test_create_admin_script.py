"""
Tests for the admin bootstrap script.
"""
import pytest

from scripts.create_admin import main
from venturematch.core.config import reset_settings
from venturematch.core.database import get_session_factory, reset_engine
from venturematch.core.models import User, UserRoleType
from venturematch.users.auth import AuthService


@pytest.fixture
def file_db(app_env, monkeypatch):
    """Point DATABASE_URL at a SQLite file so separate sessions see the same data."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{app_env / 'admin.db'}")
    reset_settings()
    reset_engine()
    yield
    reset_engine()


@pytest.mark.unit
def test_creates_admin_that_can_log_in(file_db, capsys):
    assert main(["--email", "Ops@VentureMatch.io", "--password", "long-enough-pw"]) == 0
    assert "Created admin ops@venturematch.io" in capsys.readouterr().out

    db = get_session_factory()()
    try:
        user = db.query(User).filter_by(email="ops@venturematch.io").one()
        assert user.role == UserRoleType.ADMIN
        assert user.email_confirmed is True
        session = AuthService(db).login("ops@venturematch.io", "long-enough-pw")
        assert session["redirect_to"] == "/admin"
    finally:
        db.close()


@pytest.mark.unit
def test_duplicate_email_fails(file_db, capsys):
    main(["--email", "ops@venturematch.io", "--password", "long-enough-pw"])

    assert main(["--email", "ops@venturematch.io", "--password", "another-pw-123"]) == 1
    assert "Email already registered" in capsys.readouterr().err


@pytest.mark.unit
def test_short_password_rejected(file_db, capsys):
    assert main(["--email", "ops@venturematch.io", "--password", "short"]) == 1
    assert "at least 8 characters" in capsys.readouterr().err
