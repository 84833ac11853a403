"""
Pytest configuration and shared fixtures.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from venturematch.core.models import Base
from venturematch.core.config import reset_settings
from venturematch.core.database import get_db, reset_engine
from venturematch.users.auth import AuthService

ANON_KEY = "test-anon-key"
SERVICE_ROLE_KEY = "test-service-role-key"
PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="function")
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes all app-related env vars to ensure clean state.
    """
    env_vars = [
        "DATABASE_URL",
        "ANON_KEY",
        "SERVICE_ROLE_KEY",
        "JWT_SECRET_KEY",
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "MAX_CSV_UPLOAD_MB",
        "MAX_INVESTOR_FILE_MB",
        "MAX_IMAGE_UPLOAD_MB",
        "STORAGE_DIR",
        "PUBLIC_STORAGE_URL",
        "LOG_LEVEL",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)

    # Reset settings singleton
    reset_settings()

    yield

    # Reset again after test
    reset_settings()


@pytest.fixture(scope="function")
def app_env(clean_env, monkeypatch, tmp_path):
    """Environment for code that reads settings: SQLite URL, both keys, temp storage."""
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("ANON_KEY", ANON_KEY)
    monkeypatch.setenv("SERVICE_ROLE_KEY", SERVICE_ROLE_KEY)
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    reset_settings()
    reset_engine()

    yield tmp_path

    reset_engine()


@pytest.fixture(scope="function")
def test_db():
    """
    Create an in-memory SQLite database for testing.

    Fresh database for each test. StaticPool keeps the single connection
    shared with the TestClient's worker threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_db):
    """Alias for test_db."""
    yield test_db


@pytest.fixture
def client(test_db, app_env):
    """Create test client with overridden database."""
    from venturematch.main import app

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# =============================================================================
# Accounts
# =============================================================================


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def anon_headers():
    """Headers carrying the public API key required by signup and login."""
    return {"apikey": ANON_KEY}


@pytest.fixture
def make_account(test_db, app_env):
    """
    Factory: create an account of the given role and return
    {"id", "email", "headers"} with a valid bearer token.
    """
    def _make(role: str, email: str, first_name: str = "Test", last_name: str = "User") -> dict:
        auth = AuthService(test_db)
        if role == "admin":
            user_id = auth.create_admin(email, PASSWORD).id
        else:
            user_id = auth.signup(email, PASSWORD, first_name, last_name, role)["user_id"]
        token = auth.login(email, PASSWORD)["access_token"]
        return {"id": user_id, "email": email, "headers": bearer(token)}

    return _make


@pytest.fixture
def founder(make_account):
    return make_account("founder", "ada@foundry.io", "Ada", "Lovelace")


@pytest.fixture
def investor(make_account):
    return make_account("investor", "grace@capital.io", "Grace", "Hopper")


@pytest.fixture
def admin(make_account):
    return make_account("admin", "root@venturematch.io")


# =============================================================================
# Domain rows
# =============================================================================


@pytest.fixture
def sample_company(test_db, founder):
    """A company owned by the founder fixture, set as active."""
    from venturematch.companies import CompanyService

    return CompanyService(test_db).upsert_company(
        founder["id"],
        {
            "company_name": "Ledgerly",
            "short_description": "Fintech bookkeeping for B2B marketplaces",
            "full_description": "Automated reconciliation and payouts",
            "country": "Germany",
            "city": "Berlin",
        },
    )
