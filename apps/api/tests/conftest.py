"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, recreated for every test
- Users per role and JWT token minting
- HTTPX AsyncClient factory with session cookie and CSRF header
"""
import os
import tempfile
import uuid
from typing import Generator

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "dev"
os.environ["AUTO_CREATE_DB"] = "false"
os.environ["DB_AUTO_MIGRATE"] = "false"
os.environ["IDENTITY_PROVIDER"] = "local"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="helpdesk-uploads-")
os.environ["RESEND_API_KEY"] = ""
os.environ["INTERNAL_SECRET"] = ""
os.environ["ENFORCE_FORWARD_TRANSITIONS"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

import helpdesk.db.models  # noqa: F401  (register tables)
from helpdesk.core.config import settings
from helpdesk.core.deps import COOKIE_NAME, get_db
from helpdesk.core.security import create_session_token
from helpdesk.db.base import Base
from helpdesk.db.enums import Role
from helpdesk.db.models import Client, ServiceTag, User
from helpdesk.db.session import SessionLocal, engine
from helpdesk.main import app

CSRF_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; the app shares this session via get_db."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield session
    app.dependency_overrides.clear()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir() -> str:
    return settings.LOCAL_STORAGE_PATH


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def make_client_company(db: Session):
    def _make(company_name: str = "Acme Corp", **kwargs) -> Client:
        client = Client(
            name=kwargs.pop("name", "Jane Contact"),
            company_name=company_name,
            email=kwargs.pop("email", f"contact-{uuid.uuid4().hex[:6]}@acme.com"),
            phone=kwargs.pop("phone", "555-0100"),
            **kwargs,
        )
        db.add(client)
        db.commit()
        return client

    return _make


@pytest.fixture
def make_user(db: Session):
    def _make(role: Role, *, client: Client | None = None, is_disabled: bool = False, name: str | None = None) -> User:
        user = User(
            id=uuid.uuid4(),
            email=f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
            name=name or f"Test {role.value.title()}",
            role=role,
            client_id=client.id if client else None,
            is_disabled=is_disabled,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_service_tag(db: Session):
    def _make(client: Client, tag: str = "SN-001") -> ServiceTag:
        service_tag = ServiceTag(
            tag=tag,
            description="Laptop",
            hardware_type="Laptop",
            location="HQ",
            client_id=client.id,
        )
        db.add(service_tag)
        db.commit()
        return service_tag

    return _make


@pytest.fixture
def acme(make_client_company) -> Client:
    return make_client_company("Acme Corp")


@pytest.fixture
def superadmin(make_user) -> User:
    return make_user(Role.SUPERADMIN, name="Sam Super")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.ADMIN, name="Ada Admin")


@pytest.fixture
def technician(make_user) -> User:
    return make_user(Role.TECHNICIAN, name="Tom Tech")


@pytest.fixture
def client_user(make_user, acme) -> User:
    return make_user(Role.CLIENT, client=acme, name="Carl Client")


# =============================================================================
# Client Fixtures
# =============================================================================

def token_for(user: User) -> str:
    return create_session_token(user_id=user.id, role=user.role.value)


@pytest.fixture
def api(db: Session):
    """
    Factory for AsyncClients. Pass a user for a cookie session with the CSRF
    header, or nothing for an anonymous client.

    Usage:
        async with api(admin) as c:
            await c.get("/tickets")
    """
    def _make(user: User | None = None, *, csrf: bool = True) -> AsyncClient:
        cookies = {COOKIE_NAME: token_for(user)} if user else None
        headers = CSRF_HEADERS if (user and csrf) else None
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
            headers=headers,
        )

    return _make
