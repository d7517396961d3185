"""
Pytest fixtures for backend tests.

Provides common test fixtures for database, storage, client and
authentication.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from docdesk.core.rate_limiter import limiter
from docdesk.core.security import create_access_token, get_password_hash
from docdesk.db.session import Database
from docdesk.main import create_app
from docdesk.models.document import Document, DocumentCategory, DocumentStatus
from docdesk.models.user import User, UserRole
from docdesk.services.storage_service import LocalStorageService

# Rate limits would make repeated logins in one test run flaky
limiter.enabled = False

PASSWORD = "Secret123"


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database per test."""
    database = Database("sqlite://").open()
    yield database
    database.close()


@pytest.fixture(scope="function")
def db(database: Database) -> Generator[Session, None, None]:
    """
    Session for arranging and inspecting test data.

    Yields:
        Session: Test database session.
    """
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def storage(tmp_path) -> LocalStorageService:
    return LocalStorageService(tmp_path / "uploads")


@pytest.fixture(scope="function")
def client(database: Database, storage: LocalStorageService) -> Generator[TestClient, None, None]:
    """
    Test client bound to the test database and upload directory.

    Yields:
        TestClient: FastAPI test client.
    """
    app = create_app(database=database, storage=storage)
    with TestClient(app) as test_client:
        yield test_client


def make_user(
    db: Session,
    employee_id: str,
    role: UserRole = UserRole.USER,
    department: str = "Engineering",
    name: str = "Test User",
    is_active: bool = True,
) -> User:
    user = User(
        employee_id=employee_id.upper(),
        name=name,
        email=f"{employee_id.lower()}@example.com",
        hashed_password=get_password_hash(PASSWORD),
        department=department,
        role=role,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_document(db: Session, owner: User, **overrides) -> Document:
    values = {
        "title": "Travel receipts",
        "category": DocumentCategory.EXPENSE_REPORT,
        "status": DocumentStatus.PENDING,
        "uploaded_by_id": owner.id,
        "uploader_department": owner.department,
        "tags": [],
    }
    values.update(overrides)
    document = Document(**values)
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def bearer(user: User) -> dict:
    token = create_access_token(subject=user.id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    return make_user(db, "EMP001", name="John Doe", department="Engineering")


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    return make_user(db, "EMP002", name="Jane Smith", department="Marketing")


@pytest.fixture(scope="function")
def admin_user(db: Session) -> User:
    return make_user(db, "ADMIN001", role=UserRole.ADMIN, name="System Administrator", department="IT")


@pytest.fixture(scope="function")
def auth_headers(test_user: User) -> dict:
    """Authorization headers with a JWT for the test user."""
    return bearer(test_user)


@pytest.fixture(scope="function")
def admin_headers(admin_user: User) -> dict:
    return bearer(admin_user)
