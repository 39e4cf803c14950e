"""
Pytest configuration and fixtures
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from risingsun.main import app
from risingsun.db.base import Base
from risingsun.core.deps import get_db
from risingsun.core.security import hash_password

# Import all models to ensure they're registered with Base.metadata
from risingsun.models import (
    User,
    UserRole,
    UserStatus,
    AttendanceRecord,
    SalaryAdvance,
    AuditLog,
)  # noqa


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _insert_user(db, email, full_name, password="testpass123", role=UserRole.USER,
                 status=UserStatus.APPROVED, monthly_salary=None, active=True):
    """Insert a user directly (bypasses the API)"""
    user = User(
        email=email,
        full_name=full_name,
        role=role.value,
        status=status.value,
        monthly_salary=monthly_salary,
        password_hash=hash_password(password),
        active=active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_user(db):
    """Factory for extra users bound to the test database"""
    def _make(email, full_name, **kwargs):
        return _insert_user(db, email, full_name, **kwargs)
    return _make


@pytest.fixture
def admin_user(db):
    """Approved admin without a salary"""
    return _insert_user(db, "admin@risingsun.test", "Asha Admin", password="adminpass123", role=UserRole.ADMIN)


@pytest.fixture
def employee(db):
    """Approved employee on payroll"""
    return _insert_user(db, "ravi@risingsun.test", "Ravi Kumar", monthly_salary=Decimal("30000.00"))


@pytest.fixture
def other_employee(db):
    """Second approved employee on payroll"""
    return _insert_user(db, "meena@risingsun.test", "Meena Iyer", monthly_salary=Decimal("25000.00"))


def login(client, email, password):
    """Log in and return bearer headers"""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client, admin_user):
    return login(client, "admin@risingsun.test", "adminpass123")


@pytest.fixture
def employee_headers(client, employee):
    return login(client, "ravi@risingsun.test", "testpass123")


@pytest.fixture
def other_employee_headers(client, other_employee):
    return login(client, "meena@risingsun.test", "testpass123")
