"""
Shared test fixtures — throwaway SQLite database, test client, auth helpers,
and unsaved job/customer/settings rows for the pure modules.
"""

import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set configuration before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["LOGO_PATH"] = "/nonexistent/logo.png"

from tradebook import models
from tradebook.database import Base, get_db
from tradebook.main import app
from tradebook.pdf_renderer import FpdfTextMetrics


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _register(client, email):
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": "strongpassword123",
    })
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Register a test user and return auth headers."""
    return _register(client, "sam@roofing.test")


@pytest.fixture
def other_headers(client):
    """A second, unrelated account."""
    return _register(client, "alex@plumbing.test")


@pytest.fixture
def metrics():
    return FpdfTextMetrics()


# --- Unsaved rows for the composer / orchestration tests ---

def make_customer(**overrides):
    fields = {
        "id": 7,
        "name": "Jane Smith",
        "address": "12 High St\nTown\nAB1 2CD",
    }
    fields.update(overrides)
    return models.Customer(**fields)


def make_job(customer=None, **overrides):
    fields = {
        "id": 42,
        "customer_id": 7,
        "title": "Kitchen refit",
        "description": "Strip out and refit kitchen units",
        "notes": "Customer has a nervous dog",
        "status": models.JobStatus.DRAFT,
        "materials_cost": 100.0,
        "materials_notes": "Oak worktops",
        "labour_mode": models.LabourMode.DAYS,
        "labour_days": 2.0,
        "labour_day_rate": 150.0,
        "labour_cost": 300.0,
        "other_costs": 50.0,
        "other_costs_notes": "Skip hire",
        "subtotal": 450.0,
        "vat_amount": 90.0,
        "total": 540.0,
        "created_at": datetime(2026, 10, 1, 9, 0),
    }
    fields.update(overrides)
    job = models.Job(**fields)
    job.customer = customer if customer is not None else make_customer()
    return job


def make_settings(**overrides):
    fields = {
        "business_name": "Smith & Sons Building",
        "vat_registered": True,
        "vat_number": "GB123456789",
        "bank_details": "Sort code: 12-34-56\nAccount: 12345678",
        "default_quote_validity_days": 30,
    }
    fields.update(overrides)
    return models.BusinessSettings(**fields)
