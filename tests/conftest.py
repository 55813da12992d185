# tests/conftest.py
import os

# Settings are read once at import time, so the environment must be in place first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["THEATER_COUNT"] = "3"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123456789")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from otbooking import models, security
from otbooking.database import SessionLocal, create_tables, drop_tables
from otbooking.main import app

API = "/api/v1"
PASSWORD = "Scalpel2024"


@pytest.fixture(autouse=True)
def fresh_database():
    create_tables()
    yield
    drop_tables()
    security.revoked_tokens.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def doctor(db):
    user = models.User(email="grey@hospital.example.com", password_hash="not-a-real-hash")
    user.doctor = models.Doctor(
        employee_id="EMP-001",
        name="Meredith Grey",
        qualification="MS General Surgery",
        specialization=models.Specialization.general,
        contact="555-0101",
    )
    db.add(user)
    db.commit()
    return user.doctor


@pytest.fixture
def patient(db):
    db_patient = models.Patient(patient_id="P-001", name="Amy Pond", age=34, gender="female", condition="Appendicitis")
    db.add(db_patient)
    db.commit()
    return db_patient


@pytest_asyncio.fixture
async def async_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def doctor_payload(email, employee_id, role="doctor", name="Gregory House"):
    return {
        "email": email,
        "password": PASSWORD,
        "name": name,
        "employee_id": employee_id,
        "qualification": "MD Diagnostics",
        "specialization": "general",
        "contact": "555-0199",
        "role": role,
    }


@pytest.fixture
def register(async_client):
    """Sign up an account and log in; returns the bearer headers."""
    async def _register(email, employee_id, role="doctor", name="Gregory House"):
        payload = doctor_payload(email, employee_id, role=role, name=name)
        response = await async_client.post(f"{API}/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        response = await async_client.post(
            f"{API}/auth/token", data={"username": email, "password": PASSWORD}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _register


@pytest_asyncio.fixture
async def doctor_headers(register):
    return await register("house@hospital.example.com", "EMP-100")


@pytest_asyncio.fixture
async def admin_headers(register):
    return await register("cuddy@hospital.example.com", "EMP-900", role="admin", name="Lisa Cuddy")


@pytest_asyncio.fixture
async def api_patient(async_client, doctor_headers):
    response = await async_client.post(
        f"{API}/patients",
        json={"patient_id": "P-100", "name": "Rory Williams", "age": 41, "gender": "male", "condition": "Hernia repair"},
        headers=doctor_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
