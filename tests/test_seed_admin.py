# tests/test_seed_admin.py
import pytest
from pydantic import ValidationError

import seed_admin
from conftest import API


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_DEFAULT_PASSWORD", "Theatre2024")
    monkeypatch.delenv("ADMIN_DEFAULT_EMAIL", raising=False)


async def test_seeded_admin_can_sign_in_and_read_me(async_client, db, admin_env):
    seed_admin.upsert_admin(db)

    response = await async_client.post(
        f"{API}/auth/token", data={"username": "admin@hospital.example.com", "password": "Theatre2024"}
    )
    assert response.status_code == 200, response.text
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await async_client.get(f"{API}/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["email"] == "admin@hospital.example.com"
    assert response.json()["doctor"]["role"] == "admin"


def test_seeding_twice_updates_the_same_account(db, admin_env):
    assert seed_admin.upsert_admin(db).startswith("Admin user created")
    assert seed_admin.upsert_admin(db).startswith("Admin user updated")


def test_reserved_admin_email_is_rejected(db, admin_env, monkeypatch):
    monkeypatch.setenv("ADMIN_DEFAULT_EMAIL", "admin@hospital.local")
    with pytest.raises(ValidationError):
        seed_admin.upsert_admin(db)
