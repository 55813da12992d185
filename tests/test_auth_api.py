# tests/test_auth_api.py
from conftest import API, PASSWORD, doctor_payload


async def test_signup_returns_profile(async_client):
    response = await async_client.post(f"{API}/auth/signup", json=doctor_payload("wilson@hospital.example.com", "EMP-200"))
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "wilson@hospital.example.com"
    assert data["doctor"]["employee_id"] == "EMP-200"
    assert data["doctor"]["role"] == "doctor"


async def test_duplicate_email_is_rejected(async_client):
    await async_client.post(f"{API}/auth/signup", json=doctor_payload("wilson@hospital.example.com", "EMP-200"))
    response = await async_client.post(f"{API}/auth/signup", json=doctor_payload("Wilson@hospital.example.com", "EMP-201"))
    assert response.status_code == 409


async def test_weak_password_is_rejected(async_client):
    payload = doctor_payload("chase@hospital.example.com", "EMP-300")
    payload["password"] = "onlyletters"
    response = await async_client.post(f"{API}/auth/signup", json=payload)
    assert response.status_code == 422


async def test_wrong_password_is_unauthorized(async_client):
    await async_client.post(f"{API}/auth/signup", json=doctor_payload("wilson@hospital.example.com", "EMP-200"))
    response = await async_client.post(
        f"{API}/auth/token", data={"username": "wilson@hospital.example.com", "password": PASSWORD + "x"}
    )
    assert response.status_code == 401


async def test_me_resolves_the_doctor_profile(async_client, doctor_headers):
    response = await async_client.get(f"{API}/auth/me", headers=doctor_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "house@hospital.example.com"
    assert data["doctor"]["name"] == "Gregory House"
    assert data["last_login"] is not None


async def test_logout_revokes_the_token(async_client, doctor_headers):
    response = await async_client.post(f"{API}/auth/logout", headers=doctor_headers)
    assert response.status_code == 204
    response = await async_client.get(f"{API}/auth/me", headers=doctor_headers)
    assert response.status_code == 401


async def test_protected_routes_need_a_token(async_client):
    response = await async_client.get(f"{API}/bookings")
    assert response.status_code == 401


async def test_admin_routes_reject_doctors(async_client, doctor_headers, admin_headers):
    assert (await async_client.get(f"{API}/logs", headers=doctor_headers)).status_code == 403
    response = await async_client.get(f"{API}/logs", headers=admin_headers)
    assert response.status_code == 200
    assert any(entry["action"] == "SIGNUP" for entry in response.json())
