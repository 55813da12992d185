# tests/test_patients_api.py
from conftest import API


async def test_create_and_read_patient(async_client, doctor_headers, api_patient):
    response = await async_client.get(f"{API}/patients/{api_patient['id']}", headers=doctor_headers)
    assert response.status_code == 200
    assert response.json()["patient_id"] == "P-100"


async def test_duplicate_patient_id_conflicts(async_client, doctor_headers, api_patient):
    response = await async_client.post(
        f"{API}/patients",
        json={"patient_id": "P-100", "name": "Someone Else", "age": 20, "condition": "Fracture"},
        headers=doctor_headers,
    )
    assert response.status_code == 409


async def test_discharge_before_admission_is_rejected(async_client, doctor_headers):
    response = await async_client.post(
        f"{API}/patients",
        json={
            "patient_id": "P-101", "name": "Clara Oswald", "age": 29, "condition": "Fracture",
            "date_of_admission": "2030-05-10", "date_of_discharge": "2030-05-01",
        },
        headers=doctor_headers,
    )
    assert response.status_code == 422


async def test_search_patients(async_client, doctor_headers, api_patient):
    await async_client.post(
        f"{API}/patients",
        json={"patient_id": "P-102", "name": "Donna Noble", "age": 38, "gender": "female", "condition": "Cholecystitis"},
        headers=doctor_headers,
    )
    response = await async_client.get(f"{API}/patients", params={"search": "hernia"}, headers=doctor_headers)
    assert [p["patient_id"] for p in response.json()] == ["P-100"]
    response = await async_client.get(f"{API}/patients", params={"gender": "female"}, headers=doctor_headers)
    assert [p["patient_id"] for p in response.json()] == ["P-102"]


async def test_update_patient(async_client, doctor_headers, api_patient):
    response = await async_client.put(
        f"{API}/patients/{api_patient['id']}", json={"age": 42}, headers=doctor_headers
    )
    assert response.status_code == 200
    assert response.json()["age"] == 42


async def test_unknown_patient_is_404(async_client, doctor_headers):
    response = await async_client.get(f"{API}/patients/does-not-exist", headers=doctor_headers)
    assert response.status_code == 404
