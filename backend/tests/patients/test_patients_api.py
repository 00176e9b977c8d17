import uuid


def test_create_and_search_patient(api_client, auth_headers):
    last_name = f"Buscable{uuid.uuid4().hex[:6]}"
    created = api_client.post(
        "/patients",
        json={"first_name": "Marta", "last_name": last_name, "email": "marta@example.com"},
        headers=auth_headers,
    )
    assert created.status_code == 201, created.text
    assert created.json()["full_name"] == f"Marta {last_name}"
    assert created.headers["x-request-id"]

    found = api_client.get("/patients", params={"q": last_name}, headers=auth_headers)
    assert found.status_code == 200, found.text
    assert [item["id"] for item in found.json()] == [created.json()["id"]]


def test_update_and_archive_patient(api_client, auth_headers, patient_id):
    updated = api_client.patch(f"/patients/{patient_id}", json={"phone": "600123123"}, headers=auth_headers)
    assert updated.status_code == 200, updated.text
    assert updated.json()["phone"] == "600123123"

    audit = api_client.get(
        f"/audit/patients/{patient_id}",
        params={"action": "patient.updated"},
        headers=auth_headers,
    )
    assert audit.status_code == 200, audit.text
    entries = audit.json()
    assert len(entries) == 1
    assert "phone" in entries[0]["changed_fields"]
    assert entries[0]["actor"]["role"] == "admin"

    archived = api_client.delete(f"/patients/{patient_id}", headers=auth_headers)
    assert archived.status_code == 204
    assert api_client.get(f"/patients/{patient_id}", headers=auth_headers).status_code == 404


def test_auditor_reads_but_cannot_create(api_client, role_headers, patient_id):
    headers = role_headers("auditor")
    assert api_client.get(f"/patients/{patient_id}", headers=headers).status_code == 200
    response = api_client.post("/patients", json={"first_name": "No", "last_name": "Permitido"}, headers=headers)
    assert response.status_code == 403


def test_me_lists_permissions(api_client, role_headers):
    response = api_client.get("/me", headers=role_headers("doctor"))
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["role"] == "doctor"
    assert "odontogram" in payload["permissions"]
    assert "cash_register" not in payload["permissions"]


def test_audit_requires_permission(api_client, auth_headers, role_headers):
    assert api_client.get("/audit", headers=role_headers("doctor")).status_code == 403
    response = api_client.get("/audit", params={"action": "patient."}, headers=auth_headers)
    assert response.status_code == 200, response.text
    assert all(entry["action"].startswith("patient.") for entry in response.json())


def test_document_number_is_normalized(api_client, auth_headers):
    response = api_client.post(
        "/patients",
        json={"first_name": "Jorge", "last_name": "Documento", "document_number": " 12.345-678 k"},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["document_number"] == "12.345678K"


def test_request_id_is_echoed_into_audit(api_client, auth_headers, patient_id):
    api_client.put(
        f"/patients/{patient_id}/odontogram/11",
        json={"condition": "crown"},
        headers={**auth_headers, "X-Request-Id": "req-odontogram-11"},
    )
    audit = api_client.get(
        f"/audit/patients/{patient_id}",
        params={"action": "odontogram.tooth"},
        headers=auth_headers,
    )
    assert [entry["request_id"] for entry in audit.json()] == ["req-odontogram-11"]


def test_patient_names_cannot_be_cleared(api_client, auth_headers, patient_id):
    for field in ("first_name", "last_name"):
        response = api_client.patch(f"/patients/{patient_id}", json={field: None}, headers=auth_headers)
        assert response.status_code == 422, field

    cleared = api_client.patch(f"/patients/{patient_id}", json={"phone": None}, headers=auth_headers)
    assert cleared.status_code == 200, cleared.text
    assert cleared.json()["first_name"] == "Lucía"
