from app.core.settings import settings


def _create_treatment(api_client, auth_headers, name: str, price: int) -> int:
    response = api_client.post(
        "/treatments",
        json={"name": name, "category": "Restauradora", "base_price_cents": price},
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_empty_odontogram_renders_full_chart(api_client, auth_headers, patient_id):
    response = api_client.get(f"/patients/{patient_id}/odontogram", headers=auth_headers)
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["teeth"] == {}
    teeth = [tooth for quadrant in payload["chart"]["quadrants"] for tooth in quadrant["teeth"]]
    assert len(teeth) == 32
    assert {tooth["label"] for tooth in teeth} == {"Sano"}
    assert payload["chart"]["read_only"] is False


def test_upsert_same_tooth_keeps_one_row(api_client, auth_headers, patient_id):
    first = api_client.put(
        f"/patients/{patient_id}/odontogram/36",
        json={"condition": "caries", "surfaces": {"oclusal": "deep"}},
        headers=auth_headers,
    )
    assert first.status_code == 201, first.text
    assert first.json()["surfaces"] == {"occlusal": "deep"}

    second = api_client.put(
        f"/patients/{patient_id}/odontogram/36",
        json={"condition": "filling", "surfaces": {"occlusal": ""}},
        headers=auth_headers,
    )
    assert second.status_code == 200, second.text

    response = api_client.get(f"/patients/{patient_id}/odontogram", headers=auth_headers)
    teeth = response.json()["teeth"]
    assert list(teeth) == ["36"]
    assert teeth["36"]["condition"] == "filling"

    audit = api_client.get(
        f"/audit/patients/{patient_id}",
        params={"action": "odontogram.tooth"},
        headers=auth_headers,
    )
    assert audit.status_code == 200, audit.text
    actions = {entry["action"] for entry in audit.json()}
    assert actions == {"odontogram.tooth.created", "odontogram.tooth.updated"}


def test_chart_reflects_saved_tooth(api_client, auth_headers, patient_id):
    api_client.put(
        f"/patients/{patient_id}/odontogram/18",
        json={"condition": "extraction"},
        headers=auth_headers,
    )
    response = api_client.get(
        f"/patients/{patient_id}/odontogram",
        params={"selected": 18},
        headers=auth_headers,
    )
    chart = response.json()["chart"]
    assert chart["selected_tooth"] == 18
    tooth = chart["quadrants"][0]["teeth"][0]
    assert tooth["tooth_number"] == 18
    assert tooth["crossed"] is True
    assert tooth["selected"] is True
    assert tooth["scale"] == 1.1


def test_invalid_tooth_number_is_rejected(api_client, auth_headers, patient_id):
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/19",
        json={"condition": "caries"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_unknown_condition_is_rejected(api_client, auth_headers, patient_id):
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/11",
        json={"condition": "unknown_xyz"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_unknown_surface_is_rejected(api_client, auth_headers, patient_id):
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/11",
        json={"condition": "caries", "surfaces": {"apex": "x"}},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_inactive_treatment_is_rejected(api_client, auth_headers, patient_id):
    treatment_id = _create_treatment(api_client, auth_headers, "Sellador retirado", 1500)
    patch = api_client.patch(f"/treatments/{treatment_id}", json={"is_active": False}, headers=auth_headers)
    assert patch.status_code == 200, patch.text
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/14",
        json={"condition": "caries", "treatment_id": treatment_id},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_unknown_patient_is_404(api_client, auth_headers):
    response = api_client.get("/patients/999999/odontogram", headers=auth_headers)
    assert response.status_code == 404


def test_receptionist_cannot_write_teeth(api_client, role_headers, patient_id):
    headers = role_headers("receptionist")
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/21",
        json={"condition": "crown"},
        headers=headers,
    )
    assert response.status_code == 403

    chart = api_client.get(f"/patients/{patient_id}/odontogram", headers=headers)
    assert chart.status_code == 200, chart.text
    assert chart.json()["chart"]["read_only"] is True


def test_doctor_can_write_teeth(api_client, role_headers, patient_id):
    response = api_client.put(
        f"/patients/{patient_id}/odontogram/21",
        json={"condition": "crown"},
        headers=role_headers("doctor"),
    )
    assert response.status_code == 201, response.text


def test_missing_token_is_401(api_client, patient_id):
    response = api_client.get(f"/patients/{patient_id}/odontogram")
    assert response.status_code == 401


def test_svg_export(api_client, auth_headers, patient_id):
    api_client.put(
        f"/patients/{patient_id}/odontogram/46",
        json={"condition": "caries", "surfaces": {"occlusal": "deep"}},
        headers=auth_headers,
    )
    response = api_client.get(f"/patients/{patient_id}/odontogram.svg", headers=auth_headers)
    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert "<svg" in response.text


def test_pdf_export_follows_feature_flag(api_client, auth_headers, patient_id, monkeypatch):
    response = api_client.get(f"/patients/{patient_id}/odontogram.pdf", headers=auth_headers)
    assert response.status_code == 200, response.text
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")

    monkeypatch.setattr(settings, "feature_odontogram_pdf", False)
    disabled = api_client.get(f"/patients/{patient_id}/odontogram.pdf", headers=auth_headers)
    assert disabled.status_code == 404
