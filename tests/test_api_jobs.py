"""
Job API tests.

1-4.   Create: pre-filled day rate, computed totals, VAT from settings
5-7.   Save: labour mode switching, totals always rewritten
8-10.  Listing, status filter, status counts
11-13. Live breakdown preview, status changes, deletes and scoping
"""

import pytest


@pytest.fixture
def customer_id(client, auth_headers):
    response = client.post("/api/customers/", json={"name": "Jane Smith"}, headers=auth_headers)
    return response.json()["id"]


def _settings(client, headers, **fields):
    response = client.put("/api/settings/", json=fields, headers=headers)
    assert response.status_code == 200


def _create(client, headers, customer_id, **fields):
    body = {"customer_id": customer_id, "title": "Kitchen refit"}
    body.update(fields)
    response = client.post("/api/jobs/", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_create_job_computes_totals(client, auth_headers, customer_id):
    _settings(client, auth_headers, vat_registered=True)
    job = _create(
        client, auth_headers, customer_id,
        materials_cost="100", labour_days=2, labour_day_rate="150", other_costs=50,
    )
    assert job["status"] == "draft"
    assert job["labour_mode"] == "days"
    assert job["labour_cost"] == 300.0
    assert (job["subtotal"], job["vat_amount"], job["total"]) == (450.0, 90.0, 540.0)
    assert job["customer"]["name"] == "Jane Smith"


def test_no_vat_without_settings(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id, materials_cost=100)
    assert job["vat_amount"] == 0.0
    assert job["total"] == 100.0


def test_new_job_gets_default_day_rate(client, auth_headers, customer_id):
    _settings(client, auth_headers, default_day_rate=180)
    job = _create(client, auth_headers, customer_id, labour_days=1)
    assert job["labour_day_rate"] == 180.0
    assert job["labour_cost"] == 180.0


def test_junk_amounts_count_as_zero(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id, materials_cost="12abc", other_costs="n/a")
    assert job["materials_cost"] == 12.0
    assert job["other_costs"] is None
    assert job["total"] == 12.0


def test_quote_date_fills_expiry(client, auth_headers, customer_id):
    _settings(client, auth_headers, default_quote_validity_days=14)
    job = _create(client, auth_headers, customer_id, quote_date="2026-10-01T09:00:00")
    assert job["quote_valid_until"].startswith("2026-10-15")


def test_blank_title_and_unknown_customer_rejected(client, auth_headers, customer_id):
    assert client.post("/api/jobs/", json={"customer_id": customer_id, "title": " "},
                       headers=auth_headers).status_code == 422
    assert client.post("/api/jobs/", json={"customer_id": 9999, "title": "X"},
                       headers=auth_headers).status_code == 404


def test_switch_to_fixed_labour(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id, labour_days=2, labour_day_rate=150)
    response = client.put(f"/api/jobs/{job['id']}", json={
        "customer_id": customer_id, "title": "Kitchen refit",
        "labour_mode": "fixed", "labour_fixed_cost": "425",
    }, headers=auth_headers)
    saved = response.json()
    assert saved["labour_mode"] == "fixed"
    assert saved["labour_cost"] == 425.0
    assert saved["labour_days"] is None
    assert saved["labour_day_rate"] is None
    assert saved["total"] == 425.0


def test_save_keeps_unsent_fields_and_recomputes(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id, materials_cost=100, notes="Side gate code 1234")
    _settings(client, auth_headers, vat_registered=True)
    response = client.put(f"/api/jobs/{job['id']}", json={
        "customer_id": customer_id, "title": "Kitchen refit v2", "other_costs": 20,
    }, headers=auth_headers)
    saved = response.json()
    assert saved["title"] == "Kitchen refit v2"
    assert saved["notes"] == "Side gate code 1234"
    assert saved["subtotal"] == 120.0
    assert saved["vat_amount"] == 24.0
    assert saved["total"] == 144.0


def test_list_newest_first_with_filter(client, auth_headers, customer_id):
    first = _create(client, auth_headers, customer_id, title="First")
    second = _create(client, auth_headers, customer_id, title="Second")
    client.patch(f"/api/jobs/{first['id']}/status", json={"status": "paid"}, headers=auth_headers)

    titles = [j["title"] for j in client.get("/api/jobs/", headers=auth_headers).json()]
    assert titles == ["Second", "First"]

    paid = client.get("/api/jobs/?status=paid", headers=auth_headers).json()
    assert [j["id"] for j in paid] == [first["id"]]
    assert second["id"] not in [j["id"] for j in paid]


def test_unknown_status_filter_rejected(client, auth_headers):
    assert client.get("/api/jobs/?status=lost", headers=auth_headers).status_code == 422


def test_status_counts(client, auth_headers, customer_id):
    for _ in range(2):
        _create(client, auth_headers, customer_id)
    job = _create(client, auth_headers, customer_id)
    client.patch(f"/api/jobs/{job['id']}/status", json={"status": "invoiced"}, headers=auth_headers)

    counts = client.get("/api/jobs/status-counts", headers=auth_headers).json()
    assert counts == {"draft": 2, "invoiced": 1}


def test_breakdown_preview(client, auth_headers):
    response = client.post("/api/jobs/breakdown", json={
        "materials_cost": "100", "labour_days": "2", "labour_day_rate": "150",
        "other_costs": "50", "vat_registered": True,
    }, headers=auth_headers)
    assert response.json() == {
        "materials_total": 100.0, "labour_total": 300.0, "other_total": 50.0,
        "subtotal": 450.0, "vat_amount": 90.0, "total": 540.0,
    }


def test_breakdown_preview_uses_settings_vat(client, auth_headers):
    _settings(client, auth_headers, vat_registered=True)
    response = client.post("/api/jobs/breakdown", json={
        "labour_mode": "fixed", "labour_fixed_cost": 200, "labour_days": 5, "labour_day_rate": 100,
    }, headers=auth_headers)
    assert response.json()["labour_total"] == 200.0
    assert response.json()["total"] == 240.0


def test_any_status_change_allowed(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id)
    for status in ("paid", "draft", "accepted"):
        response = client.patch(f"/api/jobs/{job['id']}/status", json={"status": status}, headers=auth_headers)
        assert response.json()["status"] == status


def test_delete_job(client, auth_headers, customer_id):
    job = _create(client, auth_headers, customer_id)
    assert client.delete(f"/api/jobs/{job['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/jobs/{job['id']}", headers=auth_headers).status_code == 404


def test_jobs_are_private(client, auth_headers, other_headers, customer_id):
    job = _create(client, auth_headers, customer_id)
    assert client.get(f"/api/jobs/{job['id']}", headers=other_headers).status_code == 404
    assert client.get("/api/jobs/", headers=other_headers).json() == []
    assert client.post("/api/jobs/", json={"customer_id": customer_id, "title": "Mine now"},
                       headers=other_headers).status_code == 404


def test_store_failure_reported_as_unavailable(client, auth_headers, monkeypatch):
    from sqlalchemy.exc import OperationalError

    from tradebook.repository import JobRepository

    def unavailable(self, status=None):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(JobRepository, "list", unavailable)
    response = client.get("/api/jobs/", headers=auth_headers)
    assert response.status_code == 503
    assert response.json() == {"detail": "Data store unavailable"}
