from urllib.parse import urlsplit

import pytest
from fastapi.testclient import TestClient

from studio.dependencies import get_storage_service
from studio.main import app
from studio.models.estimate import Estimate
from studio.services import estimate_renderer
from studio.services.storage import LocalStorage

HEADERS = {"X-Tenant-Id": "acme"}


@pytest.fixture
def client(tmp_path, monkeypatch, stub_pdf_writer):
    storage = LocalStorage(base_path=str(tmp_path), base_url="http://testserver")
    app.dependency_overrides[get_storage_service] = lambda: storage
    monkeypatch.setattr(estimate_renderer, "weasyprint_writer", stub_pdf_writer)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def configured(client, kitchen_config):
    r = client.put("/api/pricing/config", json=kitchen_config, headers=HEADERS)
    assert r.status_code == 200
    return client


def _submit(client, selection, customer=None):
    return client.post(
        "/api/estimates",
        json={"customerInfo": customer or {"name": "Ravi Kumar"}, "selection": selection},
        headers=HEADERS,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_missing_tenant_header_is_rejected(client):
    r = client.get("/api/pricing/config")
    assert r.status_code == 400


def test_pricing_config_defaults_then_replace(client, kitchen_config):
    r = client.get("/api/pricing/config", headers=HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert "roomPricing" in body
    assert len(body["kitchen"]["layouts"]) == 4

    r = client.put("/api/pricing/config", json=kitchen_config, headers=HEADERS)
    assert r.status_code == 200
    assert [x["id"] for x in r.json()["roomPricing"]] == ["kitchen"]


def test_calculate_does_not_persist(configured, db, kitchen_selection):
    r = configured.post("/api/estimates/calculate", json=kitchen_selection, headers=HEADERS)

    assert r.status_code == 200
    body = r.json()
    assert body["totalAmount"] == 675000
    assert body["breakdown"][0]["unitPrice"] == 675000
    assert db.query(Estimate).count() == 0


def test_submit_then_read_with_legacy_view(configured, kitchen_selection):
    kitchen_selection["bathroomsCount"] = 2
    kitchen_selection["configuration"]["bedrooms"] = []

    r = _submit(configured, kitchen_selection)
    assert r.status_code == 201
    created = r.json()
    assert created["totalAmount"] == 675000
    assert created["status"] == "pending"
    assert created["bedrooms"] == 0
    assert created["bathrooms"] == 2
    assert created["pdfGenerated"] is False

    r = configured.get(f"/api/estimates/{created['id']}", headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["breakdown"][0]["label"] == "Kitchen"


def test_invalid_selection_is_422_and_nothing_is_stored(configured, db, kitchen_selection):
    kitchen_selection["carpetArea"] = -10

    r = _submit(configured, kitchen_selection)

    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "NEGATIVE_AREA"
    assert db.query(Estimate).count() == 0


def test_oversized_room_count_is_422(configured, kitchen_selection):
    kitchen_selection["bedroomsCount"] = 10**400

    r = configured.post("/api/estimates/calculate", json=kitchen_selection, headers=HEADERS)

    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "NON_INTEGER_COUNT"


def test_estimates_are_tenant_scoped(configured, kitchen_selection):
    estimate_id = _submit(configured, kitchen_selection).json()["id"]

    r = configured.get(f"/api/estimates/{estimate_id}", headers={"X-Tenant-Id": "globex"})
    assert r.status_code == 404

    r = configured.get("/api/estimates", headers={"X-Tenant-Id": "globex"})
    assert r.json() == {"items": [], "total": 0}


def test_status_workflow_and_conflict(configured, kitchen_selection):
    estimate_id = _submit(configured, kitchen_selection).json()["id"]
    url = f"/api/estimates/{estimate_id}/status"

    r = configured.patch(url, json={"status": "approved"}, headers=HEADERS)
    assert r.status_code == 200
    assert r.json()["status"] == "approved"

    r = configured.patch(url, json={"status": "rejected"}, headers=HEADERS)
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"


def test_assignment_flow(configured, kitchen_selection):
    estimate_id = _submit(configured, kitchen_selection).json()["id"]
    url = f"/api/estimates/{estimate_id}/assignment"

    r = configured.patch(url, json={"assignedTo": "staff-1", "assignedToName": "Asha"}, headers=HEADERS)
    assert r.json()["assignmentStatus"] == "pending"

    r = configured.patch(url, json={"assignmentStatus": "completed"}, headers=HEADERS)
    assert r.status_code == 409

    r = configured.patch(url, json={}, headers=HEADERS)
    assert r.status_code == 422

    r = configured.get("/api/estimates", params={"assignedTo": "staff-1"}, headers=HEADERS)
    assert r.json()["total"] == 1


def test_total_override(configured, kitchen_selection):
    estimate_id = _submit(configured, kitchen_selection).json()["id"]

    r = configured.patch(
        f"/api/estimates/{estimate_id}/total",
        json={"totalAmount": 650000, "reason": "negotiated"},
        headers=HEADERS,
    )
    assert r.status_code == 200
    assert r.json()["totalAmount"] == 650000


def test_document_generate_and_download(configured, kitchen_selection, stub_pdf_writer):
    estimate_id = _submit(configured, kitchen_selection).json()["id"]
    url = f"/api/estimates/{estimate_id}/document"

    assert configured.get(url, headers=HEADERS).status_code == 404

    r = configured.post(url, headers=HEADERS)
    assert r.status_code == 200
    body = r.json()
    assert body["pdfGenerated"] is True
    assert body["generatedAt"] is not None
    assert body["status"] == "pending"
    assert len(stub_pdf_writer.calls) == 1

    r = configured.get(url, headers=HEADERS)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert "estimate_ravi_kumar_" in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")


def test_stored_pdf_url_is_served(kitchen_config, kitchen_selection, monkeypatch, stub_pdf_writer):
    # default storage: LocalStorage under settings.local_storage_path
    monkeypatch.setattr(estimate_renderer, "weasyprint_writer", stub_pdf_writer)
    with TestClient(app) as c:
        c.put("/api/pricing/config", json=kitchen_config, headers=HEADERS)
        estimate_id = _submit(c, kitchen_selection).json()["id"]

        body = c.post(f"/api/estimates/{estimate_id}/document", headers=HEADERS).json()
        path = urlsplit(body["pdfUrl"]).path
        assert path == f"/files/acme/estimates/{estimate_id}.pdf"

        r = c.get(path)
        assert r.status_code == 200
        assert r.content == b"%PDF-1.7 stub 1"


def test_branding_round_trip(client):
    r = client.get("/api/tenant/branding", headers=HEADERS)
    assert r.json()["companyName"] == "Interior Design Co."

    r = client.put(
        "/api/tenant/branding",
        json={"companyName": "Acme Interiors", "primaryColor": "#ABCDEF"},
        headers=HEADERS,
    )
    assert r.status_code == 200
    assert r.json()["primaryColor"] == "#abcdef"
    assert client.get("/api/tenant/branding", headers=HEADERS).json()["companyName"] == "Acme Interiors"


def test_metrics_endpoint(client):
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "estimates_computed_total" in r.text
