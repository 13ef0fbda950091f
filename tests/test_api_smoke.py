from fastapi.testclient import TestClient

from app.api import app
from intake.config import reset_settings

client = TestClient(app)

CSV = (
    "Policy Number,Payment Date,Amount\n"
    "63123456A12,2024-01-15,10\n"
)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_import_dry_run_against_store(monkeypatch, tmp_path, store_with_holder):
    from app.backend.process import save_store

    store_path = save_store(store_with_holder, str(tmp_path / "store.json"))
    monkeypatch.setenv("INTAKE_STORE_PATH", store_path)
    monkeypatch.delenv("INTAKE_PROFILE_PATH", raising=False)
    reset_settings()

    response = client.post(
        "/import",
        files={"file": ("receipts.csv", CSV.encode("utf-8"), "text/csv")},
        data={"source_format": "auto"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["committed"] is False
    assert body["result"]["source_format"] == "adhoc_receipts"
    assert body["result"]["payments"][0]["policyholder_id"] == 7
    assert body["result"]["errors"] == []


def test_import_rejects_unknown_layout(monkeypatch):
    monkeypatch.delenv("INTAKE_STORE_PATH", raising=False)
    response = client.post(
        "/import",
        files={"file": ("odd.csv", b"Colour,Shape\nred,square\n", "text/csv")},
    )
    assert response.status_code == 422
    assert response.json()["detail"]["error_type"] == "FormatError"
