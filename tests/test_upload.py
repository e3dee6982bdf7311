"""Tests for file uploads."""

from pathlib import Path

from fastapi.testclient import TestClient


def test_upload_stores_file_under_generated_name(client: TestClient, admin_headers):
    """Requirements:
    - FR-6.1: Uploads are stored in the upload directory under a generated name
    """
    response = client.post(
        "/api/upload",
        files={"file": ("report card.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["original_name"] == "report_card.pdf"
    assert body["stored_name"] != "report card.pdf"
    assert body["stored_name"].endswith(".pdf")
    assert body["size_bytes"] == len(b"%PDF-1.4 test")
    assert body["content_type"] == "application/pdf"

    upload_dir = Path(client.app.state.settings.upload_dir)
    assert (upload_dir / body["stored_name"]).read_bytes() == b"%PDF-1.4 test"


def test_disallowed_extension_is_rejected(client: TestClient, admin_headers):
    response = client.post(
        "/api/upload",
        files={"file": ("script.exe", b"MZ", "application/octet-stream")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "not allowed" in response.json()["error"]


def test_file_over_the_ceiling_is_rejected(client_factory):
    """Requirements:
    - FR-6.2: Files over MAX_UPLOAD_BYTES are rejected with 413 and not kept
    """
    client = client_factory(max_upload_bytes=64)
    token = client.post(
        "/api/auth/register",
        json={"email": "a@heartsmiles.org", "password": "long-enough", "name": "A"},
    ).json()["token"]

    response = client.post(
        "/api/upload",
        files={"file": ("big.csv", b"x" * 200, "text/csv")},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 413
    assert response.json() == {"error": "File exceeds the maximum size of 64 bytes"}
    upload_dir = Path(client.app.state.settings.upload_dir)
    assert list(upload_dir.iterdir()) == []


def test_missing_file_field_is_bad_request(client: TestClient, admin_headers):
    response = client.post(
        "/api/upload", data={"something": "else"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_list_uploads(client: TestClient, admin_headers):
    for name in ("a.csv", "b.png"):
        client.post(
            "/api/upload",
            files={"file": (name, b"data", "application/octet-stream")},
            headers=admin_headers,
        )

    response = client.get("/api/upload", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["count"] == 2
    assert {u["original_name"] for u in response.json()["uploads"]} == {
        "a.csv",
        "b.png",
    }


def test_upload_far_over_the_ceiling_never_reaches_the_route(client_factory):
    client = client_factory(max_upload_bytes=64)
    token = client.post(
        "/api/auth/register",
        json={"email": "a@heartsmiles.org", "password": "long-enough", "name": "A"},
    ).json()["token"]

    response = client.post(
        "/api/upload",
        files={"file": ("big.csv", b"x" * (256 * 1024), "text/csv")},
        headers={"Authorization": f"Bearer {token}"},
    )

    assert response.status_code == 413
    assert response.json()["error"] == "Something went wrong!"
    upload_dir = Path(client.app.state.settings.upload_dir)
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []
