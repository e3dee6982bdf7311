"""Tests for the programs API."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(name="program")
def program_fixture(client: TestClient, admin_headers) -> dict:
    response = client.post(
        "/api/programs",
        json={
            "name": "Summer Mentoring",
            "description": "Weekly mentoring sessions",
            "start_date": "2026-06-01",
            "end_date": "2026-08-31",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_program(program: dict):
    """Requirements:
    - FR-3.1: Staff create programs with a unique name and optional dates
    """
    assert program["id"] > 0
    assert program["name"] == "Summer Mentoring"
    assert program["start_date"] == "2026-06-01"
    assert program["participant_count"] == 0


def test_duplicate_program_name_is_conflict(
    client: TestClient, admin_headers, program: dict
):
    response = client.post(
        "/api/programs", json={"name": "Summer Mentoring"}, headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "Program with name 'Summer Mentoring' already exists"
    }


def test_end_before_start_is_rejected(client: TestClient, admin_headers):
    response = client.post(
        "/api/programs",
        json={
            "name": "Backwards",
            "start_date": "2026-05-01",
            "end_date": "2026-04-01",
        },
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "end_date cannot be before start_date"}


def test_blank_program_name_is_rejected(client: TestClient, admin_headers):
    response = client.post("/api/programs", json={"name": "   "}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "name cannot be empty"}


def test_list_and_get_programs_include_participant_count(
    client: TestClient, admin_headers, program: dict
):
    client.post(
        "/api/participants",
        json={"first_name": "Jordan", "last_name": "Lee", "program_id": program["id"]},
        headers=admin_headers,
    )
    client.post(
        "/api/programs", json={"name": "Art Club"}, headers=admin_headers
    )

    listing = client.get("/api/programs", headers=admin_headers).json()
    assert listing["count"] == 2
    assert [p["name"] for p in listing["programs"]] == ["Art Club", "Summer Mentoring"]
    assert listing["programs"][1]["participant_count"] == 1

    detail = client.get(f"/api/programs/{program['id']}", headers=admin_headers)
    assert detail.status_code == 200
    assert detail.json()["participant_count"] == 1


def test_update_program(client: TestClient, admin_headers, program: dict):
    response = client.put(
        f"/api/programs/{program['id']}",
        json={"description": "Now twice a week"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Now twice a week"
    assert body["name"] == "Summer Mentoring"


def test_update_checks_dates_against_stored_values(
    client: TestClient, admin_headers, program: dict
):
    response = client.put(
        f"/api/programs/{program['id']}",
        json={"end_date": "2026-05-01"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_delete_program_detaches_participants(
    client: TestClient, admin_headers, program: dict
):
    """Requirements:
    - FR-3.2: Deleting a program keeps its participants, without a program
    """
    participant = client.post(
        "/api/participants",
        json={"first_name": "Jordan", "last_name": "Lee", "program_id": program["id"]},
        headers=admin_headers,
    ).json()

    response = client.delete(f"/api/programs/{program['id']}", headers=admin_headers)
    assert response.status_code == 204
    assert response.content == b""

    assert (
        client.get(f"/api/programs/{program['id']}", headers=admin_headers).status_code
        == 404
    )
    remaining = client.get(
        f"/api/participants/{participant['id']}", headers=admin_headers
    ).json()
    assert remaining["program_id"] is None


def test_unknown_program_is_not_found(client: TestClient, admin_headers):
    for method in ("GET", "PUT", "DELETE"):
        response = client.request(
            method, "/api/programs/4242", json={}, headers=admin_headers
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Program not found"}
