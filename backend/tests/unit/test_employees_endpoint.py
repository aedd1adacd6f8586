from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from app.core.config import settings
from app.services.employee_service import employee_service
from tests.conftest import TEST_SYNC_TOKEN, make_employee

SYNC_HEADERS = {"Authorization": f"Bearer {TEST_SYNC_TOKEN}"}


@pytest.fixture
def active_employees():
    with patch.object(employee_service, "get_active_employees", new_callable=AsyncMock) as mock_fetch:
        yield mock_fetch


class TestSearchEndpoint:
    def test_requires_authentication(self, client):
        response = client.get("/api/v1/employees/search?q=John")
        assert response.status_code == 401

    def test_returns_matching_employees(self, authenticated_client, active_employees):
        active_employees.return_value = [
            make_employee("John Doe", id="dtr-1", dtr_id=1, email="john.doe@example.com", department="IT"),
            make_employee("Maria Garcia", id="dtr-2", dtr_id=2),
        ]

        response = authenticated_client.get("/api/v1/employees/search", params={"q": "John"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"] == [
            {
                "id": "dtr-1",
                "dtr_id": 1,
                "full_name": "John Doe",
                "email": "john.doe@example.com",
                "department": "IT",
            }
        ]

    @pytest.mark.parametrize("url", ["/api/v1/employees/search", "/api/v1/employees/search?q="])
    def test_missing_query_is_400(self, authenticated_client, active_employees, url):
        response = authenticated_client.get(url)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Search query is required", "data": []}
        active_employees.assert_not_awaited()

    def test_no_matches_returns_empty_data(self, authenticated_client, active_employees):
        active_employees.return_value = [make_employee("John Doe")]

        response = authenticated_client.get("/api/v1/employees/search", params={"q": "NonExistentName"})

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_default_limit_is_three(self, authenticated_client, active_employees):
        active_employees.return_value = [make_employee(f"John Doe {i}", id=f"e{i}") for i in range(1, 11)]

        response = authenticated_client.get("/api/v1/employees/search", params={"q": "John"})

        assert len(response.json()["data"]) == 3

    def test_limit_parameter(self, authenticated_client, active_employees):
        active_employees.return_value = [make_employee(f"John Doe {i}", id=f"e{i}") for i in range(1, 11)]

        response = authenticated_client.get("/api/v1/employees/search", params={"q": "John", "limit": 5})

        assert [e["id"] for e in response.json()["data"]] == ["e1", "e2", "e3", "e4", "e5"]

    def test_limit_is_capped(self, authenticated_client, active_employees):
        active_employees.return_value = [make_employee(f"John Doe {i}", id=f"e{i}") for i in range(1, 11)]

        with patch.object(settings, "SEARCH_MAX_LIMIT", 4):
            response = authenticated_client.get("/api/v1/employees/search", params={"q": "John", "limit": 8})

        assert len(response.json()["data"]) == 4

    def test_invalid_limit_is_422(self, authenticated_client, active_employees):
        response = authenticated_client.get("/api/v1/employees/search", params={"q": "John", "limit": 0})
        assert response.status_code == 422

    def test_store_failure_is_500(self, authenticated_client, active_employees):
        active_employees.side_effect = ConnectionError("cosmos unreachable")

        response = authenticated_client.get("/api/v1/employees/search", params={"q": "John"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to search employees", "data": []}

    def test_fuzzy_and_multi_word_queries(self, authenticated_client, active_employees):
        active_employees.return_value = [
            make_employee("Smith Johnson", id="sj"),
            make_employee("Maria Santos Garcia", id="msg"),
        ]

        typo = authenticated_client.get("/api/v1/employees/search", params={"q": "Smyth"}).json()
        multi = authenticated_client.get("/api/v1/employees/search", params={"q": "Maria Garcia"}).json()

        assert typo["data"][0]["id"] == "sj"
        assert multi["data"][0]["id"] == "msg"


class TestGetEmployeeEndpoint:
    def test_found(self, authenticated_client):
        employee = make_employee("John Doe", id="dtr-1", dtr_id=1)
        with patch.object(employee_service, "get_employee", AsyncMock(return_value=employee)):
            response = authenticated_client.get("/api/v1/employees/dtr-1")

        assert response.status_code == 200
        assert response.json()["full_name"] == "John Doe"

    def test_not_found(self, authenticated_client):
        with patch.object(employee_service, "get_employee", AsyncMock(return_value=None)):
            response = authenticated_client.get("/api/v1/employees/missing")

        assert response.status_code == 404

    def test_store_failure(self, authenticated_client):
        with patch.object(employee_service, "get_employee", AsyncMock(side_effect=ConnectionError("down"))):
            response = authenticated_client.get("/api/v1/employees/dtr-1")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to retrieve employee"


class TestSyncEndpoint:
    payload = {
        "employees": [
            {"id": 1, "name": "John Doe", "email": "john.doe@example.com", "department": "IT"},
            {"id": 2, "name": "Maria Garcia", "email": None},
        ]
    }

    @pytest.fixture
    def store(self):
        with (
            patch.object(employee_service, "initialized", True),
            patch.object(employee_service, "upsert_employees", new_callable=AsyncMock) as mock_upsert,
        ):
            mock_upsert.return_value = 2
            yield mock_upsert

    def test_syncs_employees(self, client, store):
        response = client.post("/api/v1/employees/sync", json=self.payload, headers=SYNC_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "synced": 2}
        records = store.await_args.args[0]
        assert [r.id for r in records] == [1, 2]
        assert records[1].department is None

    def test_missing_token_is_401(self, client, store):
        response = client.post("/api/v1/employees/sync", json=self.payload)

        assert response.status_code == 401
        store.assert_not_awaited()

    def test_wrong_token_is_401(self, client, store):
        response = client.post(
            "/api/v1/employees/sync",
            json=self.payload,
            headers={"Authorization": "Bearer wrong"},
        )
        assert response.status_code == 401

    def test_unset_server_token_rejects_everything(self, client, store):
        with patch.object(settings, "SYNC_API_TOKEN", ""):
            response = client.post("/api/v1/employees/sync", json=self.payload, headers=SYNC_HEADERS)

        assert response.status_code == 401

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"employees": "not-a-list"},
            {"employees": [{"name": "No Id"}]},
            {"employees": [{"id": "abc", "name": "Bad Id"}]},
            {"employees": [{"id": 3}]},
        ],
    )
    def test_invalid_payload_is_422(self, client, store, body):
        response = client.post("/api/v1/employees/sync", json=body, headers=SYNC_HEADERS)

        assert response.status_code == 422
        store.assert_not_awaited()

    def test_store_not_configured_is_503(self, client):
        with patch.object(employee_service, "initialized", False):
            response = client.post("/api/v1/employees/sync", json=self.payload, headers=SYNC_HEADERS)

        assert response.status_code == 503
