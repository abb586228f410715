"""Tests for the Flask app used for local development."""

import pytest

from main import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def payload():
    return {
        "title_id": "title-flask",
        "period": {"start_date": "2025-04-01", "end_date": "2025-06-30"},
        "sales": [
            {"format": "ebook", "gross_quantity": 3200, "gross_revenue": "22400.00"}
        ],
        "rate_schedules": {
            "ebook": [{"min_quantity": 0, "max_quantity": None, "rate": "0.25"}]
        },
        "contracts": {
            "author-1": {"contract_id": "contract-1", "advance_paid": "300.00", "advance_recouped": "100.00"}
        }
    }


class TestFlaskApp:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy"}

    def test_api_info(self, client):
        response = client.get("/api")

        assert response.status_code == 200
        assert response.get_json()["message"] == "Royalty Calculation Engine API"

    def test_calculate(self, client, payload):
        response = client.post("/calculate", json=payload)

        assert response.status_code == 200
        body = response.get_json()
        assert body["total_royalty_earned"] == "800.00"
        assert body["advance_recoupment"] == "200.00"
        assert body["net_payable"] == "600.00"

    def test_statements_preview(self, client, payload):
        response = client.post("/statements/preview", json=payload)

        assert response.status_code == 200
        statements = response.get_json()["statements"]
        assert len(statements) == 1
        assert statements[0]["advance_recoupment"]["remaining_advance"] == "0.00"

    def test_empty_body(self, client):
        response = client.post("/calculate", data="")

        assert response.status_code == 400
        assert response.get_json()["error"] == "No input data provided"

    def test_validation_error(self, client, payload):
        payload["rate_schedules"]["ebook"][0]["min_quantity"] = 10

        response = client.post("/calculate", json=payload)

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_schedules_given_as_list(self, client, payload):
        payload["rate_schedules"] = [{"min_quantity": 0, "rate": "0.1"}]

        response = client.post("/calculate", json=payload)

        assert response.status_code == 400
        body = response.get_json()
        assert body["status"] == "validation_failed"
        assert "rate_schedules" in body["error"]

    def test_oversized_revenue(self, client, payload):
        payload["sales"][0]["gross_revenue"] = "1e40"

        response = client.post("/calculate", json=payload)

        assert response.status_code == 400
        assert "out of range" in response.get_json()["error"]

    def test_cors_header(self, client):
        origin = "https://statements.example.com"
        response = client.get("/health", headers={"Origin": origin})

        # Older flask-cors sends "*", newer releases echo the origin
        assert response.headers.get("Access-Control-Allow-Origin") in ("*", origin)
