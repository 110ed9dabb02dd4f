"""Health endpoint and app-level behavior tests."""

from fastapi.testclient import TestClient

from ebar.api.app import app

client = TestClient(app)


def test_health_returns_200():
    response = client.get("/health")
    assert response.status_code == 200


def test_health_returns_ok_status():
    response = client.get("/health")
    assert response.json()["status"] == "ok"


def test_correlation_id_echoed():
    response = client.get("/health", headers={"X-Correlation-ID": "req-abc-1"})
    assert response.headers["X-Correlation-ID"] == "req-abc-1"


def test_correlation_id_generated():
    response = client.get("/health")
    assert len(response.headers["X-Correlation-ID"]) == 36


def test_unknown_route_is_404_json():
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_wrong_method_is_405():
    response = client.get("/api/payment")
    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}


def test_malformed_json_is_400():
    response = client.post(
        "/api/payment",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"
