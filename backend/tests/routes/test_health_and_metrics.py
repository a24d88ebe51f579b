from fastapi.testclient import TestClient

from tests.helpers.lab_time import as_user


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "test"


class TestPrometheusEndpoint:
    def test_exposes_booking_counters(self, client: TestClient, lab_space, user_a) -> None:
        client.post(
            "/api/v1/lab-bookings",
            json={
                "lab_space_id": lab_space.id,
                "starts_at": "2026-03-12T09:00:00Z",
                "ends_at": "2026-03-12T10:00:00Z",
                "purpose": "Spectrophotometer calibration",
            },
            headers=as_user(user_a),
        )

        response = client.get("/metrics/prometheus")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        body = response.text
        assert 'labhub_lab_bookings_total{event="create",outcome="success"}' in body
        assert "labhub_lab_lock_events_total" in body
        assert "labhub_service_operation_duration_seconds" in body
