"""Integration tests for error responses.

Domain errors are rendered as ``{"detail": message}`` with the status
picked by their family: 404 missing entity, 409 stock conflict, 400
otherwise.  Serializer errors keep DRF's field map.
"""

import pytest

pytestmark = pytest.mark.integration

MISSING_ID = "00000000-0000-0000-0000-000000000000"


class TestErrorFormat:
    def test_auth_error_has_detail(self, api_client):
        response = api_client.get("/api/v1/flowers/")
        assert response.status_code == 401
        assert "detail" in response.json()

    def test_not_found_names_the_entity(self, auth_client):
        response = auth_client.get(f"/api/v1/orders/{MISSING_ID}/")
        assert response.status_code == 404
        assert response.json() == {"detail": f"Order {MISSING_ID} not found."}

    def test_conflict_names_quantities(self, auth_client, flower):
        response = auth_client.post(
            f"/api/v1/flowers/{flower.id}/reserve/", {"quantity": 11}, format="json"
        )
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert str(flower.id) in detail
        assert "requested 11" in detail

    def test_state_error_is_400(self, auth_client, order):
        response = auth_client.patch(
            f"/api/v1/orders/{order.id}/", {"status": "READY"}, format="json"
        )
        assert response.status_code == 400
        assert response.json() == {
            "detail": f"Order {order.id}: cannot transition from NEW to READY."
        }

    def test_malformed_json_is_400(self, auth_client):
        response = auth_client.post(
            "/api/v1/orders/", data="{", content_type="application/json"
        )
        assert response.status_code == 400
        assert "detail" in response.json()

    def test_serializer_errors_map_fields(self, auth_client):
        response = auth_client.post("/api/v1/orders/", {"items": []}, format="json")
        assert response.status_code == 400
        body = response.json()
        assert "customer_name" in body
        assert "items" in body
