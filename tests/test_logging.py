import logging
import uuid

import pytest

from config.settings import mask_sensitive_data


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        assert str(uuid.UUID(request_id, version=4)) == request_id

    @pytest.mark.parametrize("bad_id", ["x" * 200, "id with spaces", "<script>"])
    def test_malformed_request_id_is_replaced(self, client, bad_id):
        response = client.get("/health", HTTP_X_REQUEST_ID=bad_id)
        request_id = response["X-Request-ID"]
        assert request_id != bad_id
        assert str(uuid.UUID(request_id, version=4)) == request_id

    def test_correlation_id_in_order_logs(
        self, api_client_with_correlation, restaurant, delivery_order, caplog
    ):
        api_client, cid = api_client_with_correlation
        api_client.force_authenticate(user=restaurant.owner)

        with caplog.at_level(logging.INFO):
            api_client.patch(
                f"/api/v1/restaurant/orders/{delivery_order.id}/status/",
                {"status": "received"},
                format="json",
            )

        messages = [r.getMessage() for r in caplog.records]
        assert any("order.status_updated" in m and cid in m for m in messages), messages


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "key, value, secret",
        [
            ("contact", "ana.souza@example.com", "ana.souza@example.com"),
            ("phone", "call +1 (555) 010-9999 now", "+1 (555) 010-9999"),
            ("data", "password='s3cret123'", "s3cret123"),
            ("header", "token=abc123xyz", "abc123xyz"),
            ("header", "Authorization: Bearer-abc", "Bearer-abc"),
        ],
    )
    def test_masked(self, key, value, secret):
        result = mask_sensitive_data(None, None, {"event": "test", key: value})
        assert secret not in result[key]
        assert "***MASKED***" in result[key]

    def test_identifiers_unchanged(self):
        order_id = "0192f0c4-1111-7000-8000-000000000001"
        event_dict = {
            "event": "order.status_updated",
            "order_number": "ORD-000001",
            "order_id": order_id,
        }
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_number"] == "ORD-000001"
        assert result["order_id"] == order_id
        assert result["event"] == "order.status_updated"

    def test_non_string_values_untouched(self):
        payload = {"email": "a@b.co"}
        result = mask_sensitive_data(None, None, {"event": "x", "payload": payload})
        assert result["payload"] is payload
