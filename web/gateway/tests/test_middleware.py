import json
import logging
import uuid

import pytest

from django.utils.module_loading import import_string

from gateway import middleware
from gateway.logging_filters import RequestIdFilter


def test_response_carries_generated_request_id(client):
    r = client.get("/order/ping/")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    uuid.UUID(r.headers["X-Request-ID"])

def test_client_request_id_is_reused(client):
    r = client.get("/order/ping/", HTTP_X_REQUEST_ID="abc-123")
    assert r.headers["X-Request-ID"] == "abc-123"

def test_oversized_request_id_is_replaced(client):
    r = client.get("/order/ping/", HTTP_X_REQUEST_ID="x" * 500)
    uuid.UUID(r.headers["X-Request-ID"])

def test_oversized_order_payload_is_rejected(client, monkeypatch):
    monkeypatch.setattr(middleware, "MAX_API_BYTES", 10)
    r = client.post(
        "/order/placeOrder",
        data={"productId": 1, "quantity": 1, "totalAmount": "1.00", "paymentMode": "CASH"},
        content_type="application/json",
    )
    assert r.status_code == 413
    assert r.json()["errorCode"] == "PAYLOAD_TOO_LARGE"

def test_log_filter_uses_context_request_id():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = middleware.REQUEST_ID_CTX.set("rid-9")
    try:
        assert RequestIdFilter().filter(record) is True
    finally:
        middleware.REQUEST_ID_CTX.reset(token)
    assert record.request_id == "rid-9"

def test_log_filter_keeps_explicit_request_id():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    record.request_id = "explicit"
    RequestIdFilter().filter(record)
    assert record.request_id == "explicit"

@pytest.mark.django_db
def test_health_reports_db_and_upstreams(client):
    r = client.get("/health/")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["components"]["db"]["ok"] is True
    assert body["adapters"] == "stub"
    assert body["upstreams"] == ["PAYMENT-SERVICE", "PRODUCT-SERVICE"]

def test_request_id_context_is_cleared_after_response(client):
    assert middleware.REQUEST_ID_CTX.get() == "-"
    r = client.get("/order/ping/", HTTP_X_REQUEST_ID="abc-123")
    assert r.headers["X-Request-ID"] == "abc-123"
    assert middleware.REQUEST_ID_CTX.get() == "-"

def test_json_formatter_renders_request_id(settings):
    fmt = settings.LOGGING["formatters"]["json"]
    formatter = import_string(fmt["()"])(fmt["fmt"])
    record = logging.LogRecord("apps.orders", logging.INFO, __file__, 1, "Order processed", None, None)
    token = middleware.REQUEST_ID_CTX.set("rid-json")
    try:
        RequestIdFilter().filter(record)
    finally:
        middleware.REQUEST_ID_CTX.reset(token)

    out = json.loads(formatter.format(record))
    assert out["message"] == "Order processed"
    assert out["request_id"] == "rid-json"
    assert out["levelname"] == "INFO"
