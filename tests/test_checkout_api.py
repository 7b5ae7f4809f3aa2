"""HTTP contract tests for the checkout endpoints."""

from datetime import datetime

from fastapi.testclient import TestClient

from paybridge.common.config import Settings
from paybridge.common.errors import GatewayError
from paybridge.services.checkout.main import create_app
from paybridge.services.checkout.schemas import PaymentRecord


CART = {
    "items": [
        {"id": "sku-1", "title": "Alpaca scarf", "quantity": 2, "unit_price": 49.9, "currency_id": "PEN"},
        {"id": 42, "title": "Gift wrap", "quantity": 1, "unit_price": 0},
    ],
    "payer": {"name": "Ana", "email": "ana@example.com", "phone": {"number": "999888777"}},
}


def test_health_is_ok_with_iso_timestamp(client):
    """Health reports OK with a parseable timestamp."""

    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["message"]
    datetime.fromisoformat(body["timestamp"])


def test_health_does_not_touch_gateway(client, gateway):
    """Health stays green while the gateway is down."""

    gateway.error = GatewayError("gateway down")

    assert client.get("/api/health").status_code == 200
    assert gateway.fetched == []


def test_config_returns_public_key(client):
    """The configured public key is returned unchanged."""

    resp = client.get("/api/config")

    assert resp.status_code == 200
    assert resp.json() == {"publicKey": "TEST-public-key"}


def test_config_with_unset_public_key(gateway):
    """An unset public key comes back as null instead of failing."""

    app = create_app(Settings(_env_file=None, mercadopago_public_key=None), gateway=gateway)

    resp = TestClient(app).get("/api/config")

    assert resp.status_code == 200
    assert resp.json() == {"publicKey": None}


def test_create_preference_relays_session(client, gateway):
    """A non-empty cart returns the gateway session id and both links."""

    resp = client.post("/api/create-preference", json=CART)

    assert resp.status_code == 200
    assert resp.json() == {
        "id": "pref-123",
        "init_point": gateway.session.init_point,
        "sandbox_init_point": gateway.session.sandbox_init_point,
    }
    call = gateway.created[0]
    assert [item.id for item in call["items"]] == ["sku-1", "42"]
    assert call["payer"].email == "ana@example.com"


def test_create_preference_notification_url_points_back_at_webhook(client, gateway):
    """The callback URL is built from this request's own host."""

    client.post("/api/create-preference", json=CART)

    assert gateway.created[0]["notification_url"] == "http://testserver/api/webhook"


def test_create_preference_without_payer(client, gateway):
    """Payer is optional."""

    resp = client.post("/api/create-preference", json={"items": CART["items"]})

    assert resp.status_code == 200
    assert gateway.created[0]["payer"] is None


def test_create_preference_rejects_empty_items(client, gateway):
    """An empty cart is rejected before the gateway is called."""

    resp = client.post("/api/create-preference", json={"items": []})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Items are required"}
    assert gateway.created == []


def test_create_preference_rejects_missing_items(client, gateway):
    """A body without items gets the same rejection."""

    resp = client.post("/api/create-preference", json={"payer": {"email": "ana@example.com"}})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Items are required"}
    assert gateway.created == []


def test_create_preference_without_body(client, gateway):
    """No body at all counts as a cart without items."""

    resp = client.post("/api/create-preference")

    assert resp.status_code == 400
    assert resp.json() == {"error": "Items are required"}
    assert gateway.created == []


def test_create_preference_with_null_body(client, gateway):
    """A JSON null body counts as a cart without items."""

    resp = client.post(
        "/api/create-preference",
        content=b"null",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Items are required"}
    assert gateway.created == []


def test_create_preference_rejects_malformed_item(client, gateway):
    """Structurally wrong items are refused with validation details."""

    resp = client.post(
        "/api/create-preference",
        json={"items": [{"id": "sku-1", "title": "Scarf", "quantity": "many", "unit_price": 10}]},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid request body"
    assert body["details"]
    assert gateway.created == []


def test_create_preference_passes_negative_values_through(client, gateway):
    """Value ranges are left for the gateway to judge."""

    resp = client.post(
        "/api/create-preference",
        json={"items": [{"id": "sku-1", "title": "Scarf", "quantity": -1, "unit_price": -5}]},
    )

    assert resp.status_code == 200
    assert gateway.created[0]["items"][0].quantity == -1


def test_create_preference_gateway_failure(client, gateway):
    """Gateway failures return 500 with the gateway message as details."""

    gateway.error = GatewayError("invalid access token", operation="create_preference", status_code=401)

    resp = client.post("/api/create-preference", json=CART)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Error creating payment preference", "details": "invalid access token"}


def test_get_payment_projects_gateway_fields(client, gateway):
    """Payment lookup relays the projected fields verbatim."""

    record = PaymentRecord(
        id=1234567890,
        status="approved",
        status_detail="accredited",
        transaction_amount=99.8,
        currency_id="PEN",
        payment_method_id="visa",
        external_reference="order_abc",
        date_created="2024-05-01T10:00:00.000-04:00",
    )
    gateway.payments["1234567890"] = record

    resp = client.get("/api/payment/1234567890")

    assert resp.status_code == 200
    assert resp.json() == record.model_dump()
    assert gateway.fetched == ["1234567890"]


def test_get_payment_gateway_failure(client, gateway):
    """A failed lookup returns 500 with error and details."""

    gateway.error = GatewayError("Payment not found", operation="fetch_payment", status_code=404)

    resp = client.get("/api/payment/missing")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Error getting payment information"
    assert body["details"] == "Payment not found"


def test_metrics_endpoint_exposes_prometheus_text(client):
    """Prometheus scrape endpoint serves the request counters."""

    client.get("/api/health")

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "http_requests_total" in resp.text


def test_unrouted_paths_share_one_route_label(client):
    """Requests to unknown paths are counted under a single route label."""

    client.get("/no-such-path-abc")
    client.get("/no-such-path-def")

    text = client.get("/metrics").text

    assert "no-such-path" not in text
    assert 'route="unmatched"' in text


def test_correlation_id_is_echoed(client):
    """The caller's correlation id is returned on the response."""

    resp = client.get("/api/health", headers={"X-Correlation-ID": "corr-1"})

    assert resp.headers["X-Correlation-ID"] == "corr-1"


def test_cors_allows_configured_frontend(client):
    """Preflight from the storefront origin is allowed with credentials."""

    resp = client.options(
        "/api/create-preference",
        headers={"Origin": "https://shop.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert resp.headers["access-control-allow-origin"] == "https://shop.example.com"
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_unhandled_error_falls_back_to_global_handler(app):
    """Anything a route does not handle becomes a generic 500."""

    def boom():
        raise RuntimeError("kaboom")

    app.add_api_route("/boom", boom, methods=["GET"])

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "message": "kaboom"}
