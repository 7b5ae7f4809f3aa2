"""Shared fixtures: a fake gateway, a recording order updater, and an app client."""

import pytest
from fastapi.testclient import TestClient

from paybridge.common.config import Settings
from paybridge.services.checkout.main import create_app
from paybridge.services.checkout.schemas import CheckoutSession


class FakeGateway:
    """In-memory stand-in for `GatewayClient`."""

    def __init__(self) -> None:
        self.session = CheckoutSession(
            id="pref-123",
            init_point="https://www.mercadopago.com/checkout/v1/redirect?pref_id=pref-123",
            sandbox_init_point="https://sandbox.mercadopago.com/checkout/v1/redirect?pref_id=pref-123",
        )
        self.payments = {}
        self.error = None
        self.created = []
        self.fetched = []

    async def create_checkout_session(self, items, payer, notification_url):
        self.created.append({"items": items, "payer": payer, "notification_url": notification_url})
        if self.error is not None:
            raise self.error
        return self.session

    async def fetch_payment(self, payment_id):
        self.fetched.append(payment_id)
        if self.error is not None:
            raise self.error
        return self.payments[payment_id]

    async def aclose(self) -> None:
        pass


class RecordingOrderUpdater:
    """Collects which order transition each webhook triggered."""

    def __init__(self) -> None:
        self.calls = []

    def mark_paid(self, payment) -> None:
        self.calls.append(("paid", payment.id))

    def mark_pending(self, payment) -> None:
        self.calls.append(("pending", payment.id))

    def mark_rejected(self, payment) -> None:
        self.calls.append(("rejected", payment.id))


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        mercadopago_access_token="TEST-access-token",
        mercadopago_public_key="TEST-public-key",
        frontend_url="https://shop.example.com",
    )


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def order_updater():
    return RecordingOrderUpdater()


@pytest.fixture()
def app(settings, gateway, order_updater):
    return create_app(settings, gateway=gateway, order_updater=order_updater)


@pytest.fixture()
def client(app):
    return TestClient(app)
