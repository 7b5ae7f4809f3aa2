"""Mercado Pago REST client used by the checkout endpoints.

Only two gateway capabilities are used: creating a checkout preference and
reading a payment by id. Every failure is surfaced as `GatewayError`; nothing
is retried.
"""

from time import perf_counter
from typing import Any
from urllib.parse import quote
from uuid import uuid4

import httpx

from paybridge.common.config import Settings
from paybridge.common.errors import GatewayError
from paybridge.common.logging import logger
from paybridge.common.metrics import gateway_errors_total, gateway_request_duration_seconds
from paybridge.services.checkout.schemas import CheckoutSession, LineItem, Payer, PaymentRecord


PREFERENCES_PATH = "/checkout/preferences"
PAYMENTS_PATH = "/v1/payments/{payment_id}"
BACK_URL_STATUSES = ("success", "failure", "pending")


def new_external_reference() -> str:
    """Reconciliation id attached to each checkout session."""

    return f"order_{uuid4().hex}"


def build_preference_body(
    settings: Settings,
    items: list[LineItem],
    payer: Payer | None,
    notification_url: str,
) -> dict[str, Any]:
    """Assemble the preference payload sent to `POST /checkout/preferences`."""

    body: dict[str, Any] = {
        "items": [
            {
                "id": item.id,
                "title": item.title,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "currency_id": item.currency_id or settings.default_currency,
            }
            for item in items
        ],
        "payment_methods": {
            "excluded_payment_methods": [],
            "excluded_payment_types": [],
            "installments": settings.max_installments,
        },
        "back_urls": {
            status: f"{settings.frontend_url.rstrip('/')}/{status}" for status in BACK_URL_STATUSES
        },
        "auto_return": "approved",
        "notification_url": notification_url,
        "statement_descriptor": settings.statement_descriptor,
        "external_reference": new_external_reference(),
    }
    if payer is not None:
        body["payer"] = payer.model_dump(exclude_none=True)
    return body


def _error_message(response: httpx.Response) -> str:
    """Prefer the gateway's own `message` field over the bare status line."""

    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"gateway responded with HTTP {response.status_code}"


class GatewayClient:
    """Async wrapper over the gateway REST API with a fixed timeout."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        headers = {"Content-Type": "application/json"}
        if settings.mercadopago_access_token:
            headers["Authorization"] = f"Bearer {settings.mercadopago_access_token}"
        self._client = httpx.AsyncClient(
            base_url=settings.gateway_base_url,
            headers=headers,
            timeout=httpx.Timeout(settings.gateway_timeout_seconds),
            transport=transport,
        )

    async def _request(self, operation: str, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        labels = {"service": self.settings.service_name, "operation": operation}
        start = perf_counter()
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            gateway_errors_total.labels(**labels).inc()
            logger.error("gateway %s timed out after %ss", operation, self.settings.gateway_timeout_seconds)
            raise GatewayError(f"gateway request timed out: {exc}", operation=operation) from exc
        except httpx.HTTPStatusError as exc:
            gateway_errors_total.labels(**labels).inc()
            message = _error_message(exc.response)
            logger.error("gateway %s rejected status=%s: %s", operation, exc.response.status_code, message)
            raise GatewayError(message, operation=operation, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            gateway_errors_total.labels(**labels).inc()
            logger.error("gateway %s transport failure: %s", operation, exc)
            raise GatewayError(f"gateway request failed: {exc}", operation=operation) from exc
        except ValueError as exc:
            gateway_errors_total.labels(**labels).inc()
            raise GatewayError("gateway returned a non-JSON body", operation=operation) from exc
        finally:
            gateway_request_duration_seconds.labels(**labels).observe(max(0.0, perf_counter() - start))
        if not isinstance(payload, dict):
            gateway_errors_total.labels(**labels).inc()
            raise GatewayError("gateway returned an unexpected body", operation=operation)
        return payload

    async def create_checkout_session(
        self,
        items: list[LineItem],
        payer: Payer | None,
        notification_url: str,
    ) -> CheckoutSession:
        """Create a checkout preference and return its redirect links."""

        body = build_preference_body(self.settings, items, payer, notification_url)
        logger.info(
            "creating preference external_reference=%s items=%s",
            body["external_reference"],
            len(body["items"]),
        )
        payload = await self._request(
            "create_preference",
            "POST",
            PREFERENCES_PATH,
            json=body,
            headers={"X-Idempotency-Key": str(uuid4())},
        )
        try:
            return CheckoutSession.model_validate(payload)
        except ValueError as exc:
            raise GatewayError("gateway preference response is missing an id", operation="create_preference") from exc

    async def fetch_payment(self, payment_id: str) -> PaymentRecord:
        """Read the current state of one payment."""

        # The id may come from an unauthenticated webhook; keep it one path segment.
        if payment_id in ("", ".", ".."):
            raise GatewayError(f"invalid payment id {payment_id!r}", operation="fetch_payment")
        path = PAYMENTS_PATH.format(payment_id=quote(payment_id, safe=""))
        payload = await self._request("fetch_payment", "GET", path)
        try:
            return PaymentRecord.model_validate(payload)
        except ValueError as exc:
            raise GatewayError(f"unexpected payment payload: {exc}", operation="fetch_payment") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
