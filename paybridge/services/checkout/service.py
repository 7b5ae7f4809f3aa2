"""Checkout session brokering and payment notification handling."""

from typing import Any

from pydantic import ValidationError as SchemaError

from paybridge.common.config import Settings
from paybridge.common.errors import GatewayError, InternalError, ValidationError
from paybridge.common.logging import logger, payment_id_ctx
from paybridge.common.metrics import checkout_sessions_total, webhook_events_total
from paybridge.services.checkout.orders import OrderStatusUpdater
from paybridge.services.checkout.schemas import (
    CheckoutSession,
    CreatePreferenceRequest,
    PaymentRecord,
    WebhookEvent,
)
from paybridge.services.gateway.client import GatewayClient


DISPATCHED_STATUSES = ("approved", "pending", "rejected")


class CheckoutService:
    """Relays carts to the gateway and reacts to its payment notifications."""

    def __init__(self, settings: Settings, gateway: GatewayClient, order_updater: OrderStatusUpdater) -> None:
        self.settings = settings
        self.gateway = gateway
        self.order_updater = order_updater

    async def create_preference(self, req: CreatePreferenceRequest, notification_url: str) -> CheckoutSession:
        """Open a checkout session for a non-empty cart.

        Raises `ValidationError` for a missing or empty cart and lets
        `GatewayError` propagate from the gateway call.
        """

        if not req.items:
            checkout_sessions_total.labels(service=self.settings.service_name, outcome="rejected").inc()
            raise ValidationError("Items are required")
        try:
            session = await self.gateway.create_checkout_session(req.items, req.payer, notification_url)
        except GatewayError:
            checkout_sessions_total.labels(service=self.settings.service_name, outcome="failed").inc()
            raise
        checkout_sessions_total.labels(service=self.settings.service_name, outcome="created").inc()
        logger.info("preference created id=%s", session.id)
        return session

    async def get_payment(self, payment_id: str) -> PaymentRecord:
        payment_id_ctx.set(payment_id)
        return await self.gateway.fetch_payment(payment_id)

    async def handle_webhook(self, payload: Any) -> None:
        """Process one gateway notification.

        Only `payment` events trigger a lookup; the current status is then
        dispatched to the order updater. Other event types are acknowledged
        as-is. The payload is not authenticated.
        """

        if not isinstance(payload, dict):
            raise InternalError("webhook payload is not a JSON object")
        logger.info("webhook received type=%s data=%s", payload.get("type"), payload.get("data"))

        # Only payment events are parsed; anything else is acknowledged untouched.
        if payload.get("type") != "payment":
            webhook_events_total.labels(
                service=self.settings.service_name,
                type="other",
                status="ignored",
            ).inc()
            return
        try:
            event = WebhookEvent.model_validate(payload)
        except SchemaError as exc:
            raise InternalError(f"malformed webhook payload: {exc}") from exc
        if event.data is None:
            raise InternalError("payment webhook without data.id")

        payment_id_ctx.set(event.data.id)
        payment = await self.gateway.fetch_payment(event.data.id)
        logger.info(
            "payment info id=%s status=%s external_reference=%s transaction_amount=%s",
            payment.id,
            payment.status,
            payment.external_reference,
            payment.transaction_amount,
        )
        webhook_events_total.labels(
            service=self.settings.service_name,
            type="payment",
            status=payment.status if payment.status in DISPATCHED_STATUSES else "other",
        ).inc()
        self.dispatch_status(payment)

    def dispatch_status(self, payment: PaymentRecord) -> None:
        """Route one payment's current status to the matching order transition."""

        if payment.status == "approved":
            self.order_updater.mark_paid(payment)
        elif payment.status == "pending":
            self.order_updater.mark_pending(payment)
        elif payment.status == "rejected":
            self.order_updater.mark_rejected(payment)
        else:
            logger.info("payment status not handled payment_id=%s status=%s", payment.id, payment.status)
