"""Order-status collaborator invoked by the webhook handler.

This service keeps no order storage. `LoggingOrderUpdater` records the
transition in the log; a deployment with an order store passes its own
implementation to `create_app`.
"""

from typing import Protocol

from paybridge.common.logging import logger
from paybridge.services.checkout.schemas import PaymentRecord


class OrderStatusUpdater(Protocol):
    def mark_paid(self, payment: PaymentRecord) -> None: ...

    def mark_pending(self, payment: PaymentRecord) -> None: ...

    def mark_rejected(self, payment: PaymentRecord) -> None: ...


class LoggingOrderUpdater:
    """Default updater: log-only placeholders for each payment outcome."""

    def mark_paid(self, payment: PaymentRecord) -> None:
        logger.info("payment approved payment_id=%s order=%s", payment.id, payment.external_reference)

    def mark_pending(self, payment: PaymentRecord) -> None:
        logger.info("payment pending payment_id=%s order=%s", payment.id, payment.external_reference)

    def mark_rejected(self, payment: PaymentRecord) -> None:
        logger.warning(
            "payment rejected payment_id=%s order=%s detail=%s",
            payment.id,
            payment.external_reference,
            payment.status_detail,
        )
