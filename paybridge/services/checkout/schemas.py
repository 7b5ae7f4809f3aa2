"""API request/response schemas for the checkout endpoints."""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator


def _number_to_str(value: Any) -> Any:
    # Storefronts and the gateway both send numeric ids.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


NumericStr = Annotated[str, BeforeValidator(_number_to_str)]


class LineItem(BaseModel):
    """One cart line forwarded to the gateway.

    Quantity and price are relayed as given; the gateway decides whether
    they are acceptable.
    """

    id: NumericStr
    title: str
    quantity: int
    unit_price: float
    currency_id: str | None = None


class Phone(BaseModel):
    area_code: str | None = None
    number: str | None = None


class Payer(BaseModel):
    """Optional buyer details, passed through unchanged."""

    name: str | None = None
    email: str | None = None
    phone: Phone | None = None


class CreatePreferenceRequest(BaseModel):
    """Payload accepted by `POST /api/create-preference`.

    `items` is optional at the schema level so an absent or empty cart gets
    the dedicated "Items are required" reply instead of a shape error.
    """

    items: list[LineItem] | None = None
    payer: Payer | None = None


class CheckoutSession(BaseModel):
    """Gateway-hosted checkout flow relayed back to the storefront."""

    id: NumericStr
    init_point: str | None = None
    sandbox_init_point: str | None = None


class PaymentRecord(BaseModel):
    """Read-only projection of a gateway payment."""

    id: int | str | None = None
    status: str | None = None
    status_detail: str | None = None
    transaction_amount: float | None = None
    currency_id: str | None = None
    payment_method_id: str | None = None
    external_reference: str | None = None
    date_created: str | None = None


class WebhookData(BaseModel):
    id: NumericStr


class WebhookEvent(BaseModel):
    """Notification body posted by the gateway to `POST /api/webhook`."""

    type: str | None = None
    data: WebhookData | None = None


class WebhookAck(BaseModel):
    received: bool = True


class HealthResponse(BaseModel):
    status: str
    message: str
    timestamp: str


class ConfigResponse(BaseModel):
    publicKey: str | None = None
