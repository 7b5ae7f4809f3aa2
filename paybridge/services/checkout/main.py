"""HTTP surface brokering checkout sessions and payment notifications.

The storefront calls `/api/create-preference` and `/api/payment/{id}`; the
gateway calls back into `/api/webhook`. The gateway client is built once per
app by `create_app` and closed with the app lifecycle.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from time import perf_counter
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paybridge.common.config import Settings, get_settings
from paybridge.common.errors import GatewayError, ValidationError
from paybridge.common.logging import configure_logging, logger, trace_id_ctx
from paybridge.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from paybridge.common.startup import log_startup_config
from paybridge.common.tracing import instrument_app, setup_tracing
from paybridge.services.checkout.orders import LoggingOrderUpdater, OrderStatusUpdater
from paybridge.services.checkout.schemas import (
    CheckoutSession,
    ConfigResponse,
    CreatePreferenceRequest,
    HealthResponse,
    PaymentRecord,
    WebhookAck,
)
from paybridge.services.checkout.service import CheckoutService
from paybridge.services.gateway.client import GatewayClient


router = APIRouter(prefix="/api")


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health", response_model=HealthResponse)
def health():
    """Liveness probe; never touches the gateway."""

    return HealthResponse(
        status="OK",
        message="Backend is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/config", response_model=ConfigResponse)
def public_config(settings: Settings = Depends(get_app_settings)):
    """Expose the gateway public key to the storefront."""

    return ConfigResponse(publicKey=settings.mercadopago_public_key)


@router.post("/create-preference", response_model=CheckoutSession)
async def create_preference(
    request: Request,
    req: CreatePreferenceRequest | None = None,
    service: CheckoutService = Depends(get_checkout_service),
):
    """Create a checkout session and return its redirect links.

    An absent or `null` body is treated as an empty cart.
    """

    if req is None:
        req = CreatePreferenceRequest()
    logger.info("create-preference received items=%s payer=%s", len(req.items or []), req.payer is not None)
    notification_url = str(request.url_for("webhook"))
    try:
        return await service.create_preference(req, notification_url)
    except ValidationError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    except GatewayError as exc:
        logger.error("error creating preference: %s", exc.message)
        return JSONResponse(
            status_code=500,
            content={"error": "Error creating payment preference", "details": exc.message},
        )
    except Exception as exc:
        logger.exception("unexpected error creating preference")
        return JSONResponse(
            status_code=500,
            content={"error": "Error creating payment preference", "details": str(exc)},
        )


@router.post("/webhook", name="webhook", response_model=WebhookAck)
async def webhook(request: Request, service: CheckoutService = Depends(get_checkout_service)):
    """Receive a gateway notification (unauthenticated)."""

    try:
        payload = await request.json()
        await service.handle_webhook(payload)
    except Exception as exc:
        logger.exception("webhook processing failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})
    return WebhookAck()


@router.get("/payment/{payment_id}", response_model=PaymentRecord)
async def get_payment(payment_id: str, service: CheckoutService = Depends(get_checkout_service)):
    """Fetch current status for one payment straight from the gateway."""

    try:
        return await service.get_payment(payment_id)
    except Exception as exc:
        details = exc.message if isinstance(exc, GatewayError) else str(exc)
        logger.error("error getting payment info payment_id=%s: %s", payment_id, details)
        return JSONResponse(
            status_code=500,
            content={"error": "Error getting payment information", "details": details},
        )


async def metrics_middleware(request: Request, call_next):
    """Bind a correlation id and record request count and latency."""

    trace_id = request.headers.get("x-correlation-id") or str(uuid4())
    trace_id_ctx.set(trace_id)
    service_name = request.app.state.settings.service_name
    start = perf_counter()
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Correlation-ID"] = trace_id
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        # Raw paths of unrouted requests would each become a new series.
        route = "unmatched"
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        http_request_duration_seconds.labels(service=service_name, route=route, method=method).observe(elapsed)
        http_requests_total.labels(
            service=service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("invalid request body path=%s", request.url.path)
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("global error handler path=%s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(exc)})


def create_app(
    settings: Settings | None = None,
    gateway: GatewayClient | None = None,
    order_updater: OrderStatusUpdater | None = None,
) -> FastAPI:
    """Build the application around an injected (or freshly built) gateway client."""

    settings = settings or get_settings()
    owns_gateway = gateway is None
    gateway_client = gateway if gateway is not None else GatewayClient(settings)
    service = CheckoutService(settings, gateway_client, order_updater or LoggingOrderUpdater())

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        """Release the gateway connection pool on shutdown."""

        yield
        if owns_gateway:
            await gateway_client.aclose()

    app = FastAPI(title="PayBridge Checkout", lifespan=lifespan)
    app.state.settings = settings
    app.state.checkout_service = service
    app.middleware("http")(metrics_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(router)
    app.add_api_route("/metrics", metrics_response, methods=["GET"], include_in_schema=False)
    instrument_app(app)
    return app


configure_logging()
setup_tracing(get_settings())
log_startup_config(
    get_settings(),
    [
        "service_name",
        "port",
        "frontend_url",
        "gateway_base_url",
        "gateway_timeout_seconds",
        "mercadopago_access_token",
        "mercadopago_public_key",
    ],
)
app = create_app()
