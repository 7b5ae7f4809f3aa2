"""Error kinds raised by the checkout bridge and mapped to HTTP responses."""


class PayBridgeError(Exception):
    """Base class for failures this service maps to an HTTP response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PayBridgeError):
    """Client input rejected before any gateway call."""

    status_code = 400


class GatewayError(PayBridgeError):
    """The payment gateway call failed, timed out, or replied with an error."""

    def __init__(self, message: str, operation: str = "", status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        # HTTP status reported by the gateway, when it replied at all.
        self.gateway_status = status_code


class InternalError(PayBridgeError):
    """Unexpected failure while handling a request, e.g. a malformed webhook."""
