"""Startup-time helpers for safe config logging."""

from paybridge.common.config import Settings
from paybridge.common.logging import logger


SECRET_MARKERS = ("key", "secret", "password", "token")


def _safe_value(name: str, value: object) -> str:
    """Render one setting, redacting secret-like field names."""

    if value is None or value == "":
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(settings: Settings, fields: list[str]) -> None:
    """Log selected settings for quick troubleshooting.

    The access token is checked for presence only: the service still starts
    without it and the first gateway call fails instead.
    """

    config = {"service": settings.service_name}
    for name in fields:
        config[name] = _safe_value(name, getattr(settings, name))
    logger.info("startup_config=%s", config)
    if not settings.mercadopago_access_token:
        logger.warning("gateway access token is unset; gateway calls will be rejected")
