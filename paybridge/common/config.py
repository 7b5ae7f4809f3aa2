"""Central environment-driven settings for the checkout bridge.

The process loads this once at startup. Gateway credentials, the storefront
origin and the listen port come from environment variables (see `.env.example`).
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "paybridge"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001
    # A missing token is tolerated here and surfaces on the first gateway call.
    mercadopago_access_token: str | None = None
    mercadopago_public_key: str | None = None
    frontend_url: str = "http://localhost:8080"
    gateway_base_url: str = "https://api.mercadopago.com"
    gateway_timeout_seconds: float = 5.0
    default_currency: str = "PEN"
    statement_descriptor: str = "MI_ECOMMERCE"
    max_installments: int = 12
    otel_exporter_otlp_endpoint: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""

    return Settings()
