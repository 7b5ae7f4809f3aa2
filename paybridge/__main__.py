"""Run the checkout bridge with uvicorn: `python -m paybridge`."""

import uvicorn

from paybridge.common.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "paybridge.services.checkout.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
