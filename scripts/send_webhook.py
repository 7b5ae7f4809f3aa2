"""Post a hand-crafted gateway notification to a running instance.

The webhook endpoint does not verify signatures, so this is enough to replay
a payment notification during manual testing.
"""

import argparse
import json
from uuid import uuid4

import httpx


def send(base_url: str, event_type: str, payment_id: str) -> httpx.Response:
    """Send one webhook event and return the raw response."""

    payload = {"type": event_type, "data": {"id": payment_id}}
    with httpx.Client(timeout=10.0) as client:
        return client.post(
            f"{base_url.rstrip('/')}/api/webhook",
            json=payload,
            headers={"x-correlation-id": str(uuid4())},
        )


def main() -> None:
    """Parse CLI args and post one notification."""

    parser = argparse.ArgumentParser(description="Send a payment webhook event to the checkout bridge.")
    parser.add_argument("--base-url", default="http://localhost:3001")
    parser.add_argument("--type", dest="event_type", default="payment")
    parser.add_argument("--payment-id", required=True)
    args = parser.parse_args()

    resp = send(args.base_url, args.event_type, args.payment_id)
    print(f"HTTP {resp.status_code} {json.dumps(resp.json())}")


if __name__ == "__main__":
    main()
