"""Create a checkout session for a one-item cart against a running instance.

Prints the session id and redirect links returned by `/api/create-preference`.
"""

import argparse
import json

import httpx


def main() -> None:
    """Parse CLI args and create one checkout session."""

    parser = argparse.ArgumentParser(description="Create a test checkout session.")
    parser.add_argument("--base-url", default="http://localhost:3001")
    parser.add_argument("--title", default="Test product")
    parser.add_argument("--price", type=float, default=10.0)
    parser.add_argument("--quantity", type=int, default=1)
    parser.add_argument("--currency", default=None, help="Defaults to the server's fallback currency")
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    item = {
        "id": "test-item-1",
        "title": args.title,
        "quantity": args.quantity,
        "unit_price": args.price,
    }
    if args.currency:
        item["currency_id"] = args.currency
    body = {"items": [item]}
    if args.email:
        body["payer"] = {"email": args.email}

    with httpx.Client(timeout=15.0) as client:
        resp = client.post(f"{args.base_url.rstrip('/')}/api/create-preference", json=body)
    print(f"HTTP {resp.status_code}")
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
