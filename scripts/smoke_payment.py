"""Send one sandbox card payment through a running gateway.

Uses Square's `cnon:card-nonce-ok` test nonce, so it only succeeds against the
sandbox environment.
"""

import argparse
import asyncio
import json
from uuid import uuid4

import httpx

SANDBOX_TEST_NONCE = "cnon:card-nonce-ok"


async def send(base_url: str, payload: dict) -> httpx.Response:
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        return await client.post(
            "/api/payment",
            json=payload,
            headers={"x-correlation-id": str(uuid4())},
        )


def main() -> None:
    """Build the payment from CLI args, post it and print the response."""

    parser = argparse.ArgumentParser(description="Post a sandbox test payment to the gateway.")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--location-id", default=None, help="Defaults to the gateway's /api/config value")
    parser.add_argument("--amount", type=int, default=940)
    parser.add_argument("--product-name", default="バインミー")
    parser.add_argument("--customer-name", default="Smoke Test")
    parser.add_argument("--catalog-object-id", default=None)
    args = parser.parse_args()

    location_id = args.location_id
    if not location_id:
        location_id = httpx.get(f"{args.base_url}/api/config", timeout=10.0).json()["locationId"]

    payload = {
        "idempotencyKey": str(uuid4()),
        "sourceId": SANDBOX_TEST_NONCE,
        "locationId": location_id,
        "amount": args.amount,
        "productName": args.product_name,
        "customerName": args.customer_name,
    }
    if args.catalog_object_id:
        payload["catalog_object_id"] = args.catalog_object_id

    resp = asyncio.run(send(args.base_url, payload))
    print(f"status_code={resp.status_code}")
    print(json.dumps(resp.json(), ensure_ascii=False, indent=2))
    if resp.status_code != 200:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
