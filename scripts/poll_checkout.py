"""Poll a terminal checkout through the gateway until it settles.

Useful when pairing a Square Terminal: start a checkout from the storefront,
then watch its status here while tapping through the reader.
"""

import argparse
import asyncio
import time

import httpx

from storepay.common.state_machine import is_final_checkout_status


async def poll(base_url: str, checkout_id: str, interval: float, deadline: float) -> str | None:
    """Return the final status, or None when the deadline passes first."""

    stop_at = time.monotonic() + deadline
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        while time.monotonic() < stop_at:
            resp = await client.get("/api/terminal-checkout-status", params={"checkout_id": checkout_id})
            if resp.status_code != 200:
                print(f"status_code={resp.status_code} body={resp.text}")
                return None
            data = resp.json()
            status = data.get("status")
            print(f"status={status} order_id={data.get('orderId')} payment_ids={data.get('paymentIds')}")
            if is_final_checkout_status(status):
                return status
            await asyncio.sleep(interval)
    return None


def main() -> None:
    parser = argparse.ArgumentParser(description="Poll a terminal checkout until COMPLETED or CANCELED.")
    parser.add_argument("checkout_id")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--interval", type=float, default=2.0)
    parser.add_argument("--deadline", type=float, default=300.0, help="Seconds before giving up")
    args = parser.parse_args()

    status = asyncio.run(poll(args.base_url, args.checkout_id, args.interval, args.deadline))
    if status is None:
        raise SystemExit("checkout did not reach a final status")


if __name__ == "__main__":
    main()
