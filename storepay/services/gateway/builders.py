"""Square request bodies for the order, payment, card and terminal calls.

Free text is truncated, never rejected, to fit Square's field limits.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from storepay.common.errors import InvalidPayload


CURRENCY = "JPY"

PRODUCT_NAME_MAX = 200
CUSTOMER_NAME_MAX = 100
CUSTOMER_NOTES_MAX = 200
NOTE_MAX = 500
LINE_ITEM_NAME_MAX = 512
IDEMPOTENCY_KEY_MAX = 64
REFERENCE_ID_LENGTH = 8

DEFAULT_PRODUCT_NAME = "注文"
DEFAULT_TERMINAL_PRODUCT_NAME = "バインミー"
DEFAULT_CUSTOMER_NAME = "（未入力）"
DEFAULT_PICKUP_NAME = "Customer"
PICKUP_LEAD_TIME = timedelta(hours=1)

CATALOG_ID_KEYS = ("catalog_object_id", "catalogObjectId", "variationId", "variation_id")


def new_idempotency_key() -> str:
    """Server-side key for calls the client did not supply one for."""

    return str(uuid4())[:IDEMPOTENCY_KEY_MAX]


def to_minor_units(value: Any) -> int:
    """JPY has no minor unit below 1 yen; fractional input is truncated."""

    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise InvalidPayload(detail=f"invalid amount: {value!r}") from exc


def money(amount: int, currency: str = CURRENCY) -> dict[str, Any]:
    return {"amount": amount, "currency": currency}


def build_note(product_name: str | None, customer_name: str | None, customer_notes: str | None) -> str:
    """`product / customer[ / notes]` with each part capped, notes trimmed first."""

    product = (product_name or DEFAULT_PRODUCT_NAME)[:PRODUCT_NAME_MAX]
    customer = (customer_name or DEFAULT_CUSTOMER_NAME)[:CUSTOMER_NAME_MAX]
    notes = (customer_notes or "").strip()[:CUSTOMER_NOTES_MAX]
    parts = [product, customer, notes] if notes else [product, customer]
    return " / ".join(parts)[:NOTE_MAX]


def _quantity(value: Any) -> str:
    """Square wants quantities as decimal strings; whole floats lose the `.0`."""

    if value is None:
        return "1"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _line_item(item: dict[str, Any], product_name: str, amount: int) -> dict[str, Any]:
    quantity = _quantity(item.get("quantity"))
    catalog_id = next((item[key] for key in CATALOG_ID_KEYS if item.get(key)), None)
    if catalog_id:
        return {"catalog_object_id": str(catalog_id), "quantity": quantity}

    price = item.get("base_price_money")
    if not isinstance(price, dict):
        price = {}
    price_amount = price.get("amount")
    return {
        "name": str(item.get("name") or product_name)[:LINE_ITEM_NAME_MAX],
        "quantity": quantity,
        "base_price_money": money(
            to_minor_units(price_amount if price_amount is not None else amount),
            price.get("currency") or CURRENCY,
        ),
    }


def build_line_items(
    line_items: list[dict[str, Any]] | None,
    catalog_object_id: str | None,
    product_name: str,
    amount: int,
) -> list[dict[str, Any]]:
    """Explicit items win over a single catalog reference, which wins over a synthesized item."""

    if line_items:
        return [_line_item(item, product_name, amount) for item in line_items]
    if catalog_object_id:
        return [{"catalog_object_id": catalog_object_id, "quantity": "1"}]
    return [{"name": product_name, "quantity": "1", "base_price_money": money(amount)}]


def build_pickup_fulfillment(display_name: str | None, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    pickup_at = (now + PICKUP_LEAD_TIME).astimezone(timezone.utc)
    return {
        "type": "PICKUP",
        "state": "PROPOSED",
        "pickup_details": {
            "recipient": {"display_name": (display_name or DEFAULT_PICKUP_NAME)[:CUSTOMER_NAME_MAX]},
            "pickup_at": pickup_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        },
    }


def build_order_body(
    location_id: str,
    line_items: list[dict[str, Any]],
    fulfillment: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Order creation body. Carries its own fresh key, never the client's payment key."""

    order: dict[str, Any] = {"location_id": location_id, "line_items": line_items}
    if fulfillment:
        order["fulfillments"] = [fulfillment]
    return {"idempotency_key": new_idempotency_key(), "order": order}


def build_payment_body(payload, amount: int, order_id: str | None) -> dict[str, Any]:
    """Payment body keyed by the client's idempotency key so retries deduplicate."""

    body: dict[str, Any] = {
        "idempotency_key": payload.idempotency_key,
        "location_id": payload.location_id,
        "source_id": payload.source_id,
        "amount_money": money(amount),
    }
    if order_id:
        body["order_id"] = order_id
    if payload.customer_id:
        body["customer_id"] = payload.customer_id
    if payload.verification_token:
        body["verification_token"] = payload.verification_token
    if payload.product_name or payload.customer_name:
        body["note"] = build_note(payload.product_name, payload.customer_name, payload.customer_notes)
    return body


def build_card_body(payload) -> dict[str, Any]:
    body: dict[str, Any] = {
        "idempotency_key": payload.idempotency_key,
        "source_id": payload.source_id,
        "card": {"customer_id": payload.customer_id},
    }
    if payload.verification_token:
        body["verification_token"] = payload.verification_token
    return body


def build_terminal_checkout_body(
    order_id: str,
    amount: int,
    note: str,
    device_id: str,
) -> dict[str, Any]:
    return {
        "idempotency_key": new_idempotency_key(),
        "checkout": {
            "amount_money": money(amount),
            "order_id": order_id,
            "reference_id": order_id[-REFERENCE_ID_LENGTH:],
            "note": note[:NOTE_MAX],
            "device_options": {"device_id": device_id, "show_itemized_cart": True},
        },
    }
