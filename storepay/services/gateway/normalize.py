"""Reshape Square responses into the storefront's camelCase contract.

Square's int64 fields (card versions, expiry parts, money amounts) can exceed
what a browser's JSON parser keeps exactly, so the known wide fields are sent
as strings, and so is any other integer outside the JavaScript safe range.
"""

from typing import Any


JS_MAX_SAFE_INTEGER = 2**53 - 1
CARD_WIDE_INT_FIELDS = frozenset({"version", "expMonth", "expYear"})


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camelize(value: Any) -> Any:
    """Recursively rewrite snake_case dict keys to camelCase."""

    if isinstance(value, dict):
        return {to_camel(key): camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def stringify_wide_ints(value: Any, fields: frozenset[str] = frozenset()) -> Any:
    """Stringify ints under `fields` keys and any int beyond the JS safe range."""

    if isinstance(value, dict):
        return {
            key: str(item) if key in fields and _is_int(item) else stringify_wide_ints(item, fields)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [stringify_wide_ints(item, fields) for item in value]
    if _is_int(value) and abs(value) > JS_MAX_SAFE_INTEGER:
        return str(value)
    return value


def normalize_card(card: dict[str, Any]) -> dict[str, Any]:
    return stringify_wide_ints(camelize(card), CARD_WIDE_INT_FIELDS)


def normalize_payment(payment: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": payment.get("id"),
        "status": payment.get("status"),
        "receiptUrl": payment.get("receipt_url"),
        "orderId": payment.get("order_id"),
    }


def normalize_checkout(checkout: dict[str, Any], order_id: str) -> dict[str, Any]:
    return {
        "checkoutId": checkout.get("id"),
        "orderId": order_id,
        "status": checkout.get("status") or "PENDING",
    }


def normalize_checkout_status(checkout: dict[str, Any]) -> dict[str, Any]:
    return {
        "status": checkout.get("status"),
        "orderId": checkout.get("order_id"),
        "paymentIds": checkout.get("payment_ids") or [],
    }


def normalize_catalog(data: dict[str, Any]) -> dict[str, Any]:
    """Catalog listings pass through untouched apart from the unsafe-int guard."""

    return stringify_wide_ints(data)
