"""Response reshaping into the storefront contract."""

from storepay.services.gateway.normalize import (
    JS_MAX_SAFE_INTEGER,
    camelize,
    normalize_card,
    normalize_catalog,
    normalize_checkout,
    normalize_checkout_status,
    normalize_payment,
)


def test_camelize_nested_keys():
    """Keys are camelCased at every depth, lists included."""

    assert camelize({"billing_address": {"postal_code": "100"}, "items": [{"line_item_id": 1}]}) == {
        "billingAddress": {"postalCode": "100"},
        "items": [{"lineItemId": 1}],
    }


def test_card_wide_ints_become_strings():
    """Card version and expiry go out as strings; booleans stay booleans."""

    card = normalize_card(
        {"id": "ccof:1", "exp_month": 11, "exp_year": 2030, "version": 1, "enabled": True, "last_4": "1111"}
    )
    assert card == {
        "id": "ccof:1",
        "expMonth": "11",
        "expYear": "2030",
        "version": "1",
        "enabled": True,
        "last4": "1111",
    }


def test_unsafe_integers_anywhere_become_strings():
    """Integers beyond the JavaScript safe range are stringified."""

    data = {"objects": [{"version": JS_MAX_SAFE_INTEGER + 1, "present_at_all_locations": True, "count": 3}]}
    assert normalize_catalog(data) == {
        "objects": [{"version": str(JS_MAX_SAFE_INTEGER + 1), "present_at_all_locations": True, "count": 3}]
    }


def test_payment_shape():
    """Payments flatten to id, status, receipt URL and order id."""

    payment = {
        "id": "PAY1",
        "status": "COMPLETED",
        "receipt_url": "https://squareup.com/receipt/preview/PAY1",
        "order_id": "ORD1",
        "amount_money": {"amount": 940, "currency": "JPY"},
    }
    assert normalize_payment(payment) == {
        "id": "PAY1",
        "status": "COMPLETED",
        "receiptUrl": "https://squareup.com/receipt/preview/PAY1",
        "orderId": "ORD1",
    }


def test_checkout_status_defaults_to_pending():
    """A new checkout without a status reads as PENDING."""

    assert normalize_checkout({"id": "CHK1"}, "ORD1") == {"checkoutId": "CHK1", "orderId": "ORD1", "status": "PENDING"}


def test_checkout_status_lookup_shape():
    """Status lookups default paymentIds to an empty list."""

    assert normalize_checkout_status({"status": "COMPLETED", "order_id": "ORD1", "payment_ids": ["P1"]}) == {
        "status": "COMPLETED",
        "orderId": "ORD1",
        "paymentIds": ["P1"],
    }
    assert normalize_checkout_status({"status": "PENDING"})["paymentIds"] == []
