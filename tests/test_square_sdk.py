"""SDK-backed transport against a mocked Square sandbox."""

import httpx
import pytest
import respx

from storepay.common.errors import SquareApiError
from storepay.common.square import build_transport
from storepay.common.square_sdk import SdkSquareTransport

SQUARE = "https://connect.squareupsandbox.com"


@pytest.fixture
def transport() -> SdkSquareTransport:
    return SdkSquareTransport("test-token", "sandbox", 5)


def test_sdk_strategy_selected_by_setting(settings_factory):
    """SQUARE_TRANSPORT=sdk builds the SDK transport."""

    assert isinstance(build_transport(settings_factory(square_transport="sdk")), SdkSquareTransport)


@pytest.mark.asyncio
async def test_create_order_returns_rest_shaped_dict(transport):
    """Order creation goes out with the caller's body and comes back as a plain dict."""

    with respx.mock(base_url=SQUARE) as square:
        route = square.post("/v2/orders").mock(
            return_value=httpx.Response(200, json={"order": {"id": "ORD1", "location_id": "LOC1"}})
        )

        result = await transport.create_order(
            {
                "idempotency_key": "order-key",
                "order": {
                    "location_id": "LOC1",
                    "line_items": [{"name": "Banh Mi", "quantity": "1", "base_price_money": {"amount": 940, "currency": "JPY"}}],
                },
            }
        )

    assert result["order"]["id"] == "ORD1"
    assert result["order"]["location_id"] == "LOC1"
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer test-token"
    assert b"order-key" in request.content


@pytest.mark.asyncio
async def test_declined_payment_keeps_status_and_raw_errors(transport):
    """A 402 from Square surfaces with the same error list the REST transport returns."""

    errors = [{"category": "PAYMENT_METHOD_ERROR", "code": "CARD_DECLINED", "detail": "Card declined."}]
    with respx.mock(base_url=SQUARE) as square:
        square.post("/v2/payments").mock(return_value=httpx.Response(402, json={"errors": errors}))

        with pytest.raises(SquareApiError) as exc_info:
            await transport.create_payment(
                {
                    "idempotency_key": "client-key",
                    "source_id": "cnon:card-nonce-declined",
                    "location_id": "LOC1",
                    "amount_money": {"amount": 940, "currency": "JPY"},
                }
            )

    assert exc_info.value.status_code == 402
    assert exc_info.value.body == {"errors": errors}


@pytest.mark.asyncio
async def test_create_card(transport):
    """Card on file is created and returned without null fields."""

    with respx.mock(base_url=SQUARE) as square:
        square.post("/v2/cards").mock(
            return_value=httpx.Response(
                200,
                json={"card": {"id": "ccof:1", "card_brand": "VISA", "exp_month": 12, "exp_year": 2031, "customer_id": "C1"}},
            )
        )

        result = await transport.create_card(
            {"idempotency_key": "k", "source_id": "cnon:card-nonce-ok", "card": {"customer_id": "C1"}}
        )

    card = result["card"]
    assert card["id"] == "ccof:1"
    assert card["exp_month"] == 12
    assert None not in card.values()


@pytest.mark.asyncio
async def test_list_catalog_collects_objects(transport):
    """Catalog pages are flattened into one `objects` list."""

    with respx.mock(base_url=SQUARE) as square:
        route = square.get("/v2/catalog/list").mock(
            return_value=httpx.Response(
                200,
                json={"objects": [{"type": "ITEM", "id": "ITEM1"}, {"type": "ITEM", "id": "ITEM2"}]},
            )
        )

        result = await transport.list_catalog()

    assert [obj["id"] for obj in result["objects"]] == ["ITEM1", "ITEM2"]
    assert route.calls.last.request.url.params["types"] == "ITEM"


@pytest.mark.asyncio
async def test_get_terminal_checkout(transport):
    """Checkout lookup hits the id-specific path."""

    with respx.mock(base_url=SQUARE) as square:
        square.get("/v2/terminals/checkouts/CHK1").mock(
            return_value=httpx.Response(
                200,
                json={
                    "checkout": {
                        "id": "CHK1",
                        "status": "COMPLETED",
                        "amount_money": {"amount": 940, "currency": "JPY"},
                        "device_options": {"device_id": "device-123"},
                        "payment_ids": ["PAY1"],
                    }
                },
            )
        )

        result = await transport.get_terminal_checkout("CHK1")

    assert result["checkout"]["status"] == "COMPLETED"
    assert result["checkout"]["payment_ids"] == ["PAY1"]
