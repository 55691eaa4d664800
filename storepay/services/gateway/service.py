"""Gateway use cases.

Card payments and terminal checkouts are two-phase: an order is created first
so the sale shows up on the seller's POS and kitchen display, then a payment or
terminal checkout references that order id. Phases run strictly in sequence.
If phase two fails, the order is left unpaid; nothing compensates for it.
"""

from collections.abc import Callable
from typing import Any

from storepay.common.config import Settings, resolve_square_config, settings
from storepay.common.errors import ConfigurationError, InvalidPayload, OrderLinkError
from storepay.common.logging import idempotency_key_ctx, logger, order_id_ctx
from storepay.common.metrics import payment_failure_total, payment_requests_total, payment_success_total
from storepay.common.retry import RetryPolicy, call_with_timeout, run_with_retry
from storepay.common.square import SquareTransport, build_transport
from storepay.common.state_machine import Flow
from storepay.services.gateway.builders import (
    DEFAULT_PRODUCT_NAME,
    DEFAULT_TERMINAL_PRODUCT_NAME,
    PRODUCT_NAME_MAX,
    build_card_body,
    build_line_items,
    build_note,
    build_order_body,
    build_payment_body,
    build_pickup_fulfillment,
    build_terminal_checkout_body,
    to_minor_units,
)
from storepay.services.gateway.normalize import (
    normalize_card,
    normalize_catalog,
    normalize_checkout,
    normalize_checkout_status,
    normalize_payment,
)
from storepay.services.gateway.schemas import (
    parse_card_payload,
    parse_payment_payload,
    parse_terminal_checkout_payload,
)


class PaymentGatewayService:
    """Validates storefront payloads and drives the Square calls behind each endpoint."""

    def __init__(
        self,
        cfg: Settings | None = None,
        transport_factory: Callable[[Settings], SquareTransport] = build_transport,
    ) -> None:
        self.settings = cfg or settings
        self.transport_factory = transport_factory
        self.policy = RetryPolicy.from_settings(self.settings)

    def _transport(self) -> SquareTransport:
        return self.transport_factory(self.settings)

    def _amount(self, amount: float | None) -> int:
        return to_minor_units(amount) if amount is not None else self.settings.default_amount

    def client_config(self) -> dict[str, str]:
        """Public values the browser needs to load Square's Web Payments SDK."""

        square = resolve_square_config(self.settings)
        return {
            "squareEnvironment": square.environment,
            "applicationId": square.application_id,
            "locationId": square.location_id,
            "squareJsUrl": square.js_url,
        }

    async def list_items(self) -> dict[str, Any]:
        square = self._transport()
        data = await run_with_retry(lambda: square.list_catalog("ITEM"), name="list_catalog", policy=self.policy)
        return normalize_catalog(data)

    async def store_card(self, payload: Any) -> dict[str, Any]:
        """Save a card on file for an existing customer."""

        req = parse_card_payload(payload)
        square = self._transport()
        idempotency_key_ctx.set(req.idempotency_key)
        body = build_card_body(req)
        data = await run_with_retry(lambda: square.create_card(body), name="create_card", policy=self.policy)
        logger.info("card stored customer_id=%s", req.customer_id)
        return {"success": True, "card": normalize_card(data.get("card") or {})}

    async def _create_order(
        self,
        square: SquareTransport,
        location_id: str,
        line_items: list[dict[str, Any]],
        fulfillment: dict[str, Any] | None = None,
    ) -> str:
        body = build_order_body(location_id, line_items, fulfillment)
        data = await run_with_retry(lambda: square.create_order(body), name="create_order", policy=self.policy)
        order_id = (data.get("order") or {}).get("id")
        if not order_id:
            logger.error("order created without id location_id=%s", location_id)
            raise OrderLinkError()
        order_id_ctx.set(order_id)
        logger.info("order created order_id=%s line_items=%s", order_id, len(line_items))
        return order_id

    async def create_payment(self, payload: Any) -> dict[str, Any]:
        """Order first (unless order linking is off), then the card payment against it."""

        req = parse_payment_payload(payload)
        square = self._transport()
        idempotency_key_ctx.set(req.idempotency_key)
        amount = self._amount(req.amount)
        link_orders = self.settings.square_link_orders
        flow = Flow("card_payment", start="CREATE_ORDER" if link_orders else "CREATE_PAYMENT")
        payment_requests_total.labels(service=self.settings.service_name, flow="card").inc()
        try:
            order_id = None
            if link_orders:
                product_name = (req.product_name or DEFAULT_PRODUCT_NAME)[:PRODUCT_NAME_MAX]
                line_items = build_line_items(req.line_items, req.catalog_object_id, product_name, amount)
                order_id = await self._create_order(square, req.location_id, line_items)
                flow.advance("CREATE_PAYMENT")

            body = build_payment_body(req, amount, order_id)
            data = await run_with_retry(lambda: square.create_payment(body), name="create_payment", policy=self.policy)
            flow.advance("COMPLETED")
        except Exception:
            flow.fail()
            payment_failure_total.labels(service=self.settings.service_name, flow="card").inc()
            raise

        payment = normalize_payment(data.get("payment") or {})
        payment_success_total.labels(service=self.settings.service_name, flow="card").inc()
        logger.info("payment succeeded payment_id=%s status=%s", payment["id"], payment["status"])
        return {"success": True, "payment": payment}

    async def create_terminal_checkout(self, payload: Any) -> dict[str, Any]:
        """Order with a pickup fulfillment, then push a checkout to the configured reader."""

        req = parse_terminal_checkout_payload(payload)
        square = self._transport()
        device_id = self.settings.square_terminal_device_id
        if not device_id:
            logger.error("SQUARE_TERMINAL_DEVICE_ID is not set")
            raise ConfigurationError(
                "SQUARE_TERMINAL_DEVICE_ID",
                hint="Set SQUARE_TERMINAL_DEVICE_ID to the device_id of the paired Square Terminal.",
            )

        # Zero falls back to the default too, unlike the card flow.
        amount = self._amount(req.amount) or self.settings.default_amount
        location_id = self.settings.location_id or req.location_id
        product_name = (req.product_name or DEFAULT_TERMINAL_PRODUCT_NAME)[:PRODUCT_NAME_MAX]
        flow = Flow("terminal_checkout")
        payment_requests_total.labels(service=self.settings.service_name, flow="terminal").inc()
        try:
            line_items = build_line_items(req.line_items, req.catalog_object_id, product_name, amount)
            order_id = await self._create_order(
                square, location_id, line_items, build_pickup_fulfillment(req.customer_name)
            )
            flow.advance("CREATE_CHECKOUT")

            note = build_note(product_name, req.customer_name, req.customer_notes)
            body = build_terminal_checkout_body(order_id, amount, note, device_id)
            data = await run_with_retry(
                lambda: square.create_terminal_checkout(body),
                name="create_terminal_checkout",
                policy=self.policy,
            )
            flow.advance("COMPLETED")
        except Exception:
            flow.fail()
            payment_failure_total.labels(service=self.settings.service_name, flow="terminal").inc()
            raise

        result = normalize_checkout(data.get("checkout") or {}, order_id)
        payment_success_total.labels(service=self.settings.service_name, flow="terminal").inc()
        logger.info("terminal checkout sent checkout_id=%s status=%s", result["checkoutId"], result["status"])
        return {"success": True, **result}

    async def get_terminal_checkout_status(self, checkout_id: str | None) -> dict[str, Any]:
        """One lookup, no retry; the storefront polls this endpoint itself."""

        if not checkout_id:
            raise InvalidPayload("checkout_id is required")
        square = self._transport()
        data = await call_with_timeout(
            lambda: square.get_terminal_checkout(checkout_id),
            name="get_terminal_checkout",
            timeout=self.policy.timeout,
        )
        return normalize_checkout_status(data.get("checkout") or {})
