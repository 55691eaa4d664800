"""Inbound payload schemas and validators for the storefront endpoints.

The browser posts camelCase JSON; models keep snake_case attributes and map the
wire names through aliases. Optional free-text fields are coerced to strings so
that only the required fields decide whether a payload is acceptable.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from storepay.common.errors import InvalidPayload


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


def _optional_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class PaymentPayload(_Payload):
    """Body accepted by `POST /api/payment`."""

    idempotency_key: str = Field(alias="idempotencyKey", min_length=1)
    source_id: str = Field(alias="sourceId", min_length=1)
    location_id: str = Field(alias="locationId", min_length=1)
    amount: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    customer_id: str | None = Field(default=None, alias="customerId")
    verification_token: str | None = Field(default=None, alias="verificationToken")
    product_name: str | None = Field(default=None, alias="productName")
    customer_name: str | None = Field(default=None, alias="customerName")
    customer_notes: str | None = Field(default=None, alias="customerNotes")
    line_items: list[dict[str, Any]] | None = None
    catalog_object_id: str | None = None

    @field_validator(
        "customer_id",
        "verification_token",
        "product_name",
        "customer_name",
        "customer_notes",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("catalog_object_id", mode="before")
    @classmethod
    def _strip_catalog_id(cls, value: Any) -> str | None:
        text = _optional_text(value)
        return (text.strip() or None) if text else None

    @field_validator("line_items", mode="before")
    @classmethod
    def _keep_object_items(cls, value: Any) -> list[dict[str, Any]] | None:
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, dict)]


class TerminalCheckoutPayload(PaymentPayload):
    """Body accepted by `POST /api/terminal-checkout`.

    The card is presented on the reader, so no source or client key is needed.
    """

    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")
    source_id: str | None = Field(default=None, alias="sourceId")
    amount: float = Field(ge=0, allow_inf_nan=False)


class CardPayload(_Payload):
    """Body accepted by `POST /api/card`."""

    idempotency_key: str = Field(alias="idempotencyKey", min_length=1)
    source_id: str = Field(alias="sourceId", min_length=1)
    customer_id: str = Field(alias="customerId", min_length=1)
    verification_token: str | None = Field(default=None, alias="verificationToken")

    @field_validator("verification_token", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)


def _parse(model: type[_Payload], payload: Any, detail: str | None = None):
    if not isinstance(payload, dict):
        raise InvalidPayload(detail=detail)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPayload(detail=detail) from exc


def _accepts(model: type[_Payload], payload: Any) -> bool:
    try:
        _parse(model, payload)
    except InvalidPayload:
        return False
    return True


def parse_payment_payload(payload: Any) -> PaymentPayload:
    return _parse(PaymentPayload, payload)


def parse_terminal_checkout_payload(payload: Any) -> TerminalCheckoutPayload:
    return _parse(TerminalCheckoutPayload, payload, detail="amount and locationId are required")


def parse_card_payload(payload: Any) -> CardPayload:
    return _parse(CardPayload, payload)


def validate_payment_payload(payload: Any) -> bool:
    """True iff idempotencyKey, sourceId, locationId are non-empty strings and amount, if given, is >= 0."""

    return _accepts(PaymentPayload, payload)


def validate_terminal_checkout_payload(payload: Any) -> bool:
    return _accepts(TerminalCheckoutPayload, payload)


def validate_create_card_payload(payload: Any) -> bool:
    """True iff idempotencyKey, sourceId, customerId are non-empty strings."""

    return _accepts(CardPayload, payload)
