"""Square transport backed by the official `squareup` SDK.

Selected with `SQUARE_TRANSPORT=sdk`. SDK models are dumped back to REST shaped
dicts so the gateway sees the same data as with the REST transport.
"""

from typing import Any

from pydantic import BaseModel
from square import AsyncSquare
from square.core.api_error import ApiError
from square.environment import SquareEnvironment

from storepay.common.config import SANDBOX
from storepay.common.errors import SquareApiError
from storepay.common.logging import logger


def _without_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _without_none(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_without_none(item) for item in value]
    return value


def _dump(value: Any) -> Any:
    """REST shaped dict for an SDK model; fields the SDK set to None are dropped."""

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", exclude_none=True)
    return _without_none(value)


def _api_errors(exc: ApiError) -> list[dict[str, Any]]:
    """Square's raw error list when the body has one, else the SDK's parsed errors."""

    if isinstance(exc.body, dict) and isinstance(exc.body.get("errors"), list):
        return exc.body["errors"]
    return [_dump(error) for error in getattr(exc, "errors", None) or []]


class SdkSquareTransport:
    """Adapter from the SDK's async client to `SquareTransport`."""

    def __init__(self, access_token: str, environment: str, timeout: float, client: AsyncSquare | None = None) -> None:
        self.client = client or AsyncSquare(
            token=access_token,
            environment=SquareEnvironment.SANDBOX if environment == SANDBOX else SquareEnvironment.PRODUCTION,
            timeout=timeout,
        )

    async def _call(self, operation: str, method, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await method(**kwargs)
        except ApiError as exc:
            logger.error("square sdk rejected %s status=%s", operation, exc.status_code)
            raise SquareApiError(exc.status_code or 500, errors=_api_errors(exc), message=f"{operation} failed") from exc
        return _dump(response)

    async def create_order(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("create_order", self.client.orders.create, **body)

    async def create_payment(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("create_payment", self.client.payments.create, **body)

    async def create_card(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("create_card", self.client.cards.create, **body)

    async def create_terminal_checkout(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._call("create_terminal_checkout", self.client.terminal.checkouts.create, **body)

    async def get_terminal_checkout(self, checkout_id: str) -> dict[str, Any]:
        return await self._call(
            "get_terminal_checkout", self.client.terminal.checkouts.get, checkout_id=checkout_id
        )

    async def list_catalog(self, types: str = "ITEM") -> dict[str, Any]:
        try:
            pager = await self.client.catalog.list(types=types)
            objects = [_dump(item) async for item in pager]
        except ApiError as exc:
            logger.error("square sdk rejected list_catalog status=%s", exc.status_code)
            raise SquareApiError(exc.status_code or 500, errors=_api_errors(exc), message="list_catalog failed") from exc
        return {"objects": objects}
