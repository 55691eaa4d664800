"""Square API transports.

Handlers talk to Square through `SquareTransport`; which implementation backs it
is a deployment choice (`SQUARE_TRANSPORT`). Bodies going in and results coming
out are Square REST shaped (snake_case) dicts regardless of the strategy.
"""

from typing import Any, Protocol
from urllib.parse import quote

import httpx

from storepay.common.config import SQUARE_API_VERSION, Settings, resolve_square_config, settings
from storepay.common.errors import ConfigurationError, SquareApiError, UpstreamTimeout
from storepay.common.logging import logger


class SquareTransport(Protocol):
    """Operations the gateway needs from Square."""

    async def create_order(self, body: dict[str, Any]) -> dict[str, Any]: ...

    async def create_payment(self, body: dict[str, Any]) -> dict[str, Any]: ...

    async def create_card(self, body: dict[str, Any]) -> dict[str, Any]: ...

    async def create_terminal_checkout(self, body: dict[str, Any]) -> dict[str, Any]: ...

    async def get_terminal_checkout(self, checkout_id: str) -> dict[str, Any]: ...

    async def list_catalog(self, types: str = "ITEM") -> dict[str, Any]: ...


class RestSquareTransport:
    """Direct calls to Square's REST API, one short-lived httpx client per call."""

    def __init__(self, access_token: str, base_url: str, timeout: float, api_version: str = SQUARE_API_VERSION) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "Square-Version": self.api_version,
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        fallback_error: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
            try:
                resp = await client.request(method, path, headers=self._headers(), json=json, params=params)
            except httpx.TimeoutException as exc:
                raise UpstreamTimeout(f"{method} {path}") from exc

        if resp.is_error:
            try:
                data = resp.json()
            except ValueError:
                data = {"message": resp.text or None}
            logger.error("square rejected %s %s status=%s", method, path, resp.status_code)
            raise SquareApiError.from_response(resp.status_code, data, fallback_error)
        return resp.json()

    async def create_order(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/v2/orders", json=body, fallback_error="Order creation failed")

    async def create_payment(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/v2/payments", json=body, fallback_error="Payment failed")

    async def create_card(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/v2/cards", json=body, fallback_error="Card storage failed")

    async def create_terminal_checkout(self, body: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST", "/v2/terminals/checkouts", json=body, fallback_error="Terminal checkout failed"
        )

    async def get_terminal_checkout(self, checkout_id: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/v2/terminals/checkouts/{quote(checkout_id, safe='')}",
            fallback_error="Failed",
        )

    async def list_catalog(self, types: str = "ITEM") -> dict[str, Any]:
        return await self._request(
            "GET", "/v2/catalog/list", params={"types": types}, fallback_error="Catalog listing failed"
        )


def build_transport(cfg: Settings | None = None) -> SquareTransport:
    """Create the configured transport; a missing access token is a config error."""

    cfg = cfg or settings
    if not cfg.square_access_token:
        logger.error("SQUARE_ACCESS_TOKEN is not set")
        raise ConfigurationError(
            "SQUARE_ACCESS_TOKEN",
            hint="Set SQUARE_ACCESS_TOKEN in the deployment environment and restart the service.",
        )
    square = resolve_square_config(cfg)
    if cfg.square_transport == "sdk":
        from storepay.common.square_sdk import SdkSquareTransport

        return SdkSquareTransport(
            cfg.square_access_token,
            environment=square.environment,
            timeout=cfg.square_request_timeout_seconds,
        )
    return RestSquareTransport(
        cfg.square_access_token,
        base_url=square.base_url,
        timeout=cfg.square_request_timeout_seconds,
    )
