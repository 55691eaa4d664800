"""Shared fixtures: isolated settings and an in-memory Square transport."""

from typing import Any

import pytest

from storepay.common.config import Settings
from storepay.common.errors import SquareApiError
from storepay.services.gateway.service import PaymentGatewayService


def make_settings(**overrides: Any) -> Settings:
    """Settings that ignore the host environment's .env file and defaults."""

    values: dict[str, Any] = {
        "square_access_token": "test-token",
        "square_environment": "sandbox",
        "node_env": "",
        "square_application_id": "",
        "application_id": "",
        "location_id": "",
        "square_terminal_device_id": "device-123",
        "square_transport": "rest",
        "square_link_orders": True,
        "square_request_timeout_seconds": 2.0,
        "square_max_attempts": 3,
        "square_retry_base_delay_seconds": 0.0,
        "square_retry_max_delay_seconds": 0.0,
        "default_amount": 940,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeSquare:
    """Records calls; each operation answers from a queue of results or exceptions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.results: dict[str, list[Any]] = {}

    def queue(self, operation: str, *results: Any) -> None:
        self.results.setdefault(operation, []).extend(results)

    def called(self, operation: str) -> list[Any]:
        return [arg for name, arg in self.calls if name == operation]

    async def _answer(self, operation: str, arg: Any) -> dict[str, Any]:
        self.calls.append((operation, arg))
        pending = self.results.get(operation) or [{}]
        result = pending.pop(0) if len(pending) > 1 else pending[0]
        if isinstance(result, BaseException):
            raise result
        return result

    async def create_order(self, body):
        return await self._answer("create_order", body)

    async def create_payment(self, body):
        return await self._answer("create_payment", body)

    async def create_card(self, body):
        return await self._answer("create_card", body)

    async def create_terminal_checkout(self, body):
        return await self._answer("create_terminal_checkout", body)

    async def get_terminal_checkout(self, checkout_id):
        return await self._answer("get_terminal_checkout", checkout_id)

    async def list_catalog(self, types="ITEM"):
        return await self._answer("list_catalog", types)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def fake_square() -> FakeSquare:
    return FakeSquare()


@pytest.fixture
def gateway(fake_square):
    """Service wired to the fake transport with test settings."""

    def build(**overrides: Any) -> PaymentGatewayService:
        return PaymentGatewayService(make_settings(**overrides), transport_factory=lambda _: fake_square)

    return build


@pytest.fixture
def square_error():
    def build(status_code: int = 400, code: str = "CARD_DECLINED") -> SquareApiError:
        return SquareApiError(
            status_code,
            errors=[{"category": "PAYMENT_METHOD_ERROR", "code": code, "detail": "declined"}],
        )

    return build
