"""Gateway error taxonomy.

Every failure a handler can hit maps to one of these, and each carries the
HTTP status and JSON body the storefront receives.
"""

from typing import Any


class GatewayError(Exception):
    """Base error rendered verbatim as `status_code` + `body`."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None, body: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.body = body if body is not None else {"error": message}


class InvalidPayload(GatewayError):
    """Malformed JSON or a missing/invalid required field."""

    status_code = 400

    def __init__(self, message: str = "Bad Request", detail: str | None = None) -> None:
        body: dict[str, Any] = {"error": message}
        if detail:
            body["detail"] = detail
        super().__init__(message, body=body)


class ConfigurationError(GatewayError):
    """A required setting is missing; raised before any outbound call."""

    status_code = 500

    def __init__(self, setting: str, hint: str | None = None) -> None:
        message = f"{setting} not configured"
        body: dict[str, Any] = {"error": message}
        if hint:
            body["hint"] = hint
        self.setting = setting
        super().__init__(message, body=body)


class SquareApiError(GatewayError):
    """Square rejected the request. Never retried; status and errors pass through."""

    def __init__(
        self,
        status_code: int,
        errors: list[dict[str, Any]] | None = None,
        message: str | None = None,
    ) -> None:
        self.errors = errors or []
        if self.errors:
            body: dict[str, Any] = {"errors": self.errors}
        else:
            body = {"error": message or "Square request failed"}
        super().__init__(message or f"Square API error {status_code}", status_code=status_code, body=body)

    @classmethod
    def from_response(cls, status_code: int, data: dict[str, Any], fallback: str) -> "SquareApiError":
        """Build from a decoded Square error response body."""

        errors = data.get("errors") if isinstance(data, dict) else None
        message = data.get("message") if isinstance(data, dict) else None
        return cls(status_code, errors=errors, message=message or fallback)


class UpstreamTimeout(GatewayError):
    """An outbound call passed its deadline and was abandoned."""

    status_code = 504

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} timed out", body={"error": "Request timed out"})


class OrderLinkError(GatewayError):
    """Order creation succeeded but Square returned no order id."""

    status_code = 500

    def __init__(self) -> None:
        super().__init__("Order created but no order id in response")
