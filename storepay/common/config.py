"""Central environment-driven settings for the storefront gateway.

The process loads this once at startup. Every handler reads Square credentials
and ids through `settings` and `resolve_square_config` (see `.env.example`).
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


SANDBOX = "sandbox"
PRODUCTION = "production"

SQUARE_API_VERSION = "2024-11-20"
SQUARE_BASE_URLS = {
    SANDBOX: "https://connect.squareupsandbox.com",
    PRODUCTION: "https://connect.squareup.com",
}
SQUARE_JS_URLS = {
    SANDBOX: "https://sandbox.web.squarecdn.com/v1/square.js",
    PRODUCTION: "https://web.squarecdn.com/v1/square.js",
}
# Public ids of the shared sandbox seller; production has no defaults.
SANDBOX_APPLICATION_ID = "sandbox-sq0idb-oKEv1VNR-uF3ECUHWG5WCA"
SANDBOX_LOCATION_ID = "LSB41KX7QNYRJ"


class Settings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "storepay-gateway"
    log_level: str = "INFO"
    otel_exporter_otlp_endpoint: str = ""
    public_dir: str = "public"

    square_access_token: str = ""
    square_environment: Literal["", "sandbox", "production"] = ""
    node_env: str = ""
    square_application_id: str = ""
    application_id: str = ""
    location_id: str = ""
    square_terminal_device_id: str = ""

    square_transport: Literal["rest", "sdk"] = "rest"
    square_link_orders: bool = True
    square_request_timeout_seconds: float = 20.0
    square_max_attempts: int = 5
    square_retry_base_delay_seconds: float = 1.0
    square_retry_max_delay_seconds: float = 10.0
    default_amount: int = 940
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()


class SquareConfig(BaseModel):
    """Resolved Square environment and the ids the storefront needs."""

    model_config = ConfigDict(frozen=True)

    environment: str
    base_url: str
    js_url: str
    application_id: str
    location_id: str


def resolve_environment(cfg: Settings) -> str:
    """Pick sandbox or production.

    Precedence: SQUARE_ENVIRONMENT, then NODE_ENV=production, then sandbox.
    """

    if cfg.square_environment:
        return cfg.square_environment
    if cfg.node_env.strip().lower() == PRODUCTION:
        return PRODUCTION
    return SANDBOX


def resolve_square_config(cfg: Settings | None = None) -> SquareConfig:
    """Resolve base URLs and id overrides for the active environment."""

    cfg = cfg or settings
    environment = resolve_environment(cfg)
    is_sandbox = environment == SANDBOX
    application_id = (
        cfg.square_application_id
        or cfg.application_id
        or (SANDBOX_APPLICATION_ID if is_sandbox else "")
    )
    location_id = cfg.location_id or (SANDBOX_LOCATION_ID if is_sandbox else "")
    return SquareConfig(
        environment=environment,
        base_url=SQUARE_BASE_URLS[environment],
        js_url=SQUARE_JS_URLS[environment],
        application_id=application_id,
        location_id=location_id,
    )
