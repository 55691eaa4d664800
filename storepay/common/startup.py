"""Startup-time config logging with secrets reduced to presence flags."""

import os

from storepay.common.config import Settings, resolve_square_config
from storepay.common.logging import logger


SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def _safe_env(name: str) -> str:
    """Return env value, or only whether it is set for secret-like names."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        return "<set>" if value else "<empty>"
    return value


def log_startup_config(cfg: Settings, keys: list[str]) -> None:
    """Log the resolved Square target plus selected raw env keys."""

    square = resolve_square_config(cfg)
    config = {
        "service": cfg.service_name,
        "square_environment": square.environment,
        "square_base_url": square.base_url,
        "square_transport": cfg.square_transport,
        "location_id": square.location_id or "<none>",
        "terminal_device_configured": bool(cfg.square_terminal_device_id),
    }
    for key in keys:
        config[key] = _safe_env(key)
    logger.info("startup_config=%s", config)
