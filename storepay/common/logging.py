"""JSON logs on stdout, tagged with the request's correlation and payment ids."""

import logging
import sys
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from storepay.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
idempotency_key_ctx: ContextVar[str] = ContextVar("idempotency_key", default="")
order_id_ctx: ContextVar[str] = ContextVar("order_id", default="")

# Client libraries that log every outbound request at INFO.
CHATTY_LOGGERS = ("httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Copy the current request's ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.idempotency_key = idempotency_key_ctx.get()
        record.order_id = order_id_ctx.get()
        return True


def bind_request(trace_id: str) -> None:
    """Start a request's logging context: new correlation id, no payment ids yet."""

    trace_id_ctx.set(trace_id)
    idempotency_key_ctx.set("")
    order_id_ctx.set("")


def configure_logging(level: str | None = None) -> None:
    context_filter = ContextFilter()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(context_filter)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(service_name)s %(trace_id)s "
            "%(idempotency_key)s %(order_id)s %(message)s"
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level or settings.log_level)
    root.addFilter(context_filter)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = logging.getLogger("storepay")
