"""Bounded retry around one outbound Square call.

Square deduplicates on the idempotency key carried inside the request body, so
a retried attempt must resend exactly the same body. `operation` is therefore a
zero-argument coroutine factory closed over a body built once by the caller.

Gateway errors (Square rejections, deadlines, missing config) bail on the spot;
anything else is treated as a transport hiccup and retried with exponential
backoff until the attempt ceiling.
"""

import asyncio
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import TypeVar

from pydantic import BaseModel, Field

from storepay.common.config import Settings, settings
from storepay.common.errors import GatewayError, UpstreamTimeout
from storepay.common.logging import logger
from storepay.common.metrics import retries_total, square_call_latency_seconds, square_calls_total
from storepay.common.tracing import square_span


T = TypeVar("T")


class RetryPolicy(BaseModel):
    """Attempt ceiling, backoff curve and per-attempt deadline."""

    max_attempts: int = Field(default=5, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    timeout: float = Field(default=20.0, gt=0)

    @classmethod
    def from_settings(cls, cfg: Settings | None = None) -> "RetryPolicy":
        cfg = cfg or settings
        return cls(
            max_attempts=cfg.square_max_attempts,
            base_delay=cfg.square_retry_base_delay_seconds,
            max_delay=cfg.square_retry_max_delay_seconds,
            timeout=cfg.square_request_timeout_seconds,
        )

    def backoff(self, attempt: int) -> float:
        """Delay after a failed `attempt` (1-based): base, 2x base, 4x base... capped."""

        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


async def call_with_timeout(operation: Callable[[], Awaitable[T]], *, name: str, timeout: float) -> T:
    """Run one attempt under a wall-clock deadline; expiry cancels the call."""

    started = perf_counter()
    with square_span(name) as span:
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            span.set_attribute("square.timed_out", True)
            raise UpstreamTimeout(name) from exc
        finally:
            square_call_latency_seconds.labels(service=settings.service_name, operation=name).observe(
                max(0.0, perf_counter() - started)
            )


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    policy: RetryPolicy | None = None,
) -> T:
    """Execute `operation` until it succeeds, bails, or runs out of attempts."""

    policy = policy or RetryPolicy.from_settings()
    last_error: Exception | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await call_with_timeout(operation, name=name, timeout=policy.timeout)
        except GatewayError as exc:
            square_calls_total.labels(
                service=settings.service_name, operation=name, outcome=type(exc).__name__
            ).inc()
            logger.error(
                "square call bailed operation=%s attempt=%s status=%s body=%s",
                name,
                attempt,
                exc.status_code,
                exc.body,
            )
            raise
        except Exception as exc:
            last_error = exc
            square_calls_total.labels(service=settings.service_name, operation=name, outcome="transient").inc()
            if attempt == policy.max_attempts:
                logger.error(
                    "square call failed operation=%s attempts=%s error=%r",
                    name,
                    attempt,
                    exc,
                )
                break
            delay = policy.backoff(attempt)
            retries_total.labels(service=settings.service_name, dependency="square").inc()
            logger.warning(
                "square call retry operation=%s attempt=%s backoff_s=%s error=%r",
                name,
                attempt,
                delay,
                exc,
            )
            await asyncio.sleep(delay)
            continue
        square_calls_total.labels(service=settings.service_name, operation=name, outcome="success").inc()
        if attempt > 1:
            logger.info("square call recovered operation=%s attempt=%s", name, attempt)
        return result
    raise last_error
