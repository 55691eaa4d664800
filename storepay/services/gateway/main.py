"""Storefront-facing HTTP surface.

JSON endpoints for config, catalog, card-on-file, card payments and terminal
checkouts, plus the storefront's static assets from `PUBLIC_DIR`. Each API path
answers OPTIONS for CORS and 405 for methods it does not serve.
"""

from pathlib import Path
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storepay.common.config import settings
from storepay.common.errors import GatewayError, InvalidPayload
from storepay.common.logging import bind_request, configure_logging, logger
from storepay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from storepay.common.startup import log_startup_config
from storepay.common.tracing import instrument_app, setup_tracing
from storepay.services.gateway.service import PaymentGatewayService

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "SERVICE_NAME",
        "SQUARE_ENVIRONMENT",
        "NODE_ENV",
        "SQUARE_ACCESS_TOKEN",
        "SQUARE_APPLICATION_ID",
        "LOCATION_ID",
        "SQUARE_TERMINAL_DEVICE_ID",
        "SQUARE_TRANSPORT",
    ],
)
service = PaymentGatewayService(settings)

# Path -> methods it serves; everything else on the path gets 405.
API_ROUTES: dict[str, tuple[str, ...]] = {
    "/api/config": ("GET",),
    "/api/items": ("GET",),
    "/api/card": ("POST",),
    "/card": ("POST",),
    "/api/payment": ("POST",),
    "/payment": ("POST",),
    "/api/terminal-checkout": ("POST",),
    "/api/terminal-checkout-status": ("GET",),
}
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")

router = APIRouter()


async def metrics_middleware(request: Request, call_next):
    """Correlate, time and count every request; unknown errors become a bare 500."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    trace_id = request.headers.get("x-correlation-id") or str(uuid4())
    bind_request(trace_id)
    try:
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("unhandled error method=%s path=%s", method, route)
            response = JSONResponse(status_code=500, content={"error": "Internal Server Error"})
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        response.headers["x-correlation-id"] = trace_id
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


async def gateway_error_handler(_: Request, exc: GatewayError):
    return JSONResponse(status_code=exc.status_code, content=exc.body)


async def http_error_handler(_: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def read_json(request: Request) -> Any:
    """Parsed request body; anything that is not JSON is a 400."""

    try:
        return await request.json()
    except ValueError as exc:
        raise InvalidPayload() from exc


@router.get("/api/config")
def get_config():
    """Square environment, application/location ids and the Square.js URL."""

    return service.client_config()


@router.get("/api/items")
async def list_items():
    """Catalog ITEM objects, as Square returns them."""

    return await service.list_items()


@router.post("/api/card")
@router.post("/card")
async def store_card(request: Request):
    return await service.store_card(await read_json(request))


@router.post("/api/payment")
@router.post("/payment")
async def create_payment(request: Request):
    """Create an order, then a card payment linked to it."""

    return await service.create_payment(await read_json(request))


@router.post("/api/terminal-checkout")
async def create_terminal_checkout(request: Request):
    """Create an order, then send a checkout to the Square Terminal."""

    return await service.create_terminal_checkout(await read_json(request))


@router.get("/api/terminal-checkout-status")
async def get_terminal_checkout_status(checkout_id: str | None = None):
    """Current status of a terminal checkout, for client-side polling."""

    return await service.get_terminal_checkout_status(checkout_id)


@router.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@router.get("/health")
def health():
    """Container health check endpoint."""

    return {"ok": True}


def register_method_guards(path: str, allowed: tuple[str, ...]) -> None:
    """OPTIONS -> 200 with CORS headers; any other unserved method -> 405."""

    allow = ", ".join((*allowed, "OPTIONS"))
    cors_headers = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": allow,
        "Access-Control-Allow-Headers": "Content-Type",
    }

    async def preflight():
        return Response(status_code=200, headers=cors_headers)

    async def method_not_allowed():
        return JSONResponse(
            status_code=405,
            content={"error": "Method Not Allowed"},
            headers={"Allow": allow, **cors_headers},
        )

    router.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)
    router.add_api_route(
        path,
        method_not_allowed,
        methods=[method for method in HTTP_METHODS if method not in allowed],
        include_in_schema=False,
    )


for _path, _methods in API_ROUTES.items():
    register_method_guards(_path, _methods)


def create_app(public_dir: str | None = None) -> FastAPI:
    """Assemble the gateway app; static files are served only if `public_dir` exists."""

    app = FastAPI(title="Storepay Gateway")
    instrument_app(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.middleware("http")(metrics_middleware)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.include_router(router)

    public = Path(public_dir if public_dir is not None else settings.public_dir)
    # Mounted last so every API route and method guard matches first.
    if public.is_dir():
        app.mount("/", StaticFiles(directory=public, html=True), name="public")
    return app


app = create_app()
