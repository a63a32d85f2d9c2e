from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress
from typing import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from cuemaster.api.error_handling import register_exception_handlers
from cuemaster.api.middleware.request_id import RequestIDMiddleware
from cuemaster.api.routes.catalog import router as catalog_router
from cuemaster.api.routes.health import router as health_router
from cuemaster.api.routes.metrics import router as metrics_router
from cuemaster.api.routes.sync_admin import router as sync_admin_router
from cuemaster.api.routes.table_orders import router as table_orders_router
from cuemaster.api.routes.table_registry import router as table_registry_router
from cuemaster.api.routes.tables import router as tables_router
from cuemaster.api.routes.transactions import router as transactions_router
from cuemaster.api.ws.manager import ConnectionManager
from cuemaster.api.ws.routes import router as ws_router
from cuemaster.application.ports.gateway import PersistenceGateway
from cuemaster.application.settings import AppSettings
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import AppState
from cuemaster.infrastructure.kv.factory import build_store
from cuemaster.infrastructure.kv.gateway import KeyValueGateway
from cuemaster.infrastructure.observability.logging_config import configure_logging
from cuemaster.infrastructure.observability.otel import configure_otel, flush_otel

logger = logging.getLogger("cuemaster.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

GatewayFactory = Callable[[], PersistenceGateway]


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: unblock everything (no credentials allowed)
    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _default_gateway() -> PersistenceGateway:
    return KeyValueGateway(build_store())


def _route_path(request: Request) -> str:
    # label by route template so table ids do not explode metric cardinality
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            path = _route_path(request)
            duration_ms = (time.perf_counter() - started) * 1000
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        path = _route_path(request)
        duration_ms = (time.perf_counter() - started) * 1000
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


def _build_lifespan(
    gateway_factory: GatewayFactory,
    settings: AppSettings | None,
    run_refresh_loop: bool,
):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ws_manager = ConnectionManager()
        sync = SyncCoordinator(
            state=AppState(),
            gateway=gateway_factory(),
            settings=settings or AppSettings.from_env(),
            publisher=ws_manager,
        )
        app.state.ws_manager = ws_manager
        app.state.sync = sync

        try:
            await sync.initialize()
        except Exception:
            # start with empty state; the refresh loop keeps retrying
            logger.exception("initial_sync_failed")

        refresh_task = None
        if run_refresh_loop:
            refresh_task = asyncio.create_task(sync.run_refresh_loop())
        app.state.refresh_task = refresh_task
        try:
            yield
        finally:
            if refresh_task is not None:
                refresh_task.cancel()
                with suppress(asyncio.CancelledError):
                    await refresh_task
            await sync.shutdown()
            flush_otel(app)

    return lifespan


def create_app(
    gateway_factory: GatewayFactory | None = None,
    settings: AppSettings | None = None,
    run_refresh_loop: bool = True,
) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="CueMaster Backend",
        version="0.1.0",
        lifespan=_build_lifespan(
            gateway_factory or _default_gateway,
            settings,
            run_refresh_loop,
        ),
    )
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(sync_admin_router)
    app.include_router(table_registry_router)
    app.include_router(tables_router)
    app.include_router(table_orders_router)
    app.include_router(catalog_router)
    app.include_router(transactions_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
