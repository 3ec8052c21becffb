from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from app.api.users import build_router
from app.config import Settings, get_settings
from app.db.session import init_store
from app.db.store import UserStore
from app.errors import StoreError
from app.observability.middleware import RequestContextMiddleware
from app.observability.telemetry import Telemetry, init_telemetry


logger = structlog.get_logger("app")


async def _store_failure(request: Request, exc: StoreError) -> PlainTextResponse:
    logger.error("request.store_failed", operation=exc.operation, error=exc.message)
    return PlainTextResponse(f"Unable to {exc.operation} record", status_code=500)


def create_app(
    settings: Settings | None = None,
    store: UserStore | None = None,
    telemetry: Telemetry | None = None,
) -> FastAPI:
    """Build the service around an explicit store and telemetry recorder.

    Missing collaborators are initialized from ``settings``; either failing is
    fatal and propagates to the caller.
    """
    settings = settings or get_settings()
    if store is None:
        store = init_store(settings)
    if telemetry is None:
        telemetry = init_telemetry(settings.telemetry_app_name, settings.telemetry_license_key)

    app = FastAPI(title="User Records", version="0.1.0")
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(StoreError, _store_failure)
    app.include_router(build_router(store, telemetry))
    app.state.store = store
    app.state.telemetry = telemetry

    @app.get("/health")
    def health() -> JSONResponse:
        if not store.ping():
            return JSONResponse({"status": "unavailable"}, status_code=503)
        return JSONResponse({"status": "ok"})

    return app
