"""
HTTP entry point: builds the app and serves it on port 9413.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import ConfigError, Settings, load_settings
from core.log import setup_logging
from invoices import router as invoices_router
from invoices import schemas

logger = logging.getLogger(__name__)

# Verb advertised in Access-Control-Allow-Methods per route; anything else is GET.
CORS_METHODS = {
    "/get": "GET",
    "/add": "POST",
    "/upd": "PUT",
    "/del": "DELETE",
}


def _health() -> dict:
    return {"status": "ready", "msg": "Hello"}


def create_app(settings: Settings) -> FastAPI:
    app = FastAPI(title="invoice-gateway")
    app.state.settings = settings

    @app.middleware("http")
    async def cors_headers(request: Request, call_next):  # type: ignore[no-untyped-def]
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = CORS_METHODS.get(request.url.path, "GET")
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"msg": str(exc.detail)})

    app.include_router(invoices_router.router, tags=["invoices"])

    @app.get("/", response_model=schemas.HealthResponse, tags=["health"])
    def root() -> dict:
        return _health()

    # Paths no other route claims are answered by the health handler.
    @app.api_route(
        "/{path:path}",
        methods=invoices_router.ANY_METHOD,
        response_model=schemas.HealthResponse,
        include_in_schema=False,
    )
    def fallback(path: str) -> dict:
        return _health()

    return app


def run() -> None:
    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logging()
        logger.critical("startup_failed error=%s", exc)
        raise SystemExit(1) from exc

    setup_logging(settings.log_level)
    logger.info("starting table=%s port=%s", settings.db_table, settings.port)
    # uvicorn exits the process itself when the port cannot be bound.
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
