"""FastAPI application entrypoint for the dnsLookup service."""
from __future__ import annotations

import time
import uuid
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from dnsLookup.api.models import APIStatus, lookup_failed, validation_error
from dnsLookup.api.routes import lookup
from dnsLookup.config import Settings
from dnsLookup.exceptions import ConfigurationError, QueryValidationError, ResolutionError
from dnsLookup.logging_config import reset_request_id, set_request_id, setup_logging
from dnsLookup.lookup.orchestrator import EngineFactory

logger = setup_logging("api")

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def log_requests(request: Request, call_next: Callable) -> Response:
    """Log every request as '<method> <path> <status>'."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    token = set_request_id(request_id)
    start_time = time.time()
    method, path = request.method, request.url.path

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            f"{method} {path} 500",
            exc_info=True,
            extra={
                "method": method,
                "path": path,
                "status_code": 500,
                "duration": round((time.time() - start_time) * 1000, 2),
                "error_code": type(exc).__name__,
                "outcome": "exception",
            }
        )
        raise
    finally:
        reset_request_id(token)

    logger.info(
        f"{method} {path} {response.status_code}",
        extra={
            "request_id": request_id,
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration": round((time.time() - start_time) * 1000, 2),
            "outcome": "success" if response.status_code < 400 else "error",
        }
    )
    response.headers["X-Request-ID"] = request_id
    return response


async def handle_validation_error(request: Request, exc: QueryValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=validation_error())


async def handle_resolution_error(request: Request, exc: ResolutionError) -> JSONResponse:
    logger.error(
        f"DNS lookup error: {exc}",
        extra={"error_code": exc.code, "record_type": exc.record_type, "outcome": "error"}
    )
    return JSONResponse(status_code=500, content=lookup_failed(exc.message))


async def handle_configuration_error(request: Request, exc: ConfigurationError) -> PlainTextResponse:
    logger.error(str(exc), extra={"path": request.url.path, "outcome": "error"})
    return PlainTextResponse(str(exc), status_code=500)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content=lookup_failed(None))


def _static_dir(settings: Settings) -> Optional[str]:
    if not settings.static_dir:
        return None
    if not Path(settings.static_dir).is_dir():
        logger.warning(
            f"Static asset directory {settings.static_dir} does not exist",
            extra={"state": "assets_missing"}
        )
        return None
    return settings.static_dir


def create_app(
    settings: Optional[Settings] = None,
    engine_factory: Optional[EngineFactory] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="dnsLookup", version="0.1.0")
    app.state.settings = settings
    app.state.engine_factory = engine_factory

    app.middleware("http")(log_requests)
    app.add_exception_handler(QueryValidationError, handle_validation_error)
    app.add_exception_handler(ResolutionError, handle_resolution_error)
    app.add_exception_handler(ConfigurationError, handle_configuration_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(lookup.router)

    @app.get("/api/health")
    async def health() -> dict:
        return APIStatus().model_dump()

    static_dir = _static_dir(settings)
    if static_dir:
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
        async def assets_not_configured(path: str) -> Response:
            raise ConfigurationError()

    @app.on_event("startup")
    async def startup_event() -> None:
        logger.info(
            "Starting dnsLookup API",
            extra={"state": "startup", "user_input": {"static_dir": static_dir}}
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = Settings.from_env()
    uvicorn.run(
        "dnsLookup.api.server:app",
        host=_settings.api.host,
        port=_settings.api.port,
        reload=_settings.api.reload,
    )
