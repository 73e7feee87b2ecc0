from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.callable import CallableError
from messaging.sms import build_sms_gateway
from ops.structured_logger import setup_logging
from utils.request_context import clear_request_id, request_id_from_headers, set_request_id

from app.routers.health import router as health_router
from app.routers.sos import router as sos_router

setup_logging()

log = logging.getLogger("sos.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Built once per process; a missing credential fails startup, not a request.
    app.state.sms_gateway = build_sms_gateway()
    yield


app = FastAPI(title="SOS Relay", version="1.0.0", lifespan=lifespan)


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request_id_from_headers(request.headers)
    request.state.request_id = rid
    set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        clear_request_id()
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(CallableError)
async def callable_error_handler(request: Request, exc: CallableError):
    log.warning(
        "callable_error",
        extra={
            "extra": {
                "event": "callable_error",
                "status": exc.status,
                "path": request.url.path,
                "request_id": _get_request_id(request),
            }
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_body())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    rid = _get_request_id(request)
    log.warning(
        "http_exception",
        extra={
            "extra": {
                "event": "http_exception",
                "status_code": exc.status_code,
                "detail": exc.detail,
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    # Routing errors (404/405) keep their HTTP status but speak the callable error shape.
    err = CallableError.from_http_status(exc.status_code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=err.to_body(), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = _get_request_id(request)
    log.warning(
        "validation_error",
        extra={
            "extra": {
                "event": "validation_error",
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    # Callable clients only understand {"error": {...}}; a body that is not {"data": ...} is a bad request.
    err = CallableError("INVALID_ARGUMENT", "Bad Request")
    return JSONResponse(status_code=err.http_status, content=err.to_body())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _get_request_id(request)
    log.error(
        "internal_unhandled_exception",
        extra={
            "extra": {
                "event": "internal_unhandled_exception",
                "error_type": type(exc).__name__,
                "error": str(exc),
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
        exc_info=True,
    )
    err = CallableError("INTERNAL", "INTERNAL")
    # Runs outside the request-id middleware, so the header is set here.
    return JSONResponse(status_code=err.http_status, content=err.to_body(), headers={"X-Request-Id": rid})


# Callable functions are invoked from browsers (Firebase Web SDK).
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["health"])
app.include_router(sos_router, tags=["sos"])
