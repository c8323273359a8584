import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_api.core.settings import Settings

log = logging.getLogger("uvicorn.error")

VALIDATION_FAILED = "Validation failed"


def error_body(message: str, settings: Settings, detail: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if detail and settings.expose_error_detail:
        body["error"] = detail
    return body


def validation_failed(errors: List[str]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": VALIDATION_FAILED, "errors": errors},
    )


def available_endpoints(app: FastAPI) -> List[str]:
    endpoints: List[str] = []
    for route in app.routes:
        if not isinstance(route, APIRoute) or not route.include_in_schema:
            continue
        for method in sorted(route.methods - {"HEAD"}):
            endpoints.append(f"{method} {route.path}")
    return endpoints


def _format_request_error(err: Dict[str, Any]) -> str:
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    msg = err.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [_format_request_error(e) for e in exc.errors()]
    log.info(f"[contact] rejected malformed request body: {errors}")
    return validation_failed(errors)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # unknown paths and known paths with the wrong method look the same to callers
    if exc.status_code not in (404, 405):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=404,
        content={
            "success": False,
            "message": "Endpoint not found",
            "availableEndpoints": available_endpoints(request.app),
        },
    )


def internal_error_response(request: Request, exc: Exception) -> JSONResponse:
    log.error(f"[server] unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    settings: Settings = request.app.state.settings
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", settings, str(exc)),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    return internal_error_response(request, exc)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
