"""
MODULE_DESCRIPTION: Exception Handlers - Centralized Error Responses

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

FastAPI exception handlers registered in ``api.main``. Every error leaving the
API is a JSON body with at least a ``detail`` key.

    RequestValidationError  -> 422 {"detail": "Validation error", "errors": [...]}
    StarletteHTTPException  -> exc.status_code {"detail": exc.detail}
    AppError                -> status mapped from its ErrorCode
                               {"detail", "code", "error"}
    ScopeStackAPIError      -> 401 / 400 / 502 by classification
    ValueError              -> 400 {"detail": str(exc)}
    Exception               -> 500, with traceback when DEBUG_TRACEBACK=1
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

import traceback

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.exceptions.errors import AppError, get_user_friendly_message
from api.helpers import traceback_json_response
from api.utils.debug import print__debug
from scopestack.errors import ScopeStackAPIError, classify_scopestack_error


async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    """Pydantic request validation failures -> 422 with field-level errors."""
    print__debug(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 400:
        client_ip = request.client.host if request.client else "unknown"
        print__debug(
            f"🚨 HTTP {exc.status_code} on {request.method} {request.url.path} "
            f"from {client_ip}: {exc.detail}"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def app_error_handler(request: Request, exc: AppError):
    """Domain errors carry their own status via the error code."""
    print__debug(f"🚨 {exc.code.value} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "code": exc.code.value,
            "message": get_user_friendly_message(exc),
            "error": exc.to_dict(),
        },
    )


async def scopestack_error_handler(request: Request, exc: ScopeStackAPIError):
    category, status_code = classify_scopestack_error(exc)
    print__debug(f"🚨 ScopeStack {category} error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": str(exc),
            "category": category,
            "scopestack": jsonable_encoder(exc.to_dict()),
        },
    )


async def value_error_handler(_request: Request, exc: ValueError):
    """ValueError from business logic -> 400."""
    print__debug(f"ValueError: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def general_exception_handler(request: Request, exc: Exception):
    print__debug(f"🚨 Unexpected {type(exc).__name__} on {request.url.path}: {exc}")
    print__debug(traceback.format_exc())

    response = traceback_json_response(exc, 500)
    if response is not None:
        return response
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
