"""ScopeStack Research Assistant API - FastAPI Application Entry Point

Main application module. It wires together configuration, middleware,
exception handlers and routers for the research and ScopeStack push service.

Architecture Overview:
---------------------
1. Application Lifecycle:
   - Startup: creates the process-scoped RequestLogger and
     FixedWindowRateLimiter and stores them on ``app.state``
   - Shutdown: logs uptime and final memory usage

2. Middleware Stack (Order Matters):
   - CORS: cross-origin access for the browser frontend
   - Brotli: response compression (SSE endpoint excluded)
   - Throttling: fixed-window per-IP rate limiting

3. Route Structure:
   - Root & Health: /, /health
   - Research: POST /api/research (Server-Sent Events)
   - Push: POST /api/push-to-scopestack
   - OAuth: /api/oauth/scopestack/*, /api/refresh-scopestack-token
   - Analytics: GET /api/analytics
   - Diagnostics: /api/test-env, /api/test-scopestack, /api/test-openrouter

Error Handling:
--------------
Handlers live in ``api.exceptions.handlers``:
    RequestValidationError -> 422, HTTPException -> its status,
    AppError -> status from its ErrorCode, ScopeStackAPIError -> 401/400/502,
    ValueError -> 400, anything else -> 500 (traceback with DEBUG_TRACEBACK=1)

Usage Example:
-------------
uvicorn api.main:app --host 0.0.0.0 --port 8000 --reload

curl -N -X POST "http://localhost:8000/api/research" \\
     -H "Content-Type: application/json" \\
     -d '{"input": "Office 365 migration for 100 mailboxes"}'
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from contextlib import asynccontextmanager
from datetime import datetime

import psutil
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config.settings import (
    APP_NAME,
    APP_VERSION,
    IS_PRODUCTION,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW,
    REQUEST_LOG_FILE,
    REQUEST_LOG_MAX_ENTRIES,
)
from api.exceptions.errors import AppError
from api.exceptions.handlers import (
    app_error_handler,
    general_exception_handler,
    http_exception_handler,
    scopestack_error_handler,
    validation_exception_handler,
    value_error_handler,
)
from api.middleware.cors import setup_brotli_middleware, setup_cors_middleware
from api.middleware.rate_limiting import setup_throttling_middleware
from api.routes import (
    analytics_router,
    debug_router,
    health_router,
    oauth_router,
    push_router,
    research_router,
    root_router,
)
from api.utils.debug import print__startup_debug
from api.utils.rate_limiting import FixedWindowRateLimiter
from api.utils.request_logger import RequestLogger
from scopestack.errors import ScopeStackAPIError


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create process-scoped services on startup; report on shutdown."""
    started_at = datetime.now()
    print__startup_debug(f"🚀 {APP_NAME} starting up (production={IS_PRODUCTION})...")

    app.state.request_logger = RequestLogger(
        log_file=REQUEST_LOG_FILE,
        production=IS_PRODUCTION,
        max_entries=REQUEST_LOG_MAX_ENTRIES,
    )
    app.state.rate_limiter = FixedWindowRateLimiter(RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW)
    baseline = _rss_mb()
    print__startup_debug(f"✅ Ready to serve requests ({baseline:.1f}MB RSS)")

    yield

    print__startup_debug(
        f"🛑 Shutting down after {datetime.now() - started_at}, "
        f"memory {baseline:.1f}MB -> {_rss_mb():.1f}MB"
    )


app = FastAPI(
    title=f"{APP_NAME} API",
    description="""Generates professional-services scopes from a free-text technology
description with LLM research, and pushes them into ScopeStack.

- 🔍 Streaming five-stage research pipeline (Server-Sent Events)
- 📋 Services, subservices, discovery questions and calculations
- 🚀 One-call push to ScopeStack projects, surveys and documents
- 🔐 ScopeStack OAuth sign-in and token refresh
- 📊 Request logging and analytics
    """,
    version=APP_VERSION,
    lifespan=lifespan,
    responses={
        400: {
            "description": "Bad Request - Invalid input or missing configuration",
            "content": {"application/json": {"example": {"detail": "Input is required"}}},
        },
        429: {
            "description": "Rate Limit Exceeded - Too many requests",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Rate limit exceeded. Please wait 30s before retrying.",
                        "retry_after": 30,
                    }
                }
            },
        },
        500: {
            "description": "Internal Server Error",
            "content": {"application/json": {"example": {"detail": "Internal server error"}}},
        },
    },
)

# Middleware
setup_cors_middleware(app)
setup_brotli_middleware(app)
setup_throttling_middleware(app)

# Exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(ScopeStackAPIError, scopestack_error_handler)
app.add_exception_handler(ValueError, value_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

# Routers
print__startup_debug("📋 Registering route routers...")
app.include_router(root_router, tags=["Root"])
app.include_router(health_router, tags=["Health & Monitoring"])
app.include_router(research_router, tags=["Research"])
app.include_router(push_router, tags=["ScopeStack Push"])
app.include_router(oauth_router, tags=["OAuth"])
app.include_router(analytics_router, tags=["Analytics"])
app.include_router(debug_router, tags=["Diagnostics"])
print__startup_debug("✅ All route routers registered successfully")
