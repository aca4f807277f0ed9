"""
MODULE_DESCRIPTION: Rate Limiting Middleware - Fixed Window Request Throttling

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Rejects requests from a client IP once it exceeds RATE_LIMIT_REQUESTS within
a RATE_LIMIT_WINDOW-second fixed window. The counter lives in the
``FixedWindowRateLimiter`` stored on ``app.state.rate_limiter``; when no
limiter is installed, requests pass straight through.

Exempted Endpoints:
    - /health, /docs, /openapi.json, /redoc

Response on Rejection:
    Status: 429 Too Many Requests
    Headers: Retry-After: <seconds until the window resets>
    Body: {
        "detail": "Rate limit exceeded. Please wait Xs before retrying.",
        "retry_after": X,
        "window_usage": "count/limit"
    }

Registration in main.py:
    setup_throttling_middleware(app)
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.config.settings import RATE_LIMIT_EXEMPT_PATHS
from api.utils.debug import print__rate_limit_debug, print__startup_debug


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def throttling_middleware(request: Request, call_next):
    """Count the request against its client's window; 429 when over the limit."""
    if request.url.path in RATE_LIMIT_EXEMPT_PATHS or request.method == "OPTIONS":
        return await call_next(request)

    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return await call_next(request)

    client_ip = _client_ip(request)
    decision = limiter.check(client_ip)
    if not decision.allowed:
        print__rate_limit_debug(
            f"❌ Rejecting {request.method} {request.url.path} from {client_ip}"
        )
        return JSONResponse(
            status_code=429,
            content={
                "detail": f"Rate limit exceeded. Please wait {decision.retry_after}s before retrying.",
                "retry_after": decision.retry_after,
                "window_usage": f"{decision.count}/{decision.limit}",
            },
            headers={"Retry-After": str(decision.retry_after)},
        )

    response = await call_next(request)
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
    return response


def setup_throttling_middleware(app: FastAPI):
    """Register the fixed-window throttling middleware."""
    print__startup_debug("📋 Registering rate limiting middleware...")
    app.middleware("http")(throttling_middleware)
    print__startup_debug("✅ Rate limiting middleware registered successfully")
