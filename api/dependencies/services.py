"""FastAPI dependency providers for process-scoped services.

The request logger and rate limiter are created in the app lifespan and read
from ``app.state``. The LLM client, ScopeStack client factory and OAuth
service are built from settings; tests replace any of them through
``app.dependency_overrides``.
"""

from typing import AsyncIterator, Callable, Optional

from fastapi import Request

from api.config.settings import (
    SCOPESTACK_API_URL,
    SCOPESTACK_AUTHORIZE_URL,
    SCOPESTACK_CLIENT_ID,
    SCOPESTACK_CLIENT_SECRET,
    SCOPESTACK_HTTP_TIMEOUT,
    SCOPESTACK_POLL_INTERVAL,
    SCOPESTACK_REDIRECT_URI,
    SCOPESTACK_TOKEN_URL,
)
from api.utils.rate_limiting import FixedWindowRateLimiter
from api.utils.request_logger import RequestLogger
from research_agent.utils.llm_client import LLMClient
from scopestack.client import ScopeStackClient
from scopestack.oauth import ScopeStackOAuthService

ScopeStackClientFactory = Callable[..., ScopeStackClient]


def get_request_logger(request: Request) -> RequestLogger:
    return request.app.state.request_logger


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_llm_client() -> LLMClient:
    return LLMClient()


def _build_scopestack_client(
    token: str,
    base_url: Optional[str] = None,
    account_slug: Optional[str] = None,
) -> ScopeStackClient:
    return ScopeStackClient(
        token,
        base_url=base_url or SCOPESTACK_API_URL,
        account_slug=account_slug,
        poll_interval=SCOPESTACK_POLL_INTERVAL,
        timeout=SCOPESTACK_HTTP_TIMEOUT,
    )


def get_scopestack_client_factory() -> ScopeStackClientFactory:
    """Factory ``(token, base_url=None, account_slug=None) -> ScopeStackClient``."""
    return _build_scopestack_client


async def get_oauth_service() -> AsyncIterator[ScopeStackOAuthService]:
    service = ScopeStackOAuthService(
        client_id=SCOPESTACK_CLIENT_ID,
        client_secret=SCOPESTACK_CLIENT_SECRET,
        token_url=SCOPESTACK_TOKEN_URL,
        api_base_url=SCOPESTACK_API_URL,
        authorize_url=SCOPESTACK_AUTHORIZE_URL,
        redirect_uri=SCOPESTACK_REDIRECT_URI,
        timeout=SCOPESTACK_HTTP_TIMEOUT,
    )
    try:
        yield service
    finally:
        await service.aclose()
