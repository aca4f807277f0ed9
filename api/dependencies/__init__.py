"""
Dependencies package for the API server.

FastAPI dependency providers for the request logger, rate limiter, LLM
client, ScopeStack client factory and OAuth service.
"""

from .services import (
    get_llm_client,
    get_oauth_service,
    get_rate_limiter,
    get_request_logger,
    get_scopestack_client_factory,
)

__all__ = [
    "get_llm_client",
    "get_oauth_service",
    "get_rate_limiter",
    "get_request_logger",
    "get_scopestack_client_factory",
]
