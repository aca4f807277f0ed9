"""
Data models package for the API server.

Pydantic request and response models for the research, push, OAuth,
analytics and diagnostic endpoints.
"""

# Import request models
from .requests import (
    OAuthAuthorizeRequest,
    OAuthLoginRequest,
    PushToScopeStackRequest,
    RefreshTokenRequest,
    ResearchRequest,
    OpenRouterTestRequest,
    ScopeStackTestRequest,
)

# Import response models
from .responses import (
    AnalyticsLogsResponse,
    AnalyticsSummaryResponse,
    AuthorizeUrlResponse,
    ConnectionTestResponse,
    EnvCheckResponse,
    HealthResponse,
)

__all__ = [
    # Request models
    "OAuthAuthorizeRequest",
    "OAuthLoginRequest",
    "PushToScopeStackRequest",
    "RefreshTokenRequest",
    "ResearchRequest",
    "OpenRouterTestRequest",
    "ScopeStackTestRequest",
    # Response models
    "AnalyticsLogsResponse",
    "AnalyticsSummaryResponse",
    "AuthorizeUrlResponse",
    "ConnectionTestResponse",
    "EnvCheckResponse",
    "HealthResponse",
]
