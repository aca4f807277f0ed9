"""
Configuration package for the API server.

This package contains settings and constants for the ScopeStack
Research Assistant application.
"""

# Import key configuration items for easier access
from .settings import (
    APP_VERSION,
    BASE_DIR,
    IS_PRODUCTION,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW,
    REQUEST_LOG_FILE,
    SCOPESTACK_RETRY_POLICIES,
    STAGE_TIMEOUTS,
    start_time,
)

__all__ = [
    "APP_VERSION",
    "BASE_DIR",
    "IS_PRODUCTION",
    "RATE_LIMIT_REQUESTS",
    "RATE_LIMIT_WINDOW",
    "REQUEST_LOG_FILE",
    "SCOPESTACK_RETRY_POLICIES",
    "STAGE_TIMEOUTS",
    "start_time",
]
