"""
Utility functions package for the API server.

This package contains debug utilities, the request logger and the
fixed-window rate limiter.
"""

# Debug utilities
from .debug import (
    print__analytics_debug,
    print__debug,
    print__llm_debug,
    print__oauth_debug,
    print__push_debug,
    print__rate_limit_debug,
    print__research_debug,
    print__scopestack_debug,
    print__startup_debug,
)

__all__ = [
    "print__analytics_debug",
    "print__debug",
    "print__llm_debug",
    "print__oauth_debug",
    "print__push_debug",
    "print__rate_limit_debug",
    "print__research_debug",
    "print__scopestack_debug",
    "print__startup_debug",
]
