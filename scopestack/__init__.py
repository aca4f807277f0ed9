"""Async client, OAuth service and push workflow for the ScopeStack API.

Only the dependency-free modules are re-exported here; ``api.config.settings``
imports ``scopestack.retry`` at load time.
"""

from .errors import ScopeStackAPIError, classify_scopestack_error
from .retry import NonRetryableError, RetryableError, RetryOptions, with_retry

__all__ = [
    "NonRetryableError",
    "RetryOptions",
    "RetryableError",
    "ScopeStackAPIError",
    "classify_scopestack_error",
    "with_retry",
]
