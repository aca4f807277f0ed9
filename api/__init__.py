"""
API package for the ScopeStack Research Assistant.

This package contains the FastAPI application: configuration, routes,
middleware, exception handlers, request models and the request logger.
"""

__version__ = "1.0.0"

# Don't import anything during package initialization; settings import the
# scopestack package, which in turn imports api.utils.
__all__ = []
