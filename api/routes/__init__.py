"""
Routes package for the API server.

FastAPI route handlers for health, research streaming, the ScopeStack push,
OAuth, analytics and diagnostic endpoints.
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from .analytics import router as analytics_router
from .debug import router as debug_router
from .health import router as health_router
from .oauth import router as oauth_router
from .push import router as push_router
from .research import router as research_router
from .root import router as root_router

__all__ = [
    "analytics_router",
    "debug_router",
    "health_router",
    "oauth_router",
    "push_router",
    "research_router",
    "root_router",
]
