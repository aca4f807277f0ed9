# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from fastapi import APIRouter

from api.config.settings import APP_NAME, APP_VERSION
from research_agent import get_capabilities

router = APIRouter()


@router.get("/")
async def root():
    """Welcome message with an endpoint index."""
    return {
        "message": f"Welcome to the {APP_NAME} API",
        "version": APP_VERSION,
        "documentation": {"swagger_ui": "/docs", "redoc": "/redoc", "openapi": "/openapi.json"},
        "endpoints": {
            "research": "POST /api/research (text/event-stream)",
            "push": "POST /api/push-to-scopestack",
            "analytics": "GET /api/analytics?action=analytics|logs",
            "oauth_authorize": "POST /api/oauth/scopestack/authorize",
            "oauth_callback": "GET /api/oauth/scopestack/callback",
            "oauth_login": "POST /api/oauth/scopestack/login",
            "refresh_token": "POST /api/refresh-scopestack-token",
            "diagnostics": ["GET /api/test-env", "POST /api/test-scopestack", "POST /api/test-openrouter"],
            "health": "GET /health",
        },
        "capabilities": get_capabilities(),
    }
