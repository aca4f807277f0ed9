"""
MODULE_DESCRIPTION: API Configuration Settings - Application Constants

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

This module serves as the central configuration hub for the ScopeStack
Research Assistant API. It defines the constants and configuration parameters
that are read from the environment once at import time and accessed
throughout the application.

The module manages:
    - Application startup tracking (uptime)
    - LLM provider settings (OpenRouter endpoint, key, default models)
    - Per-stage timeouts for the research pipeline
    - ScopeStack API and OAuth settings
    - Per-operation retry policies for ScopeStack calls
    - Request logging destination
    - Fixed-window rate limiting parameters

Design Principle:
    Settings are plain module constants. Mutable process state (the request
    logger, the rate-limit counters) is NOT kept here; it is created in the
    application lifespan and attached to ``app.state``.

===================================================================================
ENVIRONMENT VARIABLES
===================================================================================

LLM:
    OPENROUTER_API_KEY       Bearer key for the chat-completion endpoint
    OPENROUTER_BASE_URL      Default: https://openrouter.ai/api/v1
    RESEARCH_MODEL           Default: perplexity/sonar
    CONTENT_MODEL            Default: anthropic/claude-3.5-sonnet
    BACKUP_CONTENT_MODEL     Default: openai/gpt-4
    FORMAT_MODEL             Default: openai/gpt-4o
    FALLBACK_LLM_ATTEMPTS    Stricter-prompt attempts before the static catalog

ScopeStack:
    SCOPESTACK_API_TOKEN     Legacy long-lived bearer token
    SCOPESTACK_API_URL       Default: https://api.scopestack.io
    SCOPESTACK_ACCOUNT_SLUG  Optional, resolved via /v1/me when missing
    SCOPESTACK_CLIENT_ID     OAuth client id
    SCOPESTACK_CLIENT_SECRET OAuth client secret
    SCOPESTACK_REDIRECT_URI  OAuth authorization-code redirect URI

Runtime:
    APP_ENV / NODE_ENV       "production" switches request logs to console
    REQUEST_LOG_FILE         Default: <project root>/logs/requests.jsonl
    RATE_LIMIT_REQUESTS      Requests per window per client (default 60)
    RATE_LIMIT_WINDOW        Window length in seconds (default 60)
"""

import os
import time

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

# Constants
try:
    from pathlib import Path

    BASE_DIR = Path(__file__).resolve().parents[2]
except NameError:
    BASE_DIR = Path(os.getcwd()).parents[0]

from scopestack.retry import RetryOptions

# ==============================================================================
# CONFIGURATION AND CONSTANTS
# ==============================================================================

# =======================================================================
# APPLICATION LIFECYCLE TRACKING
# =======================================================================

# Application startup time for uptime tracking
start_time = time.time()

APP_NAME = "ScopeStack Research Assistant"
APP_VERSION = "1.0.0"

# Production switch, mirrors NODE_ENV of the web frontend
APP_ENV = os.environ.get("APP_ENV", os.environ.get("NODE_ENV", "development"))
IS_PRODUCTION = APP_ENV == "production"

# =======================================================================
# LLM PROVIDER
# =======================================================================

OPENROUTER_API_KEY = os.environ.get("OPENROUTER_API_KEY", "")
OPENROUTER_BASE_URL = os.environ.get(
    "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
)
OPENROUTER_REFERER = os.environ.get("OPENROUTER_REFERER", "http://localhost:3000")

PARSE_MODEL = os.environ.get("PARSE_MODEL", "anthropic/claude-3.5-sonnet")
RESEARCH_MODEL = os.environ.get("RESEARCH_MODEL", "perplexity/sonar")
ANALYSIS_MODEL = os.environ.get("ANALYSIS_MODEL", "anthropic/claude-3.5-sonnet")
CONTENT_MODEL = os.environ.get("CONTENT_MODEL", "anthropic/claude-3.5-sonnet")
BACKUP_CONTENT_MODEL = os.environ.get("BACKUP_CONTENT_MODEL", "openai/gpt-4")
FORMAT_MODEL = os.environ.get("FORMAT_MODEL", "openai/gpt-4o")

LLM_TEMPERATURE = float(os.environ.get("LLM_TEMPERATURE", "0.7"))
LLM_MAX_TOKENS = int(os.environ.get("LLM_MAX_TOKENS", "2048"))

# Per-stage timeouts in seconds, each LLM call races its own timer
STAGE_TIMEOUTS = {
    "parse": float(os.environ.get("PARSE_TIMEOUT", "60")),
    "research": float(os.environ.get("RESEARCH_TIMEOUT", "120")),
    "analyze": float(os.environ.get("ANALYZE_TIMEOUT", "90")),
    "generate": float(os.environ.get("GENERATE_TIMEOUT", "180")),
    "format": float(os.environ.get("FORMAT_TIMEOUT", "60")),
    "fallback": float(os.environ.get("FALLBACK_TIMEOUT", "120")),
}

# Stricter-prompt LLM attempts made by the fallback generator
FALLBACK_LLM_ATTEMPTS = int(os.environ.get("FALLBACK_LLM_ATTEMPTS", "2"))

# Research input bounds
RESEARCH_INPUT_MIN_LENGTH = 3
RESEARCH_INPUT_MAX_LENGTH = 1000

# Research sources kept per run
MAX_RESEARCH_SOURCES = 7

# =======================================================================
# SCOPESTACK API
# =======================================================================

SCOPESTACK_API_TOKEN = os.environ.get("SCOPESTACK_API_TOKEN", "")
SCOPESTACK_API_URL = os.environ.get("SCOPESTACK_API_URL", "https://api.scopestack.io")
SCOPESTACK_ACCOUNT_SLUG = os.environ.get("SCOPESTACK_ACCOUNT_SLUG", "")
SCOPESTACK_APP_URL = os.environ.get("SCOPESTACK_APP_URL", "https://app.scopestack.io")

# Seconds between survey/document polls
SCOPESTACK_POLL_INTERVAL = float(os.environ.get("SCOPESTACK_POLL_INTERVAL", "2"))
SCOPESTACK_HTTP_TIMEOUT = float(os.environ.get("SCOPESTACK_HTTP_TIMEOUT", "30"))

# =======================================================================
# SCOPESTACK OAUTH
# =======================================================================

SCOPESTACK_CLIENT_ID = os.environ.get("SCOPESTACK_CLIENT_ID", "")
SCOPESTACK_CLIENT_SECRET = os.environ.get("SCOPESTACK_CLIENT_SECRET", "")
SCOPESTACK_TOKEN_URL = os.environ.get(
    "SCOPESTACK_TOKEN_URL", "https://app.scopestack.io/oauth/token"
)
SCOPESTACK_AUTHORIZE_URL = os.environ.get(
    "SCOPESTACK_AUTHORIZE_URL", "https://app.scopestack.io/oauth/authorize"
)
SCOPESTACK_REDIRECT_URI = os.environ.get(
    "SCOPESTACK_REDIRECT_URI",
    "http://localhost:8000/api/oauth/scopestack/callback",
)

# =======================================================================
# SCOPESTACK RETRY POLICIES
# =======================================================================

# Keyed by push step
SCOPESTACK_RETRY_POLICIES = {
    "get_current_user": RetryOptions(max_attempts=3, delay_ms=1000, backoff=True),
    "search_clients": RetryOptions(max_attempts=2, delay_ms=500, backoff=False),
    "create_client": RetryOptions(max_attempts=2, delay_ms=1000, backoff=False),
    "create_project": RetryOptions(max_attempts=3, delay_ms=2000, backoff=True),
    "add_services": RetryOptions(max_attempts=1, delay_ms=0, backoff=False),
    "get_questionnaires": RetryOptions(max_attempts=2, delay_ms=1000, backoff=False),
    "create_survey": RetryOptions(max_attempts=2, delay_ms=1500, backoff=False),
    "calculate_survey": RetryOptions(max_attempts=2, delay_ms=2000, backoff=False),
    "apply_survey_recommendations": RetryOptions(max_attempts=2, delay_ms=1000, backoff=False),
    "create_document": RetryOptions(max_attempts=3, delay_ms=3000, backoff=True),
    "get_project_details": RetryOptions(max_attempts=2, delay_ms=1000, backoff=False),
}

# =======================================================================
# REQUEST LOGGING
# =======================================================================

REQUEST_LOG_FILE = os.environ.get("REQUEST_LOG_FILE", str(BASE_DIR / "logs" / "requests.jsonl"))

# Entries kept in memory for queries and analytics
REQUEST_LOG_MAX_ENTRIES = int(os.environ.get("REQUEST_LOG_MAX_ENTRIES", "1000"))

# =======================================================================
# RATE LIMITING
# =======================================================================

# Fixed window: RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW seconds per client IP
RATE_LIMIT_REQUESTS = int(os.environ.get("RATE_LIMIT_REQUESTS", "60"))
RATE_LIMIT_WINDOW = int(os.environ.get("RATE_LIMIT_WINDOW", "60"))

# Never throttled
RATE_LIMIT_EXEMPT_PATHS = ["/health", "/docs", "/openapi.json", "/redoc"]

# =======================================================================
# CORS
# =======================================================================

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
