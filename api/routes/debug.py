# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

import os
from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.config.settings import APP_ENV, PARSE_MODEL, SCOPESTACK_API_URL
from api.dependencies import get_llm_client, get_request_logger, get_scopestack_client_factory
from api.exceptions.errors import AppError, ConfigurationError, ErrorCode
from api.models.requests import OpenRouterTestRequest, ScopeStackTestRequest
from api.utils.debug import print__debug
from api.utils.request_logger import RequestLogger, get_session_id
from research_agent.utils.llm_client import LLMClient, LLMConfigurationError, LLMError, LLMTimeoutError
from scopestack.errors import ScopeStackAPIError, classify_scopestack_error

router = APIRouter()

CHECKED_ENV_VARS = [
    "OPENROUTER_API_KEY",
    "SCOPESTACK_API_TOKEN",
    "SCOPESTACK_API_URL",
    "SCOPESTACK_ACCOUNT_SLUG",
    "SCOPESTACK_CLIENT_ID",
    "SCOPESTACK_CLIENT_SECRET",
]


@router.get("/api/test-env")
async def test_env():
    """Which configuration variables are set, without their values."""
    environment = {name: bool(os.environ.get(name)) for name in CHECKED_ENV_VARS}
    print__debug(f"🔍 Environment check: {environment}")
    return {
        "message": "Environment variable check",
        "environment": environment,
        "hasRequiredVars": environment["OPENROUTER_API_KEY"] and environment["SCOPESTACK_API_TOKEN"],
        "nodeEnv": APP_ENV,
        "timestamp": datetime.now().isoformat(),
    }


@router.post("/api/test-scopestack")
async def test_scopestack(
    request: Request,
    body: ScopeStackTestRequest,
    client_factory=Depends(get_scopestack_client_factory),
    logger: RequestLogger = Depends(get_request_logger),
):
    """Call /v1/me with the given (or configured) credentials."""
    token = body.token or os.environ.get("SCOPESTACK_API_TOKEN", "")
    if not token:
        raise ConfigurationError("ScopeStack token is required")

    entry = logger.start("ScopeStack connection test", "test", session_id=get_session_id(request))
    try:
        async with client_factory(token, base_url=body.url or SCOPESTACK_API_URL) as client:
            user = await client.get_current_user()
    except ScopeStackAPIError as e:
        logger.fail(entry, e)
        category, status_code = classify_scopestack_error(e)
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "message": "ScopeStack connection failed", "details": {"category": category, "error": str(e)}},
        )

    logger.complete(entry, metadata={"accountSlug": user.account_slug})
    return {
        "success": True,
        "message": "ScopeStack connection successful",
        "details": {"accountSlug": user.account_slug, "accountId": user.account_id, "userName": user.user_name},
    }


@router.post("/api/test-openrouter")
async def test_openrouter(
    request: Request,
    body: OpenRouterTestRequest,
    llm: LLMClient = Depends(get_llm_client),
    logger: RequestLogger = Depends(get_request_logger),
):
    """One tiny completion against the chosen model."""
    model = body.model or PARSE_MODEL
    entry = logger.start(f"OpenRouter test ({model})", "test", session_id=get_session_id(request))
    try:
        text = await llm.complete(
            "Reply with the single word OK.",
            model,
            timeout=30,
            max_tokens=10,
            step="test-openrouter",
        )
    except LLMConfigurationError as e:
        logger.fail(entry, e)
        raise AppError(ErrorCode.API_KEY_MISSING, "OpenRouter API key not configured") from e
    except LLMTimeoutError as e:
        logger.fail(entry, e)
        raise AppError(ErrorCode.API_TIMEOUT, str(e), is_retryable=True) from e
    except LLMError as e:
        logger.fail(entry, e)
        return JSONResponse(
            status_code=502,
            content={"success": False, "message": f"OpenRouter connection failed: {e}", "details": {"model": model}},
        )

    logger.complete(entry, metadata={"model": model})
    return {"success": True, "message": "OpenRouter connection successful", "details": {"model": model, "text": text.strip()}}
