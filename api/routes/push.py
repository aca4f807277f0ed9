"""
MODULE_DESCRIPTION: Push Endpoint - Generated Content to ScopeStack

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

POST /api/push-to-scopestack creates a client, project, services, survey
and document in ScopeStack from a GeneratedContent document.

Authentication:
    - ``Authorization: Bearer <token>`` (an OAuth session access token) wins
    - otherwise SCOPESTACK_API_TOKEN from the environment
    - neither -> 400 before any ScopeStack call

Validation (before any ScopeStack call):
    - content missing or not a valid GeneratedContent -> 400
    - content with no services -> 400

Error Mapping:
    ScopeStackAPIError is classified by ``classify_scopestack_error``:
    authentication -> 401, validation -> 400, generic -> 502.
    Anything else -> 500.

Response:
    PushResult {success, project, client, survey, document,
                projectServices, metadata, warnings}
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError

from api.config.settings import (
    SCOPESTACK_ACCOUNT_SLUG,
    SCOPESTACK_API_TOKEN,
    SCOPESTACK_APP_URL,
    SCOPESTACK_RETRY_POLICIES,
)
from api.dependencies import get_request_logger, get_scopestack_client_factory
from api.exceptions.errors import ConfigurationError, ContentError
from api.models.requests import PushToScopeStackRequest
from api.utils.debug import print__push_debug
from api.utils.request_logger import RequestLogger, get_session_id
from research_agent.utils.schemas import GeneratedContent
from scopestack.push import PushRequest, push_content_to_scopestack

router = APIRouter()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
        return token or None
    return None


def _validate_content(raw) -> GeneratedContent:
    if not raw:
        raise ContentError("Content is required", ["content is missing"])
    try:
        content = GeneratedContent.model_validate(raw)
    except ValidationError as e:
        raise ContentError(
            "Invalid content format",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e
    if len(content.services) < 1:
        raise ContentError(
            "Content must include at least one service", ["services: at least 1 required"]
        )
    return content


@router.post("/api/push-to-scopestack")
async def push_to_scopestack(
    request: Request,
    body: PushToScopeStackRequest,
    authorization: Optional[str] = Header(default=None),
    logger: RequestLogger = Depends(get_request_logger),
    client_factory=Depends(get_scopestack_client_factory),
):
    # STEP 1: Validate content
    content = _validate_content(body.content)

    # STEP 2: Resolve credentials
    session_token = _bearer_token(authorization)
    token = session_token or SCOPESTACK_API_TOKEN
    if not token:
        raise ConfigurationError("ScopeStack API token not configured")
    account_slug = None if session_token else (SCOPESTACK_ACCOUNT_SLUG or None)

    # STEP 3: Push
    entry = logger.start(
        f"Push {content.technology} to ScopeStack",
        "push-to-scopestack",
        session_id=get_session_id(request),
        metadata={"serviceCount": len(content.services), "oauth": bool(session_token)},
    )
    push_request = PushRequest(
        content=content,
        client_name=body.client_name,
        project_name=body.project_name,
        questionnaire_tags=body.questionnaire_tags,
        skip_survey=body.skip_survey,
        skip_document=body.skip_document,
        use_custom_services=body.use_custom_services,
    )
    print__push_debug(f"🚀 /api/push-to-scopestack {entry.id}: {content.technology}")
    try:
        async with client_factory(token, account_slug=account_slug) as client:
            result = await push_content_to_scopestack(
                client, push_request, SCOPESTACK_RETRY_POLICIES, SCOPESTACK_APP_URL
            )
    except Exception as e:
        print__push_debug(f"❌ Push failed: {e}")
        logger.fail(entry, e)
        raise

    logger.complete(
        entry,
        technology=content.technology,
        metadata={
            "projectId": (result.project or {}).get("id"),
            "warningCount": len(result.warnings),
        },
    )
    return result.model_dump(by_alias=True, exclude_none=True)
