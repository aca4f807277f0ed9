"""
MODULE_DESCRIPTION: Research Endpoint - Streaming Scope Generation

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

POST /api/research runs the five-stage research pipeline for one free-text
request and streams its progress as Server-Sent Events.

Request Body:
    {"input": "Office 365 migration for 100 mailboxes",
     "models": {"parsing": "...", "content": "..."},     # optional
     "prompts": {"research": "..."}}                      # optional

Response:
    Content-Type: text/event-stream
    data: {"type": "step", "stepId": "parse", "status": "active", "progress": 10}
    data: {"type": "progress", "message": "...", "progress": 48}
    ...
    data: {"type": "complete", "content": {...GeneratedContent...}, "progress": 100}

    A run that fails outright ends with
    data: {"type": "error", "error": "<message>"}

Validation:
    Missing, blank or too short/long input is rejected with 400 before the
    stream starts ("Input is required" for missing input).

Logging:
    Each run is recorded in the request logger as a "research" request:
    started when the stream opens, then completed (with the technology) or
    failed (with the error message) when it closes.
"""

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from api.dependencies import get_llm_client, get_request_logger
from api.helpers import sse_event
from api.models.requests import ResearchRequest
from api.utils.debug import print__research_debug
from api.utils.request_logger import RequestLogger, get_session_id
from research_agent import ResearchPipeline, validate_research_input
from research_agent.utils.llm_client import LLMClient

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/api/research")
async def research(
    request: Request,
    body: ResearchRequest,
    llm: LLMClient = Depends(get_llm_client),
    logger: RequestLogger = Depends(get_request_logger),
):
    # STEP 1: Validate before opening the stream so errors are plain 400s
    user_input = validate_research_input(body.input)

    # STEP 2: Log and build the pipeline
    entry = logger.start(user_input, "research", session_id=get_session_id(request))
    pipeline = ResearchPipeline(llm, models=body.models, prompts=body.prompts)
    print__research_debug(f"🚀 /api/research {entry.id}: '{user_input[:80]}'")

    # STEP 3: Stream pipeline events
    async def event_stream():
        technology = None
        service_count = 0
        error = None
        try:
            async for event in pipeline.run(user_input):
                if event.get("type") == "complete":
                    technology = event["content"].get("technology")
                    service_count = len(event["content"].get("services", []))
                elif event.get("type") == "error":
                    error = event.get("error")
                yield sse_event(event)
        finally:
            if error is not None:
                logger.fail(entry, error)
            elif technology is not None:
                logger.complete(entry, technology=technology, metadata={"serviceCount": service_count})
            else:
                logger.fail(entry, "Stream closed before completion")

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)
