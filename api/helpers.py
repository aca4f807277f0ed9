"""
MODULE_DESCRIPTION: API Helper Functions - Error Responses and SSE Framing

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Small helpers shared by the route modules:

    traceback_json_response(e, status_code=500, request_id=None)
        JSON error body with the full traceback when DEBUG_TRACEBACK=1,
        otherwise None so the caller builds its own production response.

    sse_event(payload)
        Frames one Server-Sent Event: ``data: <json>\\n\\n``.

Caller Pattern:
    response = traceback_json_response(e, 500, entry.id)
    if response:
        return response
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

Security:
    DEBUG_TRACEBACK exposes file paths and code structure. Never set it in
    production.
"""

import json
import os
import traceback
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


# ==============================================================================
# ERROR RESPONSE HELPERS
# ==============================================================================


def traceback_json_response(e, status_code=500, request_id=None):
    """Debug JSON response with traceback, or None outside DEBUG_TRACEBACK=1."""
    if os.environ.get("DEBUG_TRACEBACK") == "1":
        tb_str = "".join(traceback.format_exception(type(e), e, e.__traceback__))
        response_content = {
            "detail": str(e),
            "traceback": tb_str,
        }
        if request_id:
            response_content["request_id"] = request_id
        return JSONResponse(status_code=status_code, content=response_content)

    return None


# ==============================================================================
# SERVER-SENT EVENTS
# ==============================================================================


def sse_event(payload: Dict[str, Any], event: Optional[str] = None) -> str:
    frame = f"data: {json.dumps(payload, default=str)}\n\n"
    if event:
        frame = f"event: {event}\n{frame}"
    return frame
