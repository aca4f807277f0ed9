# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

import time
from datetime import datetime

import psutil
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.config.settings import (
    APP_VERSION,
    OPENROUTER_API_KEY,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW,
    SCOPESTACK_API_TOKEN,
    start_time,
)
from api.helpers import traceback_json_response

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus process memory and configuration flags."""
    try:
        process = psutil.Process()
        memory_info = process.memory_info()

        logger = getattr(request.app.state, "request_logger", None)
        health_data = {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "uptime_seconds": round(time.time() - start_time, 2),
            "version": APP_VERSION,
            "memory": {
                "rss_mb": round(memory_info.rss / 1024 / 1024, 2),
                "vms_mb": round(memory_info.vms / 1024 / 1024, 2),
                "percent": round(process.memory_percent(), 2),
            },
            "llm_configured": bool(OPENROUTER_API_KEY),
            "scopestack_configured": bool(SCOPESTACK_API_TOKEN),
            "request_log_entries": len(logger.get_request_logs(logger.max_entries)) if logger else 0,
            "rate_limit": {"requests": RATE_LIMIT_REQUESTS, "window_seconds": RATE_LIMIT_WINDOW},
        }
        return health_data

    except Exception as e:
        resp = traceback_json_response(e)
        if resp:
            return resp

        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e),
                "timestamp": datetime.now().isoformat(),
            },
        )
