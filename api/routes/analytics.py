# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_request_logger
from api.utils.debug import print__analytics_debug
from api.utils.request_logger import RequestLogger

router = APIRouter()


@router.get("/api/analytics")
async def analytics(
    action: str = Query(default="analytics"),
    limit: int = Query(default=100, ge=1, le=1000),
    logger: RequestLogger = Depends(get_request_logger),
):
    """Raw request logs (``action=logs``) or the analytics summary."""
    print__analytics_debug(f"📊 /api/analytics action={action} limit={limit}")

    if action == "logs":
        logs = [entry.to_wire() for entry in logger.get_request_logs(limit)]
        return {"success": True, "data": logs, "count": len(logs)}
    if action == "analytics":
        return {"success": True, "data": logger.get_analytics()}

    raise HTTPException(
        status_code=400, detail="Invalid action. Use ?action=analytics or ?action=logs"
    )
