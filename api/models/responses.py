# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime_seconds: float
    version: str
    memory: Dict[str, Any]
    llm_configured: bool
    scopestack_configured: bool


class AnalyticsLogsResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    count: int


class AnalyticsSummaryResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class AuthorizeUrlResponse(BaseModel):
    success: bool = True
    authUrl: str
    redirectUri: str


class EnvCheckResponse(BaseModel):
    environment: Dict[str, bool]
    hasRequiredVars: bool
    nodeEnv: str


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
