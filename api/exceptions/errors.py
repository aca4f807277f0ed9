"""Domain error taxonomy for the research and push workflows.

``AppError`` carries a machine-readable ``ErrorCode``; the FastAPI handler in
``api.exceptions.handlers`` maps the code to an HTTP status with
``status_for_code``.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    # API
    API_KEY_MISSING = "API_KEY_MISSING"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    API_TIMEOUT = "API_TIMEOUT"
    API_INVALID_RESPONSE = "API_INVALID_RESPONSE"
    API_NETWORK_ERROR = "API_NETWORK_ERROR"

    # Research steps
    RESEARCH_PARSING_FAILED = "RESEARCH_PARSING_FAILED"
    RESEARCH_WEB_SEARCH_FAILED = "RESEARCH_WEB_SEARCH_FAILED"
    RESEARCH_ANALYSIS_FAILED = "RESEARCH_ANALYSIS_FAILED"
    RESEARCH_CONTENT_GENERATION_FAILED = "RESEARCH_CONTENT_GENERATION_FAILED"
    RESEARCH_FORMATTING_FAILED = "RESEARCH_FORMATTING_FAILED"

    # Content
    CONTENT_INVALID_FORMAT = "CONTENT_INVALID_FORMAT"
    CONTENT_MISSING_REQUIRED_FIELDS = "CONTENT_MISSING_REQUIRED_FIELDS"

    # ScopeStack
    SCOPESTACK_CONFIG_MISSING = "SCOPESTACK_CONFIG_MISSING"
    SCOPESTACK_CONNECTION_FAILED = "SCOPESTACK_CONNECTION_FAILED"
    SCOPESTACK_PUSH_FAILED = "SCOPESTACK_PUSH_FAILED"

    # User input
    INPUT_REQUIRED = "INPUT_REQUIRED"
    INPUT_INVALID_FORMAT = "INPUT_INVALID_FORMAT"

    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_STATUS_BY_CODE = {
    ErrorCode.INPUT_REQUIRED: 400,
    ErrorCode.INPUT_INVALID_FORMAT: 400,
    ErrorCode.CONTENT_INVALID_FORMAT: 400,
    ErrorCode.CONTENT_MISSING_REQUIRED_FIELDS: 400,
    ErrorCode.SCOPESTACK_CONFIG_MISSING: 400,
    ErrorCode.API_KEY_MISSING: 401,
    ErrorCode.API_RATE_LIMIT: 429,
    ErrorCode.API_TIMEOUT: 408,
    ErrorCode.SCOPESTACK_CONNECTION_FAILED: 502,
}

_STEP_CODES = {
    "parse": ErrorCode.RESEARCH_PARSING_FAILED,
    "research": ErrorCode.RESEARCH_WEB_SEARCH_FAILED,
    "analyze": ErrorCode.RESEARCH_ANALYSIS_FAILED,
    "generate": ErrorCode.RESEARCH_CONTENT_GENERATION_FAILED,
    "format": ErrorCode.RESEARCH_FORMATTING_FAILED,
}


def status_for_code(code: ErrorCode) -> int:
    return _STATUS_BY_CODE.get(code, 500)


class AppError(Exception):
    """Base class for errors that carry an ``ErrorCode``."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        is_retryable: bool = False,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code or status_for_code(code)
        self.context = {"timestamp": int(time.time() * 1000), **(context or {})}
        self.is_retryable = is_retryable

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "context": self.context,
            "isRetryable": self.is_retryable,
        }


class InputError(AppError):
    def __init__(self, message: str, code: ErrorCode = ErrorCode.INPUT_INVALID_FORMAT):
        super().__init__(code, message)


class ConfigurationError(AppError):
    def __init__(self, message: str, code: ErrorCode = ErrorCode.SCOPESTACK_CONFIG_MISSING):
        super().__init__(code, message)


class ContentError(AppError):
    def __init__(self, message: str, validation_errors=None):
        super().__init__(
            ErrorCode.CONTENT_MISSING_REQUIRED_FIELDS,
            message,
            context={"validationErrors": list(validation_errors or [])},
        )
        self.validation_errors = list(validation_errors or [])


class ResearchStepError(AppError):
    def __init__(self, step: str, message: str, model: Optional[str] = None):
        super().__init__(
            _STEP_CODES.get(step, ErrorCode.UNKNOWN_ERROR),
            message,
            context={"step": step, "model": model},
            is_retryable=True,
        )
        self.step = step
        self.model = model


_FRIENDLY_MESSAGES = {
    ErrorCode.API_KEY_MISSING: "API configuration is missing. Please check your settings.",
    ErrorCode.API_RATE_LIMIT: "Too many requests. Please wait a moment and try again.",
    ErrorCode.API_TIMEOUT: "The request took too long to complete. Please try again.",
    ErrorCode.RESEARCH_PARSING_FAILED: "Failed to understand your request. Please try rephrasing it.",
    ErrorCode.RESEARCH_WEB_SEARCH_FAILED: "Unable to conduct web research. Please try again later.",
    ErrorCode.SCOPESTACK_CONFIG_MISSING: "ScopeStack integration is not configured. Please check your settings.",
    ErrorCode.INPUT_REQUIRED: "Please provide a description of your technology solution.",
}


def get_user_friendly_message(error: BaseException) -> str:
    if isinstance(error, AppError):
        return _FRIENDLY_MESSAGES.get(error.code, error.message)
    return "An unexpected error occurred. Please try again."
