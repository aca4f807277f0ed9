# Load environment variables early
from dotenv import load_dotenv

load_dotenv()

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResearchRequest(CamelRequest):
    """Body of POST /api/research.

    ``input`` is optional at the schema level so a missing value gets the
    400 "Input is required" answer instead of a 422.
    """

    input: Optional[str] = Field(
        default=None,
        description="Free-text description of the technology project",
    )
    models: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-stage model overrides (parsing, research, analysis, content, format)",
    )
    prompts: Optional[Dict[str, str]] = Field(
        default=None,
        description="Prompt template overrides (parsing, research, analysis)",
    )


class PushToScopeStackRequest(CamelRequest):
    """Body of POST /api/push-to-scopestack.

    ``content`` is validated in the route so malformed or empty content is
    reported as a 400.
    """

    content: Optional[Dict[str, Any]] = Field(
        default=None, description="GeneratedContent produced by /api/research"
    )
    client_name: Optional[str] = Field(default=None, max_length=200)
    project_name: Optional[str] = Field(default=None, max_length=200)
    questionnaire_tags: Optional[List[str]] = None
    skip_survey: bool = False
    skip_document: bool = False
    use_custom_services: bool = True

    @field_validator("client_name", "project_name")
    @classmethod
    def strip_names(cls, v):
        if v is None:
            return v
        return v.strip() or None


class OAuthAuthorizeRequest(CamelRequest):
    state: str = Field(default="", description="Opaque CSRF state echoed by the callback")


class OAuthLoginRequest(CamelRequest):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelRequest):
    refresh_token: Optional[str] = None


class ScopeStackTestRequest(CamelRequest):
    url: Optional[str] = None
    token: Optional[str] = None


class OpenRouterTestRequest(CamelRequest):
    model: Optional[str] = None
