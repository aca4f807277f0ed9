"""Pydantic shapes for ScopeStack records and OAuth sessions.

Python fields are snake_case; ``model_dump(by_alias=True)`` produces the
camelCase shape returned to the web frontend.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ScopeStackModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScopeStackUser(ScopeStackModel):
    account_id: str
    account_slug: str
    user_name: str
    email: Optional[str] = None


class ScopeStackContact(ScopeStackModel):
    id: Optional[str] = None
    name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None


class ScopeStackClientRecord(ScopeStackModel):
    id: str
    name: str
    msa_date: Optional[str] = None
    contacts: List[ScopeStackContact] = Field(default_factory=list)


class ScopeStackProject(ScopeStackModel):
    id: str
    name: str
    status: Optional[str] = None
    client_id: Optional[str] = None
    executive_summary: Optional[str] = None
    contract_revenue: Optional[float] = None
    contract_cost: Optional[float] = None
    contract_margin: Optional[float] = None


class ScopeStackSurvey(ScopeStackModel):
    id: str
    name: str
    status: Optional[str] = None
    project_id: Optional[str] = None


class ScopeStackDocument(ScopeStackModel):
    id: str
    status: Optional[str] = None
    document_url: Optional[str] = None
    template_id: Optional[str] = None
    project_id: Optional[str] = None


class ScopeStackQuestionnaire(ScopeStackModel):
    id: str
    name: str
    description: Optional[str] = None
    tag_list: List[str] = Field(default_factory=list)


class ScopeStackService(ScopeStackModel):
    """Write shape of a project service."""

    name: str
    description: str = ""
    hours: float = 0
    quantity: float = 0
    phase: Optional[str] = None
    position: Optional[int] = None
    service_description: str = ""
    key_assumptions: str = ""
    client_responsibilities: str = ""
    out_of_scope: str = ""


class OAuthSession(ScopeStackModel):
    access_token: str
    refresh_token: Optional[str] = None
    # Epoch milliseconds
    expires_at: int
    account_slug: Optional[str] = None
    account_id: Optional[str] = None
    user_name: Optional[str] = None
    email: Optional[str] = None
