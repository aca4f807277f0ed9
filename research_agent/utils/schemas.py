"""Pydantic models for generated professional-services content.

Field names are snake_case in Python and camelCase on the wire
(``totalHours``, ``serviceDescription`` ...). Always dump with
``by_alias=True`` when the payload leaves the process.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

QuestionType = Literal["multiple_choice", "number", "boolean", "text"]
ResultType = Literal["multiplier", "additive", "conditional"]
Credibility = Literal["high", "medium", "low"]
SourceType = Literal[
    "documentation", "guide", "case_study", "vendor", "community", "research", "other"
]

MIN_SERVICES = 10
SUBSERVICES_PER_SERVICE = 3


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class QuestionOption(CamelModel):
    key: str
    value: Union[int, float, str]
    default: bool = False


class Question(CamelModel):
    id: str
    slug: str
    text: str = Field(alias="question")
    type: QuestionType = "multiple_choice"
    options: List[QuestionOption] = Field(default_factory=list)
    required: Optional[bool] = None


class Calculation(CamelModel):
    id: str
    slug: str
    name: str
    description: Optional[str] = None
    formula: str
    mapped_questions: List[str] = Field(default_factory=list)
    result_type: ResultType = "multiplier"


class Subservice(CamelModel):
    name: str
    description: str
    hours: float = Field(ge=0)
    service_description: str = ""
    key_assumptions: str = ""
    client_responsibilities: str = ""
    out_of_scope: str = ""
    mapped_questions: List[str] = Field(default_factory=list)
    calculation_slug: Optional[str] = None


class Service(CamelModel):
    phase: str
    name: str
    description: str
    hours: float = Field(gt=0)
    service_description: str = ""
    key_assumptions: str = ""
    client_responsibilities: str = ""
    out_of_scope: str = ""
    # Length is checked by validate_content, not by the type
    subservices: List[Subservice] = Field(default_factory=list)


class Source(CamelModel):
    url: str
    title: str
    relevance: float = Field(default=0.8, ge=0, le=1)
    credibility: Credibility = "medium"
    summary: Optional[str] = None
    source_type: Optional[SourceType] = None


class GeneratedContent(CamelModel):
    """Canonical output of the research pipeline."""

    technology: str
    questions: List[Question] = Field(default_factory=list)
    calculations: List[Calculation] = Field(default_factory=list)
    services: List[Service] = Field(default_factory=list)
    total_hours: float = 0
    sources: List[Source] = Field(default_factory=list)

    def recompute_total_hours(self) -> "GeneratedContent":
        self.total_hours = sum(service.hours for service in self.services)
        return self

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
