"""Conversions from generated content to ScopeStack write shapes."""

from typing import Any, Dict, List, Optional, Sequence

from research_agent.utils.schemas import Question, Service, Source
from scopestack.models import ScopeStackService


def transform_services_to_scopestack(services: Sequence[Service]) -> List[ScopeStackService]:
    return [
        ScopeStackService(
            name=service.name or "Unnamed Service",
            description=service.description or "Service description",
            hours=service.hours,
            quantity=service.hours,
            phase=service.phase or "Implementation",
            position=index + 1,
            service_description=service.service_description or service.description,
            key_assumptions=service.key_assumptions,
            client_responsibilities=service.client_responsibilities,
            out_of_scope=service.out_of_scope,
        )
        for index, service in enumerate(services)
    ]


def transform_questions_to_survey_responses(questions: Sequence[Question]) -> Dict[str, Any]:
    """Default answer per question slug.

    multiple_choice takes its first option, number is 1, boolean is True and
    anything else echoes the question text.
    """
    responses: Dict[str, Any] = {}
    for question in questions:
        slug = question.slug or question.id or "_".join(question.text.lower().split())
        if question.type == "multiple_choice" and question.options:
            responses[slug] = question.options[0].model_dump(exclude_none=True)
        elif question.type == "number":
            responses[slug] = 1
        elif question.type == "boolean":
            responses[slug] = True
        else:
            responses[slug] = question.text
    return responses


def _hours(value: float) -> str:
    return f"{value:g}"


def generate_executive_summary(
    technology: str,
    services: Sequence[Service],
    sources: Sequence[Source],
    client_name: Optional[str] = None,
) -> str:
    client = client_name or "the client"
    total_hours = sum(service.hours for service in services)
    phases = list(dict.fromkeys(service.phase for service in services if service.phase))
    phase_count = len(phases) or 1

    lines = [
        f"This project proposes a comprehensive {technology} implementation for {client}, "
        f"designed to deliver enterprise-grade capabilities and measurable business value. "
        f"The engagement encompasses {len(services)} key services across {phase_count} "
        f"{'phase' if phase_count == 1 else 'phases'}, with an estimated effort of "
        f"{_hours(total_hours)} hours.",
        "",
        "**PROPOSED SERVICES:**",
    ]
    for index, service in enumerate(services, start=1):
        lines.append(
            f"{index}. **{service.name}** ({_hours(service.hours)} hours) - "
            f"{service.phase or 'Implementation'} Phase"
        )
        lines.append(f"   {service.service_description or service.description}")
        if service.key_assumptions:
            lines.append(f"   *Key Assumptions:* {service.key_assumptions}")
        if service.client_responsibilities:
            lines.append(f"   *Client Responsibilities:* {service.client_responsibilities}")
        if service.out_of_scope:
            lines.append(f"   *Out of Scope:* {service.out_of_scope}")
        lines.append("")

    if any(source.credibility == "high" for source in sources):
        lines.append(
            "Our approach is informed by industry best practices and proven methodologies, "
            "ensuring alignment with current standards and future scalability requirements."
        )
    lines.append(
        f"The proposed solution will enable {client} to optimize operations, enhance "
        f"security posture, and achieve strategic objectives through modern {technology} "
        f"capabilities."
    )
    return "\n".join(lines)
