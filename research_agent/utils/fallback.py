"""
MODULE_DESCRIPTION: Fallback Content Generator - Guaranteed Valid Scope

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

When the content stage cannot produce a scope that passes validation, the
pipeline hands over to this module. ``generate_fallback`` ALWAYS returns a
``GeneratedContent`` with at least 10 services, exactly 3 subservices per
service, populated narrative text and ``total_hours`` equal to the sum of
service hours. It never raises.

Tiers:
    1. Stricter-prompt LLM attempts (``FALLBACK_LLM_ATTEMPTS``, default 2).
       The prompt lists the validation failures and embeds an example of the
       required shape. Skipped when no LLM is configured.
    2. A static catalog of 14 services across Planning, Design,
       Implementation, Testing, Go-Live and Support, with 10 discovery
       questions, 5 calculations, industry references and any dynamic
       sources found during research.

Each tier's failure degrades to the next one.
"""

from typing import Any, List, Optional, Sequence

from api.config.settings import (
    BACKUP_CONTENT_MODEL,
    CONTENT_MODEL,
    FALLBACK_LLM_ATTEMPTS,
    STAGE_TIMEOUTS,
)
from api.utils.debug import print__research_debug
from research_agent.utils.content_validator import (
    ContentOk,
    ensure_minimum_calculations,
    map_subservices_to_questions,
    coerce_generated_content,
)
from research_agent.utils.narratives import service_narratives, subservice_narratives
from research_agent.utils.prompts import build_prompt
from research_agent.utils.response_processor import (
    extract_technology_name,
    sanitize_sources,
)
from research_agent.utils.sanitizer import ParseOk, parse_json_object
from research_agent.utils.schemas import (
    GeneratedContent,
    Question,
    QuestionOption,
    Service,
    Source,
    Subservice,
)

# ==============================================================================
# STATIC CATALOG
# ==============================================================================
# (phase, service name, hours, subservice names)
SERVICE_CATALOG = [
    ("Planning", "Discovery and Assessment", 24,
     ("Current State Assessment", "Requirements Gathering", "Project Planning")),
    ("Planning", "Project Governance", 16,
     ("Kickoff Planning", "Status Reporting", "Risk Management")),
    ("Design", "Solution Architecture", 32,
     ("Architecture Design", "Design Documentation", "Design Review")),
    ("Design", "Security and Compliance Design", 24,
     ("Security Assessment", "Policy Design", "Compliance Validation")),
    ("Implementation", "Environment Preparation", 24,
     ("Prerequisite Validation", "Infrastructure Configuration", "Access Setup")),
    ("Implementation", "Core Platform Configuration", 40,
     ("Baseline Configuration", "Feature Configuration", "Configuration Validation")),
    ("Implementation", "Integration Configuration", 32,
     ("Integration Planning", "Integration Build", "Integration Testing")),
    ("Implementation", "Data Migration", 40,
     ("Migration Planning", "Pilot Migration", "Production Migration")),
    ("Testing", "Functional Testing", 24,
     ("Test Planning", "Test Execution", "Defect Remediation")),
    ("Testing", "User Acceptance Testing Support", 16,
     ("UAT Planning", "UAT Facilitation", "UAT Sign-off")),
    ("Go-Live", "Pilot Deployment", 16,
     ("Pilot Planning", "Pilot Rollout", "Pilot Assessment")),
    ("Go-Live", "Production Cutover", 24,
     ("Cutover Planning", "Cutover Execution", "Cutover Validation")),
    ("Support", "Hypercare Support", 24,
     ("Issue Triage", "Issue Resolution", "Stabilization Review")),
    ("Support", "Knowledge Transfer and Documentation", 16,
     ("Administrator Training", "Operations Documentation", "Project Closure")),
]

# (slug, question text, options)
QUESTION_CATALOG = [
    ("user-count", "How many users will be in scope for {tech}?",
     ("1-100", "101-500", "501-1000", "More than 1000")),
    ("site-count", "How many locations or sites are involved?",
     ("1", "2-5", "6-20", "More than 20")),
    ("data-volume", "What is the approximate data volume to migrate or integrate?",
     ("Less than 100 GB", "100 GB - 1 TB", "1 TB - 10 TB", "More than 10 TB")),
    ("integration-count", "How many existing systems must integrate with {tech}?",
     ("0-2", "3-5", "6-10", "More than 10")),
    ("customization-level", "What level of customization is required?",
     ("Standard configuration", "Moderate customization", "Extensive customization")),
    ("compliance-requirements", "Which compliance requirements apply to this deployment?",
     ("None", "Industry standard", "Regulated (HIPAA, PCI, SOX)")),
    ("timeline-urgency", "What is the target implementation timeline?",
     ("More than 6 months", "3-6 months", "Less than 3 months")),
    ("environment-count", "How many environments need to be deployed?",
     ("Production only", "Production and test", "Production, test and development")),
    ("admin-training-count", "How many administrators require knowledge transfer?",
     ("1-2", "3-5", "More than 5")),
    ("availability-requirements", "What availability level is required?",
     ("Standard", "High availability", "High availability and disaster recovery")),
]

INDUSTRY_SOURCES = [
    {
        "url": "https://www.pmi.org/pmbok-guide-standards",
        "title": "PMI Project Management Body of Knowledge",
        "relevance": 0.7,
        "credibility": "high",
        "source_type": "guide",
    },
    {
        "url": "https://www.axelos.com/certifications/itil-service-management",
        "title": "ITIL Service Management Practices",
        "relevance": 0.6,
        "credibility": "high",
        "source_type": "guide",
    },
    {
        "url": "https://www.nist.gov/cyberframework",
        "title": "NIST Cybersecurity Framework",
        "relevance": 0.6,
        "credibility": "high",
        "source_type": "research",
    },
]


def _technology_name(user_input: str, parsed_tech: Any) -> str:
    if isinstance(parsed_tech, dict):
        parsed_tech = parsed_tech.get("technology")
    if isinstance(parsed_tech, str) and parsed_tech.strip():
        return parsed_tech.strip()
    return extract_technology_name(user_input)


def _split_hours(hours: int, parts: int) -> List[int]:
    share = hours // parts
    return [share] * (parts - 1) + [hours - share * (parts - 1)]


def _build_service(tech: str, phase: str, name: str, hours: int, sub_names: Sequence[str]) -> Service:
    service_name = f"{tech} {name}"
    subservices = [
        Subservice(
            name=f"{tech} {sub_name}",
            description=f"{sub_name} activities for {service_name}",
            hours=sub_hours,
            **subservice_narratives(tech, sub_name, service_name),
        )
        for sub_name, sub_hours in zip(sub_names, _split_hours(hours, len(sub_names)))
    ]
    return Service(
        phase=phase,
        name=service_name,
        description=f"{name} for the {tech} implementation",
        hours=hours,
        subservices=subservices,
        **service_narratives(tech, service_name, phase),
    )


def _build_questions(tech: str) -> List[Question]:
    return [
        Question(
            id=f"q{i + 1}",
            slug=slug,
            text=text.replace("{tech}", tech),
            type="multiple_choice",
            options=[
                QuestionOption(key=key, value=j + 1, default=j == 0)
                for j, key in enumerate(options)
            ],
            required=True,
        )
        for i, (slug, text, options) in enumerate(QUESTION_CATALOG)
    ]


def _merge_sources(*groups: Optional[Sequence[Any]], topic: str = "") -> List[Source]:
    merged: List[Any] = []
    for group in groups:
        merged.extend(group or [])
    return sanitize_sources(merged, topic)


def build_static_content(
    technology: str, dynamic_sources: Optional[Sequence[Any]] = None
) -> GeneratedContent:
    """The tier-2 catalog for ``technology``."""
    content = GeneratedContent(
        technology=technology,
        questions=_build_questions(technology),
        services=[
            _build_service(technology, phase, name, hours, subs)
            for phase, name, hours, subs in SERVICE_CATALOG
        ],
        sources=_merge_sources(dynamic_sources, INDUSTRY_SOURCES, topic=technology),
    )
    ensure_minimum_calculations(content)
    map_subservices_to_questions(content)
    return content.recompute_total_hours()


# ==============================================================================
# TIERED GENERATION
# ==============================================================================
async def _llm_attempts(
    llm,
    user_input: str,
    technology: str,
    research: Optional[str],
    analysis: Any,
    violations: Sequence[str],
    dynamic_sources: Optional[Sequence[Any]],
) -> Optional[GeneratedContent]:
    models = [CONTENT_MODEL, BACKUP_CONTENT_MODEL]
    reasons = "; ".join(violations) or "response was not valid JSON"
    for attempt in range(FALLBACK_LLM_ATTEMPTS):
        model = models[attempt % len(models)]
        prompt = build_prompt(
            "fallback",
            technology=technology,
            violations=reasons,
            input=user_input,
            researchFindings=(research or "")[:4000],
            analysis=analysis or "",
        )
        try:
            text = await llm.complete(
                prompt,
                model,
                timeout=STAGE_TIMEOUTS["fallback"],
                step="fallback",
            )
        except Exception as e:
            print__research_debug(f"⚠️ FALLBACK: attempt {attempt + 1} with {model} failed - {e}")
            continue

        parsed = parse_json_object(text)
        if not isinstance(parsed, ParseOk):
            print__research_debug(f"⚠️ FALLBACK: attempt {attempt + 1} unparseable - {parsed.reason}")
            continue
        result = coerce_generated_content(parsed.value, user_input)
        if isinstance(result, ContentOk):
            content = result.content
            content.sources = _merge_sources(content.sources, dynamic_sources, topic=technology)
            print__research_debug(f"✅ FALLBACK: attempt {attempt + 1} produced valid content")
            return content
        print__research_debug(
            f"⚠️ FALLBACK: attempt {attempt + 1} failed validation - {result.violations[:3]}"
        )
    return None


async def generate_fallback(
    user_input: str,
    parsed_tech: Any = None,
    research: Optional[str] = None,
    analysis: Any = None,
    dynamic_sources: Optional[Sequence[Any]] = None,
    llm=None,
    violations: Optional[Sequence[str]] = None,
) -> GeneratedContent:
    """Produce valid content, trying the LLM before the static catalog."""
    technology = _technology_name(user_input, parsed_tech)

    if llm is not None and getattr(llm, "is_configured", False):
        try:
            content = await _llm_attempts(
                llm, user_input, technology, research, analysis, violations or [], dynamic_sources
            )
        except Exception as e:
            print__research_debug(f"❌ FALLBACK: LLM tier failed - {e}")
            content = None
        if content is not None:
            return content
    else:
        print__research_debug("🔄 FALLBACK: no LLM configured, using static catalog")

    print__research_debug(f"📋 FALLBACK: building static catalog for '{technology}'")
    return build_static_content(technology, dynamic_sources)
