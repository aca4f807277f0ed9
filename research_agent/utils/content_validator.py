"""
MODULE_DESCRIPTION: Generated Content Validation and Coercion

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Models return scope JSON in many shapes: wrapped in a research object, with
``service`` instead of ``name``, with options as bare strings, without
narrative text. This module turns such a dict into a ``GeneratedContent``
that satisfies the content invariants, or reports why it cannot.

Processing order:
    1. normalize_nested_structure  - unwrap known wrappers, fix option shapes
    2. validate_content            - list invariant violations (empty = valid)
    3. coerce_generated_content    - build the typed model, recompute hours,
                                     fill missing narrative text
    4. ensure_minimum_calculations - top up to five calculations
    5. map_subservices_to_questions

Invariants checked:
    - technology is a non-empty string
    - at least 10 services
    - every service has exactly 3 subservices
    - every service has a name and positive hours (directly or via its
      subservices)

Validation failure is a value (``ContentInvalid``), never an exception. The
pipeline reacts to it by switching to the fallback generator.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from research_agent.utils.narratives import (
    NARRATIVE_FIELDS,
    service_narratives,
    subservice_narratives,
)
from research_agent.utils.response_processor import (
    DEFAULT_SOURCE_URL,
    extract_technology_name,
    sanitize_sources,
)
from research_agent.utils.schemas import (
    MIN_SERVICES,
    SUBSERVICES_PER_SERVICE,
    Calculation,
    GeneratedContent,
    Question,
    Service,
    Subservice,
)

MIN_CALCULATIONS = 5

_WRAPPER_KEYS = (
    "email_migration_research",
    "migration_research",
    "research_findings",
    "project_scope",
    "scope",
    "content",
    "result",
)
_SERVICE_LIST_KEYS = (
    "services",
    "service_components",
    "core_services",
    "implementation_services",
    "service_breakdown",
    "professional_services",
)
_QUESTION_LIST_KEYS = ("questions", "discovery_questions", "assessment_questions")
_SOURCE_LIST_KEYS = ("sources", "reference_sources", "resources")
_OPTION_METADATA_KEYS = {
    "label", "value", "hours", "default", "metadata", "type", "id", "name", "description"
}
_QUESTION_TYPES = {"multiple_choice", "number", "boolean", "text"}
_RESULT_TYPES = {"multiplier", "additive", "conditional"}

# (calculation slug, display suffix, slug keywords)
_DEFAULT_CALCULATIONS = [
    ("scale_factor", "Scale Factor", ("user", "count", "employee", "mailbox", "device")),
    ("data_volume", "Data Volume Factor", ("volume", "size", "data", "storage")),
    ("complexity_factor", "Complexity Factor", ("complex", "custom", "requirement", "integration")),
    ("timeline_factor", "Timeline Factor", ("timeline", "schedule", "deadline")),
    ("location_factor", "Location Factor", ("location", "site", "office")),
]


@dataclass(frozen=True)
class ContentOk:
    content: GeneratedContent


@dataclass(frozen=True)
class ContentInvalid:
    violations: List[str] = field(default_factory=list)


ContentResult = Union[ContentOk, ContentInvalid]


# ==============================================================================
# NORMALISATION
# ==============================================================================
def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", str(text).lower()).strip("-")
    return slug or "question"


def _first_list(source: Dict[str, Any], keys) -> Optional[list]:
    for key in keys:
        value = source.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            for inner_key in ("core_services", "items", "list"):
                inner = value.get(inner_key)
                if isinstance(inner, list):
                    return inner
            if key == "assessment_questions":
                return [
                    dict(question, id=question_id)
                    if isinstance(question, dict)
                    else {"id": question_id, "question": str(question)}
                    for question_id, question in value.items()
                ]
    return None


def _normalize_options(options: Any) -> List[Dict[str, Any]]:
    if not isinstance(options, list):
        return []
    valid = [
        option
        for option in options
        if not (
            isinstance(option, dict)
            and isinstance(option.get("key"), str)
            and option["key"].lower() in _OPTION_METADATA_KEYS
        )
    ]
    normalized = []
    for i, option in enumerate(valid):
        if isinstance(option, dict):
            key = (
                option.get("key")
                or option.get("text")
                or option.get("label")
                or option.get("name")
                or f"Option {i + 1}"
            )
        elif isinstance(option, (str, int, float)):
            key = option
        else:
            key = f"Option {i + 1}"
        normalized.append({"key": str(key), "value": i + 1, "default": i == 0})
    return normalized


def _normalize_question(raw: Any, index: int, used_slugs: set) -> Optional[Dict[str, Any]]:
    if isinstance(raw, str):
        raw = {"question": raw}
    if not isinstance(raw, dict):
        return None

    text = raw.get("question") or raw.get("text") or f"Question {index + 1}"
    question_id = str(raw.get("id") or f"q{index + 1}")
    base_slug = _slugify(raw.get("slug") or question_id.replace("question_", "") or text)
    slug = base_slug
    suffix = 2
    while slug in used_slugs:
        slug = f"{base_slug}-{suffix}"
        suffix += 1
    used_slugs.add(slug)

    options = _normalize_options(raw.get("options"))
    question_type = raw.get("type")
    if question_type not in _QUESTION_TYPES:
        question_type = "multiple_choice" if options else "text"

    question = {
        "id": question_id,
        "slug": slug,
        "question": str(text),
        "type": question_type,
        "options": options,
    }
    if isinstance(raw.get("required"), bool):
        question["required"] = raw["required"]
    return question


def normalize_nested_structure(obj: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten wrapper objects and normalise question options.

    Returns a new dict with ``technology``, ``questions``, ``calculations``,
    ``services``, ``totalHours`` and ``sources`` keys. Values that cannot be
    found are left empty for ``validate_content`` to report.
    """
    if not isinstance(obj, dict):
        return {"technology": "", "questions": [], "calculations": [], "services": [], "sources": []}

    # Search the top level first, then each known wrapper
    layers = [obj] + [obj[key] for key in _WRAPPER_KEYS if isinstance(obj.get(key), dict)]

    technology = ""
    for layer in layers:
        candidate = layer.get("technology") or layer.get("title") or layer.get("project_title")
        if isinstance(candidate, str) and candidate.strip():
            technology = candidate.strip()
            break

    def find(keys) -> list:
        for layer in layers:
            found = _first_list(layer, keys)
            if found is not None:
                return found
        return []

    used_slugs: set = set()
    questions = [
        question
        for question in (
            _normalize_question(raw, i, used_slugs) for i, raw in enumerate(find(_QUESTION_LIST_KEYS))
        )
        if question is not None
    ]

    services = find(_SERVICE_LIST_KEYS)
    if not services:
        phases = find(("implementation_phases",))
        services = [_service_from_phase(phase, i) for i, phase in enumerate(phases) if isinstance(phase, dict)]

    total_hours = obj.get("totalHours", obj.get("total_hours", obj.get("total_estimated_hours")))

    return {
        "technology": technology,
        "questions": questions,
        "calculations": find(("calculations",)),
        "services": services,
        "totalHours": total_hours,
        "sources": find(_SOURCE_LIST_KEYS),
    }


def _service_from_phase(phase: Dict[str, Any], index: int) -> Dict[str, Any]:
    name = phase.get("name") or phase.get("phase") or f"Phase {index + 1}"
    hours = int(_number(phase.get("hours")) or _number(phase.get("estimated_hours")) or 40)
    activities = [a for a in phase.get("activities") or [] if isinstance(a, str)][:SUBSERVICES_PER_SERVICE]
    subservices = [
        {"name": activity, "description": f"{activity} for {name}", "hours": hours // SUBSERVICES_PER_SERVICE}
        for activity in activities
    ]
    return {
        "phase": "Implementation",
        "name": name,
        "description": phase.get("description") or f"{name} phase activities",
        "hours": hours,
        "subservices": subservices,
    }


# ==============================================================================
# VALIDATION
# ==============================================================================
def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _service_name(service: Dict[str, Any]) -> str:
    return str(service.get("name") or service.get("service") or "").strip()


def _service_hours(service: Dict[str, Any]) -> float:
    hours = _number(service.get("hours"))
    if hours and hours > 0:
        return hours
    subservices = service.get("subservices") or []
    return sum(
        _number(sub.get("hours")) or 0 for sub in subservices if isinstance(sub, dict)
    )


def validate_content(obj: Any) -> List[str]:
    """Return the invariant violations of a normalised content dict."""
    if not isinstance(obj, dict):
        return ["content is not an object"]

    violations: List[str] = []
    technology = obj.get("technology")
    if not isinstance(technology, str) or not technology.strip():
        violations.append("technology is missing")

    services = obj.get("services")
    if not isinstance(services, list):
        return violations + ["services is not a list"]
    if len(services) < MIN_SERVICES:
        violations.append(f"expected at least {MIN_SERVICES} services, got {len(services)}")

    for i, service in enumerate(services):
        if not isinstance(service, dict):
            violations.append(f"services[{i}] is not an object")
            continue
        label = _service_name(service) or f"services[{i}]"
        if not _service_name(service):
            violations.append(f"services[{i}] has no name")
        subservices = service.get("subservices")
        count = len(subservices) if isinstance(subservices, list) else 0
        if count != SUBSERVICES_PER_SERVICE:
            violations.append(
                f"{label} has {count} subservices, expected {SUBSERVICES_PER_SERVICE}"
            )
        if _service_hours(service) <= 0:
            violations.append(f"{label} has no positive hours")
    return violations


# ==============================================================================
# COERCION
# ==============================================================================
def _narratives(raw: Dict[str, Any], defaults: Dict[str, str]) -> Dict[str, str]:
    """Narrative fields from ``raw`` (snake or camel keys), gaps filled from defaults."""
    filled = {}
    for field_name in NARRATIVE_FIELDS:
        value = raw.get(to_camel(field_name)) or raw.get(field_name)
        filled[field_name] = value if isinstance(value, str) and value.strip() else defaults[field_name]
    return filled


def _coerce_service(raw: Dict[str, Any], technology: str) -> Dict[str, Any]:
    name = _service_name(raw)
    phase = str(raw.get("phase") or "Implementation")
    hours = _service_hours(raw)
    share = hours // SUBSERVICES_PER_SERVICE

    subservices = []
    for sub_index, raw_sub in enumerate(raw.get("subservices") or []):
        sub = raw_sub if isinstance(raw_sub, dict) else {"name": str(raw_sub)}
        sub_name = str(sub.get("name") or f"{name} Activity {sub_index + 1}")
        sub_hours = _number(sub.get("hours"))
        mapped = sub.get("mappedQuestions") or sub.get("mapped_questions") or []
        subservices.append(
            {
                "name": sub_name,
                "description": str(sub.get("description") or f"{sub_name} for {name}"),
                "hours": sub_hours if sub_hours is not None and sub_hours >= 0 else share,
                "mapped_questions": [str(slug) for slug in mapped] if isinstance(mapped, list) else [],
                "calculation_slug": sub.get("calculationSlug") or sub.get("calculation_slug"),
                **_narratives(sub, subservice_narratives(technology, sub_name, name)),
            }
        )

    return {
        "phase": phase,
        "name": name,
        "description": str(raw.get("description") or f"{name} for {technology}"),
        "hours": hours,
        "subservices": subservices,
        **_narratives(raw, service_narratives(technology, name, phase)),
    }


def _coerce_calculation(raw: Any, index: int, technology: str) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    name = str(raw.get("name") or f"{technology} Factor {index + 1}")
    slug = raw.get("slug")
    if not slug or re.fullmatch(r"calc\d+", str(slug)):
        slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_") + "_factor"
    result_type = raw.get("resultType") or raw.get("result_type")
    mapped = raw.get("mappedQuestions") or raw.get("mapped_questions") or []
    return {
        "id": str(raw.get("id") or slug),
        "slug": str(slug),
        "name": name,
        "description": raw.get("description"),
        "formula": str(raw.get("formula") or (mapped[0] if mapped else "1")),
        "mapped_questions": [str(m) for m in mapped] if isinstance(mapped, list) else [],
        "result_type": result_type if result_type in _RESULT_TYPES else "multiplier",
    }


def coerce_generated_content(obj: Any, user_input: str = "") -> ContentResult:
    """Normalise, validate and type raw model output.

    ``obj`` may be the raw parsed dict or an already normalised one.
    """
    try:
        return _coerce(obj, user_input)
    except ValidationError as exc:
        return ContentInvalid(
            violations=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        return ContentInvalid(violations=[f"unusable content: {exc}"])


def _coerce(obj: Any, user_input: str) -> ContentResult:
    normalized = normalize_nested_structure(obj) if isinstance(obj, dict) else obj
    violations = validate_content(normalized)
    if violations:
        return ContentInvalid(violations=violations)

    technology = normalized["technology"].strip() or extract_technology_name(user_input)
    services = [_coerce_service(raw, technology) for raw in normalized["services"]]
    calculations = [
        calc
        for calc in (
            _coerce_calculation(raw, i, technology)
            for i, raw in enumerate(normalized.get("calculations") or [])
        )
        if calc is not None
    ]
    sources = sanitize_sources(normalized.get("sources"), technology) or sanitize_sources(
        [{"url": DEFAULT_SOURCE_URL, "title": f"{technology} reference"}], technology
    )

    content = GeneratedContent(
        technology=technology,
        questions=[Question.model_validate(q) for q in normalized.get("questions") or []],
        calculations=[Calculation.model_validate(c) for c in calculations],
        services=[Service.model_validate(s) for s in services],
        sources=sources,
    )
    ensure_minimum_calculations(content)
    map_subservices_to_questions(content)
    return ContentOk(content=content.recompute_total_hours())


# ==============================================================================
# CALCULATIONS AND MAPPINGS
# ==============================================================================
def _slugs_matching(slugs: List[str], keywords) -> List[str]:
    return [slug for slug in slugs if any(keyword in slug for keyword in keywords)]


def ensure_minimum_calculations(content: GeneratedContent) -> GeneratedContent:
    """Top the calculation list up to five, keyword-mapped to question slugs."""
    slugs = [question.slug for question in content.questions]
    existing = {calculation.slug for calculation in content.calculations}

    for calc in content.calculations:
        if not calc.mapped_questions and slugs:
            quantitative = _slugs_matching(slugs, ("user", "count", "volume", "number", "size", "quantity"))
            calc.mapped_questions = [quantitative[0] if quantitative else slugs[0]]

    for position, (slug, suffix, keywords) in enumerate(_DEFAULT_CALCULATIONS):
        if len(content.calculations) >= MIN_CALCULATIONS:
            break
        if slug in existing:
            continue
        matching = _slugs_matching(slugs, keywords)
        if matching:
            mapped = [matching[0]]
        elif len(slugs) > position:
            mapped = [slugs[position]]
        else:
            mapped = []
        content.calculations.append(
            Calculation(
                id=slug,
                slug=slug,
                name=f"{content.technology} {suffix}",
                description=f"Adjusts hours for the {suffix.lower()} of the {content.technology} implementation",
                formula=mapped[0] if mapped else "1",
                mapped_questions=mapped,
                result_type="multiplier",
            )
        )
    return content


def _keywords(text: str) -> set:
    return {word for word in re.findall(r"[a-z]+", text.lower()) if len(word) > 3}


def map_subservices_to_questions(content: GeneratedContent) -> GeneratedContent:
    """Attach question and calculation slugs to subservices lacking them.

    A subservice is mapped to the questions sharing a keyword with its name
    or its service name, and to the calculation mapped to one of those
    questions. Unmatched subservices are spread over questions and
    calculations round-robin.
    """
    questions = content.questions
    calculations = content.calculations
    if not questions and not calculations:
        return content

    question_words = [(question.slug, _keywords(question.text) | _keywords(question.slug)) for question in questions]
    counter = 0
    for service in content.services:
        for sub in service.subservices:
            words = _keywords(sub.name) | _keywords(service.name)
            if not sub.mapped_questions and questions:
                matched = [slug for slug, q_words in question_words if words & q_words]
                sub.mapped_questions = matched[:2] or [questions[counter % len(questions)].slug]
            if not sub.calculation_slug and calculations:
                linked = [
                    calc.slug
                    for calc in calculations
                    if set(calc.mapped_questions) & set(sub.mapped_questions)
                ]
                sub.calculation_slug = linked[0] if linked else calculations[counter % len(calculations)].slug
            counter += 1
    return content
