"""Prompt templates for the research pipeline.

Templates use ``{input}``, ``{researchFindings}`` and similar placeholders that
are substituted with ``str.replace`` so literal JSON braces in the text are
left alone. Callers may override the parsing, research and analysis templates
per request.
"""

import json
from typing import Any, Dict, Optional

JSON_RESPONSE_INSTRUCTION = """

CRITICAL RESPONSE FORMAT:
- Return ONLY valid JSON
- NO markdown code blocks
- NO explanations before or after the JSON
- NO comments within the JSON
- Start the response with { and end it with }
- Do not nest the response inside fields like "research_findings"
- Use properly quoted URLs, for example { "url": "https://example.com", "title": "Source Title" }
"""

DEFAULT_PROMPTS: Dict[str, str] = {
    "parsing": """Analyze this technology solution request and extract key information:

"{input}"

Return JSON with these fields:
- technology: main technology or platform
- scale: number of users or size
- industry: industry sector
- compliance: compliance requirements
- complexity: list of complexity factors"""
    + JSON_RESPONSE_INSTRUCTION,
    "research": """Based on this technology solution: "{input}"

Research and report on:
1. Implementation methodologies and frameworks
2. Industry best practices and standards
3. Professional services approaches and typical service components
4. Hour estimates based on complexity
5. Common challenges, compliance considerations and testing approaches
6. Integration, security and data migration requirements

Include enough detail to generate at least 10 discovery questions and 10 services with 3 subservices each.

At the end, list the sources you relied on, one per line, formatted as:
SOURCE: [URL] | [Title] | [Relevance]""",
    "analysis": """Analyze these research findings and create structured insights:

Research: {researchFindings}
Original Request: {input}

Cover implementation phases with realistic timelines, resource requirements,
risks, a service breakdown with subservice components, hour estimation, client
responsibilities and scope boundaries.

The analysis must support generating at least 10 discovery questions that
impact level of effort, at least 10 services across all phases with exactly 3
subservices each, and at least 5 calculations that affect service hours."""
    + JSON_RESPONSE_INSTRUCTION,
}

CONTENT_SHAPE = """{
  "technology": "string",
  "questions": [
    {"id": "q1", "slug": "user-count", "question": "How many users are in scope?", "type": "multiple_choice",
     "options": [{"key": "1-100", "value": 1, "default": true}, {"key": "101-500", "value": 2}, {"key": "500+", "value": 3}]}
  ],
  "calculations": [
    {"id": "scale_factor", "slug": "scale_factor", "name": "Scale Factor", "formula": "user-count",
     "mappedQuestions": ["user-count"], "resultType": "multiplier"}
  ],
  "services": [
    {"phase": "Planning", "name": "string", "description": "string", "hours": 24,
     "serviceDescription": "string", "keyAssumptions": "string", "clientResponsibilities": "string", "outOfScope": "string",
     "subservices": [
       {"name": "string", "description": "string", "hours": 8},
       {"name": "string", "description": "string", "hours": 8},
       {"name": "string", "description": "string", "hours": 8}
     ]}
  ],
  "totalHours": 0,
  "sources": [{"url": "https://example.com", "title": "string", "relevance": 0.8}]
}"""

GENERATE_PROMPT = """Generate complete professional services content for {technology}.

Original Request: {input}
Parsed Request: {parsed}
Research Findings: {researchFindings}
Analysis: {analysis}
Sources: {sources}

Requirements:
- AT LEAST 10 specific, quantitative discovery questions with 3-4 options each and a descriptive kebab-case slug
- AT LEAST 5 calculations mapped to question slugs
- AT LEAST 10 services across the Planning, Design, Implementation, Testing, Go-Live and Support phases
- EXACTLY 3 subservices per service, each with hours
- Every service has serviceDescription, keyAssumptions, clientResponsibilities and outOfScope text
- Use terminology, tools and methodologies from the research, not generic names
- totalHours is the sum of service hours

Return a JSON object with exactly this structure:
{shape}""" + JSON_RESPONSE_INSTRUCTION

FALLBACK_PROMPT = """The previous attempt to generate scoping content for {technology} failed validation: {violations}

Original Request: {input}
Research Findings: {researchFindings}
Analysis: {analysis}

Return ONLY a JSON object. It MUST contain at least 10 services and EVERY service MUST have EXACTLY 3 subservices.
Follow this example structure exactly, repeating the service entry until there are 10 or more:
{shape}"""

FORMAT_PROMPT = """Improve the descriptions of these professional services for {technology}.
Keep every name, phase and hours value unchanged. Rewrite only "description" and "serviceDescription"
so they are specific, client-facing and reference the technology.

Services:
{services}

Return ONLY a JSON array with the same number of services in the same order."""


def _fill(template: str, values: Dict[str, Any]) -> str:
    for key, value in values.items():
        template = template.replace("{" + key + "}", value if isinstance(value, str) else json.dumps(value))
    return template


def build_prompt(name: str, overrides: Optional[Dict[str, str]] = None, **values: Any) -> str:
    """Render a named stage prompt, honouring per-request overrides."""
    templates = {
        **DEFAULT_PROMPTS,
        "generate": GENERATE_PROMPT,
        "fallback": FALLBACK_PROMPT,
        "format": FORMAT_PROMPT,
    }
    template = (overrides or {}).get(name) or templates[name]
    values.setdefault("shape", CONTENT_SHAPE)
    return _fill(template, values)
