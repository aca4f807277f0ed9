"""
MODULE_DESCRIPTION: Research Pipeline - Five-Stage Scope Generation

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Turns a free-text technology request into a ``GeneratedContent`` scope,
reporting progress as a stream of event dicts that the API layer writes out
as Server-Sent Events.

Stages (sequential, each independently fallible):
    1. parse     10 -> 25   extract technology, scale, industry, compliance
    2. research  25 -> 50   findings text plus sources
    3. analyze   50 -> 75   structured analysis of the findings
    4. generate  75 -> 90   scope JSON, sanitized and validated
    5. format    90 -> 100  service description enhancement

Failure handling:
    - parse, research and analyze never abort; a placeholder replaces the
      stage output and the run continues
    - generate tries the primary model then the backup model; when neither
      yields valid content the fallback generator replaces it entirely and
      format is skipped
    - format degrades to the unformatted content on any failure

===================================================================================
EVENTS
===================================================================================

    {"type": "step", "stepId": "parse", "status": "active", "progress": 10, "model": "..."}
    {"type": "progress", "message": "...", "progress": 40}
    {"type": "complete", "content": {...}, "progress": 100}
    {"type": "error", "error": "..."}

``error`` is only emitted for exceptions outside the stage guards. Closing
the consumer stops delivery; in-flight LLM calls are not cancelled.
"""

import json
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from api.config.settings import (
    ANALYSIS_MODEL,
    BACKUP_CONTENT_MODEL,
    CONTENT_MODEL,
    FALLBACK_LLM_ATTEMPTS,
    FORMAT_MODEL,
    MAX_RESEARCH_SOURCES,
    OPENROUTER_API_KEY,
    PARSE_MODEL,
    RESEARCH_INPUT_MAX_LENGTH,
    RESEARCH_INPUT_MIN_LENGTH,
    RESEARCH_MODEL,
    STAGE_TIMEOUTS,
)
from api.exceptions.errors import ErrorCode, InputError
from api.utils.debug import print__research_debug
from research_agent.utils.content_validator import ContentOk, coerce_generated_content
from research_agent.utils.fallback import generate_fallback
from research_agent.utils.prompts import build_prompt
from research_agent.utils.response_processor import (
    detect_industry,
    generate_dynamic_sources,
    parse_source_lines,
    sanitize_sources,
)
from research_agent.utils.sanitizer import ParseOk, extract_json_array, parse_json_object
from research_agent.utils.schemas import GeneratedContent, Source

# ==============================================================================
# STAGE TABLE
# ==============================================================================
# (stage id, progress when active, progress when completed)
STAGES = [
    ("parse", 10, 25),
    ("research", 25, 50),
    ("analyze", 50, 75),
    ("generate", 75, 90),
    ("format", 90, 100),
]

DEFAULT_MODELS = {
    "parse": PARSE_MODEL,
    "research": RESEARCH_MODEL,
    "analyze": ANALYSIS_MODEL,
    "generate": CONTENT_MODEL,
    "backup": BACKUP_CONTENT_MODEL,
    "format": FORMAT_MODEL,
}

# Model keys used by the web frontend
_MODEL_ALIASES = {"parsing": "parse", "analysis": "analyze", "content": "generate"}

_RESEARCH_PROMPT_LIMIT = 6000


def validate_research_input(text: Any) -> str:
    """Return the stripped request text or raise ``InputError``."""
    if not isinstance(text, str) or not text.strip():
        raise InputError("Input is required", ErrorCode.INPUT_REQUIRED)
    text = text.strip()
    if len(text) < RESEARCH_INPUT_MIN_LENGTH:
        raise InputError(
            f"Input must be at least {RESEARCH_INPUT_MIN_LENGTH} characters"
        )
    if len(text) > RESEARCH_INPUT_MAX_LENGTH:
        raise InputError(
            f"Input must be at most {RESEARCH_INPUT_MAX_LENGTH} characters"
        )
    return text


def get_capabilities() -> Dict[str, Any]:
    return {
        "stages": [stage for stage, _, _ in STAGES],
        "models": dict(DEFAULT_MODELS),
        "timeouts": dict(STAGE_TIMEOUTS),
        "features": {
            "llmConfigured": bool(OPENROUTER_API_KEY),
            "fallbackContent": True,
            "fallbackLlmAttempts": FALLBACK_LLM_ATTEMPTS,
            "serviceEnhancement": True,
            "sourceExtraction": True,
            "promptOverrides": ["parsing", "research", "analysis"],
        },
    }


def _placeholder_parse(user_input: str) -> Dict[str, Any]:
    return {
        "technology": " ".join(user_input.split()[:3]),
        "scale": "Enterprise",
        "industry": detect_industry(user_input),
        "compliance": "Standard",
        "complexity": ["Standard implementation"],
    }


class ResearchPipeline:
    """One research run per ``run`` call; holds no state between runs."""

    def __init__(
        self,
        llm,
        models: Optional[Dict[str, str]] = None,
        prompts: Optional[Dict[str, str]] = None,
    ):
        self.llm = llm
        self.models = dict(DEFAULT_MODELS)
        for key, value in (models or {}).items():
            if value:
                self.models[_MODEL_ALIASES.get(key, key)] = value
        self.prompts = {key: value for key, value in (prompts or {}).items() if value}

    def _step(self, stage: str, status: str, progress: int) -> Dict[str, Any]:
        return {
            "type": "step",
            "stepId": stage,
            "status": status,
            "progress": progress,
            "model": self.models.get(stage),
        }

    async def _complete(self, stage: str, prompt: str, model: Optional[str] = None) -> str:
        return await self.llm.complete(
            prompt,
            model or self.models[stage],
            timeout=STAGE_TIMEOUTS[stage],
            step=stage,
        )

    # ==========================================================================
    # STAGES
    # ==========================================================================
    async def _parse(self, user_input: str) -> Dict[str, Any]:
        text = await self._complete(
            "parse", build_prompt("parsing", self.prompts, input=user_input)
        )
        parsed = parse_json_object(text)
        if not isinstance(parsed, ParseOk):
            raise ValueError(f"parse output unusable: {parsed.reason}")
        result = _placeholder_parse(user_input)
        result.update({k: v for k, v in parsed.value.items() if v})
        if not isinstance(result.get("technology"), str):
            result["technology"] = _placeholder_parse(user_input)["technology"]
        return result

    async def _research(self, user_input: str, technology: str) -> Tuple[str, List[Source]]:
        findings = await self._complete(
            "research", build_prompt("research", self.prompts, input=user_input)
        )
        sources = parse_source_lines(findings, technology) or generate_dynamic_sources(user_input)
        return findings, sources[:MAX_RESEARCH_SOURCES]

    async def _analyze(self, user_input: str, findings: str) -> str:
        return await self._complete(
            "analyze",
            build_prompt(
                "analysis",
                self.prompts,
                input=user_input,
                researchFindings=findings[:_RESEARCH_PROMPT_LIMIT],
            ),
        )

    async def _generate(
        self,
        user_input: str,
        parsed: Dict[str, Any],
        findings: str,
        analysis: str,
        sources: List[Source],
    ) -> Tuple[GeneratedContent, bool]:
        """Return (content, used_fallback)."""
        technology = parsed["technology"]
        prompt = build_prompt(
            "generate",
            technology=technology,
            input=user_input,
            parsed=parsed,
            researchFindings=findings[:_RESEARCH_PROMPT_LIMIT],
            analysis=analysis[:_RESEARCH_PROMPT_LIMIT],
            sources=[source.model_dump(by_alias=True, exclude_none=True) for source in sources],
        )
        violations: List[str] = []
        for model in (self.models["generate"], self.models["backup"]):
            try:
                text = await self._complete("generate", prompt, model)
            except Exception as e:
                print__research_debug(f"⚠️ GENERATE: {model} failed - {e}")
                violations = [str(e)]
                continue

            parsed_json = parse_json_object(text)
            if not isinstance(parsed_json, ParseOk):
                print__research_debug(f"⚠️ GENERATE: {model} output unparseable - {parsed_json.reason}")
                violations = [parsed_json.reason]
                continue

            try:
                result = coerce_generated_content(parsed_json.value, user_input)
                if isinstance(result, ContentOk):
                    content = result.content
                    content.sources = sanitize_sources([*content.sources, *sources], technology)
            except Exception as e:
                print__research_debug(f"⚠️ GENERATE: {model} output unusable - {e}")
                violations = [str(e)]
                continue

            if isinstance(result, ContentOk):
                print__research_debug(
                    f"✅ GENERATE: {model} produced {len(content.services)} services"
                )
                return content, False
            violations = result.violations
            print__research_debug(f"⚠️ GENERATE: {model} failed validation - {violations[:3]}")

        print__research_debug("🔄 GENERATE: switching to fallback content")
        content = await generate_fallback(
            user_input,
            parsed_tech=parsed,
            research=findings,
            analysis=analysis,
            dynamic_sources=sources,
            llm=self.llm,
            violations=violations,
        )
        return content, True

    async def _format(self, content: GeneratedContent) -> GeneratedContent:
        services = [
            {
                "name": service.name,
                "phase": service.phase,
                "hours": service.hours,
                "description": service.description,
                "serviceDescription": service.service_description,
            }
            for service in content.services
        ]
        text = await self._complete(
            "format",
            build_prompt(
                "format",
                technology=content.technology,
                services=json.dumps(services, indent=2),
            ),
        )
        enhanced = extract_json_array(text)
        if not enhanced or len(enhanced) != len(content.services):
            raise ValueError("service enhancement returned an unusable array")

        updated = 0
        for service, item in zip(content.services, enhanced):
            if not isinstance(item, dict):
                continue
            description = item.get("description")
            narrative = item.get("serviceDescription")
            if isinstance(description, str) and description.strip():
                service.description = description.strip()
                updated += 1
            if isinstance(narrative, str) and narrative.strip():
                service.service_description = narrative.strip()
        print__research_debug(f"✅ FORMAT: enhanced {updated} service descriptions")
        return content

    # ==========================================================================
    # RUN
    # ==========================================================================
    async def run(self, user_input: str) -> AsyncIterator[Dict[str, Any]]:
        """Execute all stages, yielding progress events."""
        try:
            print__research_debug(f"🚀 RESEARCH: starting run for '{user_input[:80]}'")

            # STEP 1: PARSE
            yield self._step("parse", "active", 10)
            try:
                parsed = await self._parse(user_input)
            except Exception as e:
                print__research_debug(f"⚠️ PARSE: using placeholder - {e}")
                parsed = _placeholder_parse(user_input)
                yield {"type": "progress", "message": "Request parsing unavailable, using defaults", "progress": 20}
            technology = parsed["technology"]
            yield self._step("parse", "completed", 25)

            # STEP 2: RESEARCH
            yield self._step("research", "active", 25)
            try:
                findings, sources = await self._research(user_input, technology)
            except Exception as e:
                print__research_debug(f"⚠️ RESEARCH: using placeholder - {e}")
                findings = (
                    f"Research for {technology} could not be completed. "
                    "Standard implementation practices apply."
                )
                sources = generate_dynamic_sources(user_input)
                yield {"type": "progress", "message": "Live research unavailable, using reference sources", "progress": 40}
            yield {"type": "progress", "message": f"Found {len(sources)} sources", "progress": 48}
            yield self._step("research", "completed", 50)

            # STEP 3: ANALYZE
            yield self._step("analyze", "active", 50)
            try:
                analysis = await self._analyze(user_input, findings)
            except Exception as e:
                print__research_debug(f"⚠️ ANALYZE: using placeholder - {e}")
                analysis = f"Standard professional services analysis for {technology}."
                yield {"type": "progress", "message": "Analysis unavailable, using standard methodology", "progress": 65}
            yield self._step("analyze", "completed", 75)

            # STEP 4: GENERATE
            yield self._step("generate", "active", 75)
            content, used_fallback = await self._generate(
                user_input, parsed, findings, analysis, sources
            )
            if used_fallback:
                yield {"type": "progress", "message": "Generated content from fallback templates", "progress": 88}
            yield self._step("generate", "completed", 90)

            # STEP 5: FORMAT
            yield self._step("format", "active", 90)
            if not used_fallback:
                try:
                    content = await self._format(content)
                except Exception as e:
                    print__research_debug(f"⚠️ FORMAT: keeping unformatted content - {e}")
            yield self._step("format", "completed", 100)

            yield {"type": "complete", "content": content.recompute_total_hours().to_wire(), "progress": 100}
            print__research_debug(
                f"🎉 RESEARCH: completed '{content.technology}' with {len(content.services)} services, "
                f"{content.total_hours} hours"
            )
        except Exception as e:
            print__research_debug(f"❌ RESEARCH: unexpected failure - {type(e).__name__}: {e}")
            yield {"type": "error", "error": str(e)}
