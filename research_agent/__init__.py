"""Research pipeline that turns a technology request into a services scope."""

from .pipeline import ResearchPipeline, get_capabilities, validate_research_input

__all__ = ["ResearchPipeline", "get_capabilities", "validate_research_input"]
