"""Helpers for the research pipeline: LLM access, JSON repair, validation and fallback content."""
