"""
MODULE_DESCRIPTION: LLM Response Sanitizer - Best-Effort JSON Repair

===================================================================================
PURPOSE AND OVERVIEW
===================================================================================

Language models asked for "pure JSON" routinely wrap it in Markdown fences,
add ``//`` comments, leave trailing commas, or append a sentence of prose
after the closing brace. This module coerces such output into parseable JSON.

Repair is pure string processing, applied in order:
    1. Trim surrounding whitespace
    2. Strip triple-backtick fences (with optional language tag)
    3. Remove ``//`` line comments and ``/* */`` block comments
    4. Collapse newlines and whitespace runs to a single space
    5. Remove trailing commas before ``}`` or ``]``
    6. Cut the text to the first ``{`` and its matching ``}``

Steps 3-5 only touch text outside JSON string literals, so URLs such as
``"https://..."`` and spacing inside values survive. The passes are repeated
until the text stops changing, which makes ``sanitize`` idempotent.

===================================================================================
INTERFACE
===================================================================================

sanitize(raw) -> str
    Cleaned text, best effort. May still be unparseable.

try_repair_json(raw) -> Optional[str]
    Cleaned text if it parses as a JSON object, else None. This is the one
    entry point the pipeline uses, so the heuristics can be swapped without
    touching pipeline code.

parse_json_object(raw) -> ParseOk | SanitizeFailure
    Result type: "could not parse, use fallback" is an ordinary branch.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

_FENCE_RE = re.compile(r"```[A-Za-z0-9_+\-]*")
_DOUBLE_QUOTED_URL_RE = re.compile(r'""(https?://[^"\s]+)""')
_UNQUOTED_URL_VALUE_RE = re.compile(r'("url"\s*:\s*)(https?://[^\s",}\]]+)')


# ==============================================================================
# RESULT TYPES
# ==============================================================================
@dataclass(frozen=True)
class ParseOk:
    value: Dict[str, Any]
    text: str


@dataclass(frozen=True)
class SanitizeFailure:
    reason: str
    excerpt: str


ParseResult = Union[ParseOk, SanitizeFailure]


# ==============================================================================
# SCANNING HELPERS
# ==============================================================================
def _string_end(text: str, start: int) -> int:
    """Index just past the string literal opening at ``start`` (or len)."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return n


def _matching_close(text: str, start: int, open_ch: str, close_ch: str) -> Optional[int]:
    """Index of the bracket closing ``text[start]``, skipping string literals."""
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            i = _string_end(text, i)
            continue
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _clean_outside_strings(body: str) -> str:
    """Fences, comments, whitespace runs and trailing commas outside strings."""
    out: List[str] = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch == '"':
            end = _string_end(body, i)
            out.append(body[i:end])
            i = end
        elif body.startswith("```", i):
            i = _FENCE_RE.match(body, i).end()
        elif body.startswith("//", i):
            newline = body.find("\n", i)
            i = n if newline == -1 else newline
        elif body.startswith("/*", i):
            close = body.find("*/", i + 2)
            i = n if close == -1 else close + 2
        elif ch.isspace():
            j = i
            while j < n and body[j].isspace():
                j += 1
            out.append(" ")
            i = j
        elif ch == ",":
            j = i + 1
            while j < n and body[j].isspace():
                j += 1
            if j >= n or body[j] not in "}]":
                out.append(",")
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def _clean_once(text: str) -> str:
    s = text.strip()

    # Prose before the first brace only loses its fences; quotes in prose
    # must not flip the string tracking used for the JSON body.
    start = s.find("{")
    if start == -1:
        return _FENCE_RE.sub("", s).strip()

    prefix = _FENCE_RE.sub("", s[:start])
    s = (prefix + _clean_outside_strings(s[start:])).strip()

    start = s.find("{")
    if start != -1:
        end = _matching_close(s, start, "{", "}")
        if end is not None:
            s = s[start : end + 1]
    return s.strip()


# ==============================================================================
# PUBLIC INTERFACE
# ==============================================================================
def sanitize(raw: Optional[str]) -> str:
    """Return ``raw`` cleaned towards valid JSON (best effort, never raises)."""
    current = raw or ""
    while True:
        cleaned = _clean_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def fix_urls_in_json(text: str) -> str:
    """Repair ``""https://x""`` and unquoted ``"url": https://x`` values."""
    text = _DOUBLE_QUOTED_URL_RE.sub(r'"\1"', text)
    return _UNQUOTED_URL_VALUE_RE.sub(r'\1"\2"', text)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text, strict=False)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def try_repair_json(raw: Optional[str]) -> Optional[str]:
    """Cleaned JSON text if ``raw`` can be repaired into an object, else None."""
    cleaned = sanitize(raw)
    if _loads_object(cleaned) is not None:
        return cleaned

    # Unquoted URLs contain "//", which the comment pass would eat
    url_fixed = sanitize(fix_urls_in_json(raw or ""))
    if _loads_object(url_fixed) is not None:
        return url_fixed
    return None


def parse_json_object(raw: Optional[str]) -> ParseResult:
    """Parse LLM output into a dict, reporting failure as a value."""
    if not raw or not raw.strip():
        return SanitizeFailure(reason="empty response", excerpt="")

    repaired = try_repair_json(raw)
    if repaired is None:
        reason = "no balanced JSON object" if "{" not in raw else "unparseable JSON"
        return SanitizeFailure(reason=reason, excerpt=raw.strip()[:200])
    return ParseOk(value=json.loads(repaired, strict=False), text=repaired)


def extract_json_array(raw: Optional[str]) -> Optional[list]:
    """Pull the first balanced ``[...]`` out of ``raw`` and parse it."""
    text = _FENCE_RE.sub("", raw or "").strip()
    start = text.find("[")
    if start == -1:
        return None
    end = _matching_close(text, start, "[", "]")
    if end is None:
        return None
    candidate = _clean_outside_strings(text[start : end + 1])
    try:
        value = json.loads(candidate, strict=False)
    except (json.JSONDecodeError, ValueError):
        return None
    return value if isinstance(value, list) else None
