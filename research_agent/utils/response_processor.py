"""Helpers that turn raw research output into typed sources and hints."""

import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from research_agent.utils.schemas import Source

DEFAULT_TECHNOLOGY_NAME = "Technology Solution"
DEFAULT_SOURCE_URL = "https://www.example.com"

_VALID_CREDIBILITY = {"high", "medium", "low"}
_VALID_SOURCE_TYPES = {
    "documentation",
    "guide",
    "case_study",
    "vendor",
    "community",
    "research",
    "other",
}

_SOURCE_LINE_RE = re.compile(r"SOURCE:\s*\[?(https?://[^\s\]|]+)\]?\s*\|\s*\[?([^|\]\n]+)\]?(?:\s*\|\s*\[?([^\]\n]+)\]?)?", re.IGNORECASE)
_BARE_URL_RE = re.compile(r"https?://[^\s\"'<>()\]\[,]+")

_INDUSTRY_KEYWORDS = [
    ("healthcare", ("healthcare", "hospital", "clinic", "hipaa", "patient")),
    ("finance", ("finance", "bank", "banking", "insurance", "fintech")),
    ("retail", ("retail", "ecommerce", "e-commerce", "store")),
    ("manufacturing", ("manufacturing", "factory", "plant")),
    ("government", ("government", "public sector", "federal", "municipal")),
]

_VENDORS = ["Cisco", "Microsoft", "AWS", "Google", "Oracle", "IBM", "VMware", "SAP"]


def extract_technology_name(user_request: str) -> str:
    """First five words of the request, punctuation stripped."""
    words = re.sub(r"[^\w\s]", "", user_request or "").split()
    name = " ".join(words[:5]).strip()
    return name or DEFAULT_TECHNOLOGY_NAME


def detect_industry(text: str) -> str:
    lowered = (text or "").lower()
    for industry, keywords in _INDUSTRY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return industry
    return "enterprise"


def validate_url(url: Optional[str]) -> str:
    """Return a usable absolute URL, or the default placeholder."""
    if not url or not isinstance(url, str):
        return DEFAULT_SOURCE_URL
    url = url.strip().strip('"').strip("'")
    if not url.startswith("http"):
        url = "https://" + url
    try:
        parsed = urlparse(url)
    except ValueError:
        return DEFAULT_SOURCE_URL
    if not parsed.netloc or "." not in parsed.netloc:
        return DEFAULT_SOURCE_URL
    return url


def _coerce_relevance(value: Any) -> float:
    if isinstance(value, bool):
        return 0.8
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.8
    else:
        return 0.8
    if number > 1 and number <= 100:
        number = number / 100
    return min(max(number, 0.0), 1.0)


def sanitize_sources(sources: Optional[Iterable[Any]], topic: str = "") -> List[Source]:
    """Normalise loosely shaped sources and de-duplicate them by URL.

    Accepts ``Source`` objects, dicts with url/title/relevance/credibility
    keys, or ``"url | title"`` strings.
    """
    result: List[Source] = []
    seen = set()
    for raw in sources or []:
        if isinstance(raw, Source):
            data: Dict[str, Any] = raw.model_dump()
        elif isinstance(raw, dict):
            data = dict(raw)
        elif isinstance(raw, str):
            parts = [part.strip() for part in raw.split("|")]
            data = {"url": parts[0], "title": parts[1] if len(parts) > 1 else parts[0]}
        else:
            continue

        url = validate_url(data.get("url") or data.get("source"))
        if url in seen:
            continue
        seen.add(url)

        title = str(data.get("title") or "").strip() or (
            f"{topic} reference" if topic else url
        )
        credibility = str(data.get("credibility") or "medium").lower()
        if credibility not in _VALID_CREDIBILITY:
            credibility = "medium"
        source_type = data.get("source_type") or data.get("sourceType")
        if source_type not in _VALID_SOURCE_TYPES:
            source_type = None
        summary = data.get("summary")

        result.append(
            Source(
                url=url,
                title=title,
                relevance=_coerce_relevance(data.get("relevance")),
                credibility=credibility,
                summary=str(summary) if summary else None,
                source_type=source_type,
            )
        )
    return result


def parse_source_lines(text: str, topic: str = "") -> List[Source]:
    """Sources from ``SOURCE: url | title | relevance`` lines, else bare URLs."""
    if not text:
        return []
    found: List[Dict[str, Any]] = []
    for match in _SOURCE_LINE_RE.finditer(text):
        url, title, relevance = match.groups()
        found.append(
            {
                "url": url.rstrip(".,;"),
                "title": title.strip(),
                "summary": relevance.strip() if relevance else None,
                "credibility": "high",
            }
        )
    if not found:
        for url in _BARE_URL_RE.findall(text):
            url = url.rstrip(".,;")
            host = urlparse(url).netloc.replace("www.", "")
            found.append({"url": url, "title": f"{host} - {topic}".strip(" -")})
    return sanitize_sources(found, topic)


def _detect_vendor(topic: str) -> str:
    for vendor in _VENDORS:
        if vendor in topic:
            return vendor
    lowered = topic.lower()
    if "office 365" in lowered or "azure" in lowered or "microsoft" in lowered:
        return "Microsoft"
    if "aws" in lowered or "amazon" in lowered:
        return "AWS"
    if "google" in lowered:
        return "Google"
    return "Cisco"


def generate_dynamic_sources(topic: str) -> List[Source]:
    """Plausible vendor and analyst references derived from the topic words."""
    keywords = [word for word in re.sub(r"[^\w\s]", "", topic or "").split() if len(word) > 3]
    main_tech = keywords[0] if keywords else "Technology"
    secondary = keywords[1] if len(keywords) > 1 else "solutions"
    vendor = _detect_vendor(topic or "")
    main_slug = main_tech.lower()
    secondary_slug = secondary.lower()
    vendor_slug = vendor.lower()

    if vendor == "Microsoft":
        vendor_doc = {
            "url": f"https://learn.microsoft.com/en-us/{main_slug}/{secondary_slug}/overview",
            "title": f"{main_tech} Documentation - Microsoft Learn",
        }
    elif vendor == "AWS":
        vendor_doc = {
            "url": f"https://docs.aws.amazon.com/{main_slug}/latest/userguide/what-is-{main_slug}.html",
            "title": f"AWS {main_tech} User Guide",
        }
    elif vendor == "Google":
        vendor_doc = {
            "url": f"https://cloud.google.com/{main_slug}/docs/overview",
            "title": f"Google Cloud {main_tech} Documentation",
        }
    else:
        vendor_doc = {
            "url": f"https://www.{vendor_slug}.com/c/en/us/products/{main_slug}/index.html",
            "title": f"{vendor} {main_tech} Documentation",
        }
    vendor_doc.update(credibility="high", source_type="documentation", relevance=0.9)

    return sanitize_sources(
        [
            vendor_doc,
            {
                "url": f"https://www.gartner.com/en/documents/research/{main_slug}-{secondary_slug}",
                "title": f"Gartner Research: {main_tech} {secondary} Market Analysis",
                "credibility": "high",
                "source_type": "research",
                "relevance": 0.8,
            },
            {
                "url": f"https://techcommunity.{vendor_slug}.com/{main_slug}-blog/best-practices-for-{main_slug}-implementation",
                "title": f"Best Practices for {main_tech} Implementation",
                "credibility": "medium",
                "source_type": "guide",
                "relevance": 0.75,
            },
            {
                "url": f"https://community.{vendor_slug}.com/{main_slug}-forum",
                "title": f"{vendor} Community: {main_tech} Forum",
                "credibility": "medium",
                "source_type": "community",
                "relevance": 0.6,
            },
            {
                "url": f"https://www.{vendor_slug}.com/support/docs/{main_slug}/implementation-guide.html",
                "title": f"{main_tech} Implementation Guide",
                "credibility": "high",
                "source_type": "guide",
                "relevance": 0.85,
            },
        ],
        topic,
    )
