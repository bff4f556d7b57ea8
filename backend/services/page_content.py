"""
Landing page content fetcher and analyzer.

Fetching and analysis are split so the analysis can be tested on static HTML:

- PageContentFetcher.fetch_html(): httpx GET with timeout and User-Agent.
  Non-2xx and non-HTML responses are "no data" (None). Transport failures
  raise httpx errors; the Researcher logs them and moves on.
- analyze_page(): BeautifulSoup extraction of title, H1, meta description,
  canonical URL, word count and a 500-character text preview, plus the
  skill-driven parts: JSON-LD schema types and schema flags, content
  signals (CSS selectors) and URL-based page classification.
"""

import json
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from backend.models import ContentSignalResult, PageContent
from backend.skills.types import ContentSignal, PagePattern, ResearcherSkill

logger = logging.getLogger(__name__)

CONTENT_PREVIEW_CHARS = 500

_WORD_PATTERN = re.compile(r"\b\w+\b")
_STRIPPED_TAGS = ["script", "style", "noscript", "iframe", "svg"]


# =============================================================================
# Fetching
# =============================================================================

class PageContentFetcher:
    """
    Fetches landing page HTML.

    Args:
        timeout: Default request timeout in seconds.
        user_agent: User-Agent header sent with every request.
        client: Optional shared httpx.AsyncClient (tests inject a mock
            transport). When omitted a client is opened per request.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = "SearchInterplayBot/1.0",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "PageContentFetcher":
        return cls(
            timeout=settings.page_fetch_timeout_seconds,
            user_agent=settings.page_fetch_user_agent,
            client=client,
        )

    @property
    def headers(self) -> dict:
        return {"User-Agent": self.user_agent, "Accept": "text/html"}

    async def _get(self, url: str, timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, headers=self.headers, timeout=timeout)
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as client:
            return await client.get(url, headers=self.headers)

    async def fetch_html(self, url: str, timeout: Optional[float] = None) -> Optional[str]:
        """
        GET a page and return its HTML.

        Returns:
            The response body, or None for non-2xx or non-HTML responses.

        Raises:
            httpx.HTTPError: On connection failures and timeouts.
        """
        response = await self._get(url, timeout if timeout is not None else self.timeout)

        if not response.is_success:
            logger.warning(f"Page fetch returned HTTP {response.status_code} for {url}")
            return None

        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type.lower():
            logger.warning(f"Page fetch skipped non-HTML content ({content_type}) for {url}")
            return None

        return response.text


# =============================================================================
# Analysis
# =============================================================================

def _text_of(tag: Any) -> Optional[str]:
    if tag is None:
        return None
    text = tag.get_text(" ", strip=True)
    return text or None


def _meta_description(soup: BeautifulSoup) -> Optional[str]:
    for meta in soup.find_all("meta"):
        name = (meta.get("name") or "").lower()
        if name == "description":
            content = (meta.get("content") or "").strip()
            return content or None
    return None


def _canonical(soup: BeautifulSoup) -> Optional[str]:
    tag = soup.find("link", rel="canonical")
    if tag is None:
        return None
    return tag.get("href") or None


def schema_types(data: Any) -> List[str]:
    """Collect @type values from decoded JSON-LD, recursing into lists and @graph."""
    types: List[str] = []
    if isinstance(data, list):
        for item in data:
            types.extend(schema_types(item))
    elif isinstance(data, dict):
        declared = data.get("@type")
        if isinstance(declared, str):
            types.append(declared)
        elif isinstance(declared, list):
            types.extend(str(item) for item in declared)
        graph = data.get("@graph")
        if isinstance(graph, list):
            types.extend(schema_types(graph))
    return types


def extract_schema(soup: BeautifulSoup, skill: ResearcherSkill) -> Tuple[List[str], List[str]]:
    """
    JSON-LD types found on the page and the schema problems they imply.

    Returns:
        (detected_types, errors). Errors cover unparseable JSON-LD, types the
        skill wants but are missing, and types the skill flags as wrong for
        the business.
    """
    detected: List[str] = []
    errors: List[str] = []

    for script in soup.find_all("script", type="application/ld+json"):
        payload = script.string or script.get_text() or ""
        if not payload.strip():
            continue
        try:
            detected.extend(schema_types(json.loads(payload)))
        except json.JSONDecodeError:
            errors.append("Invalid JSON-LD syntax")

    found = set(detected)
    for required in skill.schema_extraction.flag_if_missing:
        if required not in found:
            errors.append(f"Missing recommended schema: {required}")
    for unwanted in skill.schema_extraction.flag_if_present:
        if unwanted in found:
            errors.append(f"Inappropriate schema present: {unwanted}")

    return list(dict.fromkeys(detected)), errors


def detect_content_signals(soup: BeautifulSoup, signals: Iterable[ContentSignal]) -> List[ContentSignalResult]:
    results: List[ContentSignalResult] = []
    for signal in signals:
        try:
            present = soup.select_one(signal.selector) is not None
        except SelectorSyntaxError:
            logger.warning(f"Invalid content signal selector for {signal.id}: {signal.selector!r}")
            present = False
        results.append(
            ContentSignalResult(id=signal.id, name=signal.name, importance=signal.importance, present=present)
        )
    return results


def classify_page(
    url: str,
    patterns: Iterable[PagePattern],
    default_type: str,
    threshold: float,
) -> Tuple[str, float]:
    """
    Classify a page by URL.

    The highest-confidence matching pattern wins; below `threshold` the
    default type is used.

    Returns:
        (page_type, confidence)
    """
    best: Optional[PagePattern] = None
    for pattern in patterns:
        if re.search(pattern.pattern, url, re.IGNORECASE):
            if best is None or pattern.confidence > best.confidence:
                best = pattern

    if best is not None and best.confidence >= threshold:
        return best.page_type, best.confidence
    return default_type, 0.0


def analyze_page(url: str, html: str, skill: ResearcherSkill) -> PageContent:
    """
    Extract structured page facts from HTML.

    Args:
        url: Page URL (used for classification only).
        html: Raw HTML document.
        skill: Researcher skill supplying schema flags, content signals and
            classification patterns.

    Returns:
        PageContent
    """
    soup = BeautifulSoup(html, "html.parser")

    title = _text_of(soup.find("title"))
    h1 = _text_of(soup.find("h1"))
    meta_description = _meta_description(soup)
    canonical = _canonical(soup)

    # Schema and signals need the script tags, so they run before stripping
    detected_schema, schema_errors = extract_schema(soup, skill)
    signals = detect_content_signals(soup, skill.content_signals)

    for node in soup(_STRIPPED_TAGS):
        node.decompose()
    body = soup.body or soup
    text = " ".join(body.get_text(" ", strip=True).split())

    page_type, confidence = classify_page(
        url,
        skill.page_patterns,
        skill.default_page_type,
        skill.page_confidence_threshold,
    )

    return PageContent(
        title=title,
        h1=h1,
        metaDescription=meta_description,
        canonicalUrl=canonical,
        wordCount=len(_WORD_PATTERN.findall(text)),
        contentPreview=text[:CONTENT_PREVIEW_CHARS],
        schemaTypes=detected_schema,
        schemaErrors=schema_errors,
        contentSignals=signals,
        pageType=page_type,
        pageTypeConfidence=confidence,
    )


__all__ = [
    "CONTENT_PREVIEW_CHARS",
    "PageContentFetcher",
    "schema_types",
    "extract_schema",
    "detect_content_signals",
    "classify_page",
    "analyze_page",
]
