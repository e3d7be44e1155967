"""
Gemini API Client

Generative calls used as advisory signals:
- Content keyword extraction from scraped page facts
- Brand sentiment from community, review and PR mentions

Gemini answers in loosely formatted JSON (code fences, trailing commas), so
parsing is forgiving and falls back to regex extraction.

API: https://ai.google.dev/api/generate-content
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from src.models import PageFacts, SentimentFacts

from .base import ProviderAPIError, ProviderErrorCode
from .http import BaseAPIClient, RetryConfig

logger = logging.getLogger(__name__)


class GeminiError(ProviderAPIError):
    """Custom exception for Gemini API errors."""


@dataclass(frozen=True)
class ContentCandidate:
    """Keyword suggested by the extractor."""
    keyword: str
    intent: str
    branded: bool = False


# ============================================================================
# RESPONSE PARSING
# ============================================================================

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_KEYWORD_RE = re.compile(r'"keyword"\s*:\s*"([^"]+)"', re.IGNORECASE)
_INTENT_RE = re.compile(r'"intent"\s*:\s*"([^"]+)"', re.IGNORECASE)


def clean_json_text(text: str) -> str:
    """Strip code fences, isolate the outermost object and drop trailing commas."""
    cleaned = _FENCE_RE.sub("", text or "").strip()
    match = re.search(r"\{[\s\S]*\}", cleaned)
    if match:
        cleaned = match.group(0)
    return _TRAILING_COMMA_RE.sub(r"\1", cleaned)


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Best-effort JSON object from model output, or None."""
    try:
        data = json.loads(clean_json_text(text))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_keyword_response(text: str) -> List[ContentCandidate]:
    """
    Parse keyword extraction output.

    Expected shape:
        {"brandedKeywords": [{"keyword": ..., "intent": ...}],
         "nonBrandedKeywords": [...]}

    When the JSON is broken, keyword/intent pairs are recovered by regex and
    treated as non-branded.
    """
    data = parse_json_object(text)

    if data is None:
        keywords = _KEYWORD_RE.findall(text or "")
        intents = _INTENT_RE.findall(text or "")
        if keywords:
            logger.warning(f"Gemini keyword JSON unparseable, recovered {len(keywords)} by regex")
        return [
            ContentCandidate(
                keyword=kw.strip(),
                intent=(intents[i] if i < len(intents) else "informational").lower(),
            )
            for i, kw in enumerate(keywords)
            if kw.strip()
        ]

    candidates: List[ContentCandidate] = []
    for key, branded in (("brandedKeywords", True), ("nonBrandedKeywords", False)):
        items = data.get(key)
        if not isinstance(items, list):
            continue
        for item in items:
            if not isinstance(item, dict):
                continue
            keyword = str(item.get("keyword") or "").strip()
            intent = str(item.get("intent") or "").strip().lower()
            if keyword and intent:
                candidates.append(ContentCandidate(keyword=keyword, intent=intent, branded=branded))
    return candidates


def parse_sentiment_response(text: str) -> SentimentFacts:
    """
    Parse sentiment output into mention counts.

    Raises:
        ValueError: No JSON object could be recovered
    """
    data = parse_json_object(text)
    if data is None:
        raise ValueError("Sentiment response contained no JSON object")

    def _count(key: str) -> int:
        try:
            return max(0, int(data.get(key) or 0))
        except (TypeError, ValueError):
            return 0

    try:
        confidence = float(data.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0

    sentiment = str(data.get("sentiment") or "neutral").lower()
    if sentiment not in ("positive", "neutral", "negative", "mixed"):
        sentiment = "neutral"

    return SentimentFacts(
        sentiment=sentiment,
        community_positive=_count("community_positive"),
        community_neutral=_count("community_neutral"),
        community_negative=_count("community_negative"),
        pr_mentions=_count("pr_mentions"),
        review_mentions=_count("review_mentions"),
        confidence=min(1.0, max(0.0, confidence)),
    )


# ============================================================================
# PROMPTS
# ============================================================================

KEYWORD_PROMPT = """You are an SEO expert. Analyze the page below and suggest 15-20 keywords it is likely to rank for on Google in the page's own language and market.

## Page
- URL: {url}
- Title: {title}
- Meta Description: {meta}
- H1: {h1}
- H2s: {h2}
- Word Count: {words}
- Brand Name: {brand}

## Instructions
1. Use the H1 as the primary keyword, then repeated terms, title and meta description. Do not only return the brand/domain name.
2. Split into branded keywords (contain the brand name) and non-branded keywords.
3. Give each keyword a search intent: informational, commercial, transactional or navigational.
4. Mix short-tail and long-tail terms.

Return JSON only, no markdown:
{{
  "brandedKeywords": [{{"keyword": "...", "intent": "navigational"}}],
  "nonBrandedKeywords": [{{"keyword": "...", "intent": "commercial"}}]
}}"""


SENTIMENT_PROMPT = """Analyze the brand sentiment for "{brand}"{domain_note} based on your training data.

You cannot search the web. Consider community forums (Reddit, Pantip, industry forums), review sites (Google Reviews, Trustpilot, app stores) and news/PR coverage you know about.

Return ONLY valid JSON:
{{
  "sentiment": "positive|neutral|negative|mixed",
  "community_positive": <number>,
  "community_neutral": <number>,
  "community_negative": <number>,
  "pr_mentions": <number>,
  "review_mentions": <number>,
  "confidence": <0-1>
}}

If you know nothing about this brand, use confidence 0.2 and all counts 0."""


class GeminiClient(BaseAPIClient):
    """
    Async client for the Gemini generateContent endpoint.

    Usage:
        client = GeminiClient(api_key="...")
        candidates = await client.extract_keywords(page_facts, "shop")
        await client.close()
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    provider_name = "gemini"
    error_class = GeminiError

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.3,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            retry_config=retry_config,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self.api_key = api_key
        self.model = model
        self.temperature = temperature

    async def generate(self, prompt: str, max_output_tokens: int = 2048) -> str:
        """
        Run one prompt and return the first candidate's text.

        Raises:
            GeminiError: On API failure or an empty candidate list
        """
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": max_output_tokens,
            },
        }
        response = await self._request_with_retry(
            "POST",
            f"/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json=payload,
        )
        data = self._json(response)

        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise GeminiError(
                "No content returned from Gemini API",
                response=data,
                code=ProviderErrorCode.EMPTY_RESULT,
            )

    async def extract_keywords(self, page: PageFacts, brand_name: str) -> List[ContentCandidate]:
        """Suggest keywords the page could rank for."""
        prompt = KEYWORD_PROMPT.format(
            url=page.url,
            title=page.title or "N/A",
            meta=page.meta_description or "N/A",
            h1=", ".join(page.h1) or "N/A",
            h2=", ".join(page.h2[:10]) or "N/A",
            words=page.word_count,
            brand=brand_name,
        )
        text = await self.generate(prompt)
        candidates = parse_keyword_response(text)
        logger.info(f"Gemini: extracted {len(candidates)} keywords for {page.url}")
        return candidates

    async def analyze_sentiment(self, brand_name: str, domain: Optional[str] = None) -> SentimentFacts:
        """Mention counts and overall sentiment for a brand."""
        domain_note = f" (domain: {domain})" if domain else ""
        text = await self.generate(
            SENTIMENT_PROMPT.format(brand=brand_name, domain_note=domain_note),
            max_output_tokens=1024,
        )
        facts = parse_sentiment_response(text)
        logger.info(
            f"Gemini: sentiment for '{brand_name}' is {facts.sentiment} "
            f"(confidence {facts.confidence:.0%})"
        )
        return facts
