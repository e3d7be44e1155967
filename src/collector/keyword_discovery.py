"""
Keyword Discovery Engine

Builds the keyword set a domain plausibly ranks for, then checks real SERP
positions:

1. Brand variants from the domain (brand + qualifiers, bare domain token)
2. Content candidates from the generative extractor (advisory only)
3. Validation of candidates against Common Crawl URL slugs -> confidence
4. Low-confidence candidates dropped (brand variants always kept)
5. Related keywords from Common Crawl paths on the same TLD
6. Sequential, gated rank check through Google Custom Search
7. Summary: top-10/top-100 counts, average position, intent breakdown

Every step except the rank check is allowed to fail: a broken extractor or
validator only shrinks the keyword set.
"""

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from src.integrations.base import ProviderAPIError, ProviderErrorCode
from src.models import (
    DiscoveredKeyword,
    IntentBreakdown,
    KeywordDiscoveryResult,
    KeywordType,
    PageFacts,
    SearchIntent,
)
from src.scoring.helpers import round_half_up
from src.utils.domain import bare_domain_token, extract_brand_name
from src.utils.rate_limit import FixedIntervalGate, RateLimitExhausted

logger = logging.getLogger(__name__)


# Qualifiers appended to the brand name (Thai market first)
BRAND_QUALIFIERS = (
    "ประกัน",
    "ประกันภัย",
    "insurance",
    "ราคา",
    "price",
    "รีวิว",
    "review",
    "ที่ไหนดี",
    "ดีไหม",
)

MIN_CONFIDENCE = 0.3
SILENT_CONFIDENCE = 0.3
RELATED_CONFIDENCE = 0.4

# Errors that make every further rank lookup pointless
_FATAL_RANK_ERRORS = (ProviderErrorCode.AUTH_FAILED, ProviderErrorCode.QUOTA_EXHAUSTED)


@dataclass(frozen=True)
class ValidationSignal:
    """What the secondary signal said about one candidate."""
    pages: int = 0
    contradicted: bool = False


@dataclass(frozen=True)
class ScoredCandidate:
    """Non-branded keyword with its merged confidence."""
    keyword: str
    intent: SearchIntent
    confidence: float


# ============================================================================
# PURE STEPS
# ============================================================================

def generate_brand_keywords(brand_name: str, domain: str) -> List[str]:
    """
    Brand variants in lookup order.

    Example: "msig" -> ["msig", "msig ประกัน", ..., "msig ดีไหม"]
    """
    if not brand_name:
        return []

    keywords = [brand_name]
    keywords.extend(f"{brand_name} {qualifier}" for qualifier in BRAND_QUALIFIERS)

    token = bare_domain_token(domain)
    if token and token != brand_name:
        keywords.append(token)

    return list(dict.fromkeys(keywords))


def validation_confidence(signal: Optional[ValidationSignal]) -> float:
    """
    Confidence for a content candidate.

    Corroborated: min(1, 0.5 + pages/20). Silent or unavailable: 0.3.
    Explicitly contradicted: 0.0.
    """
    if signal is None:
        return SILENT_CONFIDENCE
    if signal.contradicted:
        return 0.0
    if signal.pages > 0:
        return min(1.0, 0.5 + signal.pages / 20)
    return SILENT_CONFIDENCE


def filter_candidates(
    candidates: Sequence[ScoredCandidate],
    min_confidence: float = MIN_CONFIDENCE,
) -> List[ScoredCandidate]:
    """Drop content candidates below ``min_confidence`` (the threshold itself is kept)."""
    kept: List[ScoredCandidate] = []
    for candidate in candidates:
        if candidate.confidence < min_confidence:
            logger.debug(f"Dropping '{candidate.keyword}' (confidence {candidate.confidence:.2f})")
            continue
        kept.append(candidate)
    return kept


def build_intent_breakdown(keywords: Sequence[DiscoveredKeyword]) -> IntentBreakdown:
    """
    Intent counts and the dominant intent.

    Ties resolve in declaration order: informational, commercial,
    transactional, navigational. An empty set is informational at 0%.
    """
    counts: Dict[SearchIntent, int] = {intent: 0 for intent in SearchIntent}
    for kw in keywords:
        counts[kw.intent] += 1

    total = len(keywords)
    if total == 0:
        return IntentBreakdown()

    dominant = SearchIntent.INFORMATIONAL
    for intent in SearchIntent:
        if counts[intent] > counts[dominant]:
            dominant = intent

    return IntentBreakdown(
        informational=counts[SearchIntent.INFORMATIONAL],
        commercial=counts[SearchIntent.COMMERCIAL],
        transactional=counts[SearchIntent.TRANSACTIONAL],
        navigational=counts[SearchIntent.NAVIGATIONAL],
        dominant=dominant,
        dominant_percent=round_half_up(counts[dominant] / total * 100, 1),
    )


def summarize_keywords(keywords: Sequence[DiscoveredKeyword], brand_name: str) -> KeywordDiscoveryResult:
    """Roll ranked keywords up into a KeywordDiscoveryResult."""
    brand_keywords = tuple(k for k in keywords if k.type == KeywordType.BRANDED)
    content_keywords = tuple(k for k in keywords if k.type == KeywordType.NON_BRANDED)

    ranked = [k.position for k in keywords if k.position is not None]
    average_position = round_half_up(sum(ranked) / len(ranked), 1) if ranked else None

    brand_position = None
    for kw in brand_keywords:
        if kw.keyword.lower() == brand_name.lower():
            brand_position = kw.position
            break

    return KeywordDiscoveryResult(
        total_keywords_found=len(keywords),
        keywords_in_top10=sum(1 for k in keywords if k.in_top10),
        keywords_in_top100=sum(1 for k in keywords if k.in_top100),
        average_position=average_position,
        brand_keywords=brand_keywords,
        brand_position=brand_position,
        content_keywords=content_keywords,
        intent_breakdown=build_intent_breakdown(keywords),
        all_keywords=tuple(keywords),
    )


def with_position(keyword: DiscoveredKeyword, position: Optional[int]) -> DiscoveredKeyword:
    return replace(
        keyword,
        position=position,
        in_top10=position is not None and position <= 10,
        in_top100=position is not None and position <= 100,
    )


# ============================================================================
# ENGINE
# ============================================================================

class KeywordDiscoveryEngine:
    """
    Runs discovery for one domain at a time.

    Collaborators are optional and duck-typed:
        extractor:    async extract_keywords(page_facts, brand_name) -> [ContentCandidate]
        validator:    async count_pages(domain, keyword) -> int
                      async find_related_keywords(domain) -> [str]
        rank_checker: async find_position(keyword, domain, depth) -> Optional[int]

    Usage:
        engine = KeywordDiscoveryEngine(rank_checker=search_client, extractor=gemini,
                                        validator=commoncrawl)
        result = await engine.discover("https://shop.co.th", "shop.co.th", page_facts)
    """

    def __init__(
        self,
        rank_checker=None,
        extractor=None,
        validator=None,
        max_rank_checks: int = 30,
        rank_interval: float = 0.2,
        rank_depth: int = 100,
        max_validation: int = 20,
        validation_interval: float = 0.2,
        max_related: int = 5,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.rank_checker = rank_checker
        self.extractor = extractor
        self.validator = validator
        self.max_rank_checks = max_rank_checks
        self.rank_interval = rank_interval
        self.rank_depth = rank_depth
        self.max_validation = max_validation
        self.validation_interval = validation_interval
        self.max_related = max_related
        self._clock = clock
        self._sleep = sleep

    def _gate(self, name: str, interval: float, cap: int) -> FixedIntervalGate:
        # Fresh gate per run: the caps are per scan
        return FixedIntervalGate(interval, max_calls=cap, name=name, clock=self._clock, sleep=self._sleep)

    async def discover(
        self,
        url: str,
        domain: str,
        page_facts: Optional[PageFacts] = None,
    ) -> KeywordDiscoveryResult:
        """
        Discover and rank keywords for ``domain``.

        Raises:
            ProviderAPIError: The rank checker failed with an auth or quota error
        """
        brand_name = extract_brand_name(domain)
        brand_variants = generate_brand_keywords(brand_name, domain)

        raw_candidates = await self._extract(page_facts, brand_name)
        candidates = await self._validate(domain, raw_candidates, brand_variants)
        related = await self._related(domain, brand_variants, candidates)

        keywords: List[DiscoveredKeyword] = [
            DiscoveredKeyword(
                keyword=kw,
                type=KeywordType.BRANDED,
                intent=SearchIntent.NAVIGATIONAL,
                confidence=1.0,
            )
            for kw in brand_variants
        ]
        keywords.extend(
            DiscoveredKeyword(
                keyword=c.keyword,
                type=KeywordType.NON_BRANDED,
                intent=c.intent,
                confidence=c.confidence,
            )
            for c in candidates + related
        )

        ranked = await self._rank(keywords, domain)
        result = summarize_keywords(ranked, brand_name)

        logger.info(
            f"Keyword discovery for {domain}: {result.total_keywords_found} keywords, "
            f"{result.keywords_in_top10} in top 10, {result.keywords_in_top100} in top 100, "
            f"avg position {result.average_position}, brand position {result.brand_position}"
        )
        return result

    async def _extract(self, page_facts: Optional[PageFacts], brand_name: str) -> list:
        if self.extractor is None or page_facts is None:
            return []
        try:
            return list(await self.extractor.extract_keywords(page_facts, brand_name))
        except Exception as e:
            logger.warning(f"Content keyword extraction failed, continuing with brand keywords: {e}")
            return []

    async def _validate(self, domain: str, raw_candidates: list, brand_variants: List[str]) -> List[ScoredCandidate]:
        seen = {kw.lower() for kw in brand_variants}
        gate = self._gate("commoncrawl-validation", self.validation_interval, self.max_validation)
        validator_up = self.validator is not None

        scored: List[ScoredCandidate] = []
        for raw in raw_candidates:
            keyword = raw.keyword.strip()
            if not keyword or keyword.lower() in seen:
                continue
            seen.add(keyword.lower())

            signal = None
            if validator_up and gate.has_capacity():
                await gate.acquire()
                try:
                    signal = ValidationSignal(pages=await self.validator.count_pages(domain, keyword))
                except Exception as e:
                    # Validator unreachable: every remaining candidate is silent
                    logger.warning(f"Keyword validation unavailable for {domain}: {e}")
                    validator_up = False

            scored.append(ScoredCandidate(keyword, SearchIntent.parse(raw.intent), validation_confidence(signal)))

        return filter_candidates(scored)

    async def _related(
        self,
        domain: str,
        brand_variants: List[str],
        candidates: List[ScoredCandidate],
    ) -> List[ScoredCandidate]:
        if self.validator is None or self.max_related <= 0:
            return []
        try:
            found = await self.validator.find_related_keywords(domain)
        except Exception as e:
            logger.warning(f"Related keyword lookup failed for {domain}: {e}")
            return []

        present = {kw.lower() for kw in brand_variants} | {c.keyword.lower() for c in candidates}
        related: List[ScoredCandidate] = []
        for keyword in found:
            if keyword.lower() in present:
                continue
            present.add(keyword.lower())
            related.append(ScoredCandidate(keyword, SearchIntent.INFORMATIONAL, RELATED_CONFIDENCE))
            if len(related) >= self.max_related:
                break
        return related

    async def _rank(self, keywords: List[DiscoveredKeyword], domain: str) -> List[DiscoveredKeyword]:
        if self.rank_checker is None:
            return keywords

        gate = self._gate("rank-lookup", self.rank_interval, self.max_rank_checks)
        ranked: List[DiscoveredKeyword] = []
        stopped = False

        for kw in keywords:
            if stopped:
                ranked.append(kw)
                continue
            try:
                await gate.acquire()
            except RateLimitExhausted:
                logger.info(f"Rank check cap of {self.max_rank_checks} reached for {domain}")
                stopped = True
                ranked.append(kw)
                continue

            try:
                position = await self.rank_checker.find_position(kw.keyword, domain, self.rank_depth)
            except ProviderAPIError as e:
                if e.code in _FATAL_RANK_ERRORS:
                    raise
                logger.warning(f"Rank check failed for '{kw.keyword}': {e}")
                if e.code == ProviderErrorCode.RATE_LIMITED:
                    stopped = True
                position = None

            ranked.append(with_position(kw, position))

        return ranked
