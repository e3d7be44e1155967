"""
Scan Service

Orchestrates one readiness scan:
1. Input validation (target URLs, competitor URLs)
2. Page scraping (the only failure surfaced to the caller)
3. PageSpeed, aggregated provider metrics and brand signals per domain
4. Scoring of every URL and averaging per domain
5. Competitor scans, comparison, recommendations and score label

Domains are scanned one after another so rank lookups are never parallel;
URLs within a domain are fetched concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.collector.adapters import (
    CommonCrawlBacklinkAdapter,
    DataForSEOBacklinkAdapter,
    DataForSEOKeywordAdapter,
    KeywordDiscoveryAdapter,
    MozBacklinkAdapter,
)
from src.collector.aggregator import CascadingAggregator
from src.collector.keyword_discovery import KeywordDiscoveryEngine
from src.integrations.config import ProviderClients
from src.integrations.scraper import ScrapeError
from src.models import (
    BrandSignals,
    DetailedScores,
    PageFacts,
    PerformanceFacts,
    ScanTarget,
    SentimentFacts,
    UnifiedMetrics,
)
from src.scoring import (
    calculate_average_scores,
    calculate_total_score,
    compare_scores,
    generate_recommendations,
    get_score_label,
)
from src.utils.domain import ensure_url, extract_brand_name, normalize_domain

logger = logging.getLogger(__name__)


class ScanInputError(ValueError):
    """The scan request names no usable URL."""
    pass


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class UrlScan:
    """One scored URL."""
    url: str
    page: PageFacts
    performance: Optional[PerformanceFacts]
    scores: DetailedScores

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "score": self.scores.total,
            "scores": self.scores.to_dict(),
            "pagespeed": self.performance.to_dict() if self.performance else None,
        }


@dataclass
class DomainScan:
    """Every scored URL of a domain plus the domain-level signals."""
    domain: str
    url_scans: List[UrlScan]
    average: DetailedScores
    unified: UnifiedMetrics
    brand: BrandSignals
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "urls": [s.url for s in self.url_scans],
            "urlCount": len(self.url_scans),
            "score": self.average.total,
            "averageScore": self.average.to_dict(),
            "urlResults": [s.to_dict() for s in self.url_scans],
        }


def validate_urls(values: Sequence[str], limit: int) -> List[str]:
    """
    Normalize URLs, dropping duplicates and anything without a usable host.

    Raises:
        ScanInputError: No usable URL remains
    """
    urls: List[str] = []
    for value in values:
        if not value or not value.strip():
            continue
        url = ensure_url(value)
        host = normalize_domain(url)
        if not host or "." not in host:
            logger.warning(f"Ignoring invalid URL: {value}")
            continue
        if url not in urls:
            urls.append(url)

    if not urls:
        raise ScanInputError("No valid URL provided")
    return urls[:limit]


# ============================================================================
# SERVICE
# ============================================================================

class ScanService:
    """
    Runs scans against the configured providers.

    Usage:
        async with ProviderClients(get_settings()) as clients:
            service = ScanService(clients)
            result = await service.scan("https://shop.co.th", competitors=["rival.co.th"])
    """

    def __init__(self, clients: ProviderClients, aggregator: Optional[CascadingAggregator] = None):
        """
        Initialize scan service.

        Args:
            clients: Provider clients (also supplies settings and the cache)
            aggregator: Prebuilt aggregator (defaults to the standard cascade)
        """
        self.clients = clients
        self.settings = clients.settings
        self.discovery: Optional[KeywordDiscoveryAdapter] = None

        if aggregator is None:
            aggregator = self._build_aggregator()
        self.aggregator = aggregator

    def _build_aggregator(self) -> CascadingAggregator:
        settings = self.settings
        clients = self.clients

        engine = KeywordDiscoveryEngine(
            rank_checker=clients.custom_search,
            extractor=clients.gemini,
            validator=clients.commoncrawl,
            max_rank_checks=settings.MAX_RANK_CHECKS,
            rank_interval=settings.RANK_LOOKUP_INTERVAL,
            rank_depth=settings.RANK_LOOKUP_DEPTH,
            max_validation=settings.MAX_VALIDATION_CANDIDATES,
            validation_interval=settings.VALIDATION_INTERVAL,
            max_related=settings.MAX_RELATED_KEYWORDS,
        )
        self.discovery = KeywordDiscoveryAdapter(
            engine,
            configured=clients.has_custom_search,
            timeout=settings.DISCOVERY_TIMEOUT,
        )
        moz = MozBacklinkAdapter(clients.moz)

        return CascadingAggregator(
            keyword_adapters=[
                self.discovery,
                DataForSEOKeywordAdapter(
                    clients.dataforseo,
                    location_code=settings.DATAFORSEO_LOCATION_CODE,
                    language_code=settings.DATAFORSEO_LANGUAGE_CODE,
                ),
            ],
            backlink_adapters=[
                CommonCrawlBacklinkAdapter(enabled=settings.COMMONCRAWL_ENABLED),
                moz,
                DataForSEOBacklinkAdapter(clients.dataforseo),
            ],
            authority_adapters=[moz],
            provider_timeout=settings.PROVIDER_TIMEOUT,
            soft_deadline=settings.SCAN_SOFT_DEADLINE,
            cache=clients.cache,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_api_status(self) -> Dict[str, Any]:
        """Configured providers and the cascade adapters."""
        return {
            "providers": self.clients.status(),
            "adapters": self.aggregator.get_api_status(),
            "cache": self.clients.cache.get_stats() if self.clients.cache is not None else None,
        }

    async def scan(
        self,
        url: Optional[str] = None,
        urls: Optional[Sequence[str]] = None,
        competitors: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """
        Scan the target URL(s) and optional competitors.

        Args:
            url: Single target URL (ignored when ``urls`` is given)
            urls: Several URLs of the target, averaged into one score
            competitors: Competitor URLs, one per competitor

        Returns:
            Response payload (camelCase keys)

        Raises:
            ScanInputError: No valid target URL
            ScrapeError: No target URL could be fetched
        """
        targets = validate_urls(list(urls or []) or [url or ""], self.settings.MAX_SCAN_URLS)
        competitor_urls: List[str] = []
        if competitors:
            try:
                competitor_urls = validate_urls(competitors, self.settings.MAX_COMPETITORS)
            except ScanInputError:
                logger.warning("No valid competitor URL, scanning target only")

        logger.info(f"Scan requested: {targets[0]} ({len(targets)} URLs, {len(competitor_urls)} competitors)")

        target_scans = await self.scan_urls(targets)
        main = target_scans[0]
        if len(target_scans) == 1:
            average = main.average
        else:
            average = calculate_average_scores([s.average for s in target_scans])

        competitor_scans: List[DomainScan] = []
        for competitor_url in competitor_urls:
            try:
                competitor_scans.extend(await self.scan_urls([competitor_url]))
            except ScrapeError as e:
                logger.warning(f"Skipping competitor {competitor_url}: {e}")

        comparison = None
        if competitor_scans:
            comparison = compare_scores(average, [c.average for c in competitor_scans])

        errors: List[str] = []
        for domain_scan in target_scans:
            errors.extend(domain_scan.errors)

        response = average.to_dict()
        response.update({
            "url": main.url_scans[0].url,
            "domain": main.domain,
            "scoreLabel": get_score_label(average.total),
            "recommendations": [r.to_dict() for r in generate_recommendations(average)],
            "sources": main.unified.source.to_dict(),
            "errors": errors,
            "urlCount": sum(len(s.url_scans) for s in target_scans),
            "urlResults": [u.to_dict() for s in target_scans for u in s.url_scans],
            "comparison": comparison.to_dict() if comparison else None,
            "competitors": [c.to_dict() for c in competitor_scans],
        })

        logger.info(f"Scan complete for {main.domain}: {average.total}/100")
        return response

    async def scan_urls(self, urls: Sequence[str]) -> List[DomainScan]:
        """
        Score URLs grouped by domain, in order of first appearance.

        Unreachable URLs are skipped; ScrapeError is raised only when none
        could be fetched.
        """
        pages = await asyncio.gather(*(self._scrape(u) for u in urls))
        fetched = [(u, page) for u, page in zip(urls, pages) if page is not None]
        if not fetched:
            raise ScrapeError(f"Could not fetch any of {len(urls)} URL(s)", url=urls[0])

        by_domain: Dict[str, List[Tuple[str, PageFacts]]] = {}
        for u, page in fetched:
            by_domain.setdefault(normalize_domain(u), []).append((u, page))

        return [await self._scan_domain(domain, entries) for domain, entries in by_domain.items()]

    # ------------------------------------------------------------------
    # Per-domain steps
    # ------------------------------------------------------------------

    async def _scrape(self, url: str) -> Optional[PageFacts]:
        try:
            return await self.clients.scraper.scrape(url)
        except ScrapeError as e:
            logger.warning(f"Failed to scrape {url}: {e}")
            return None

    async def _scan_domain(self, domain: str, entries: List[Tuple[str, PageFacts]]) -> DomainScan:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.SCAN_SOFT_DEADLINE
        errors: List[str] = []

        first_url, first_page = entries[0]
        target = ScanTarget(url=first_url, domain=domain, page_facts=first_page)
        brand_name = extract_brand_name(domain)

        performances, unified, sentiment = await asyncio.gather(
            asyncio.gather(*(self._performance(u, errors) for u, _ in entries)),
            self.aggregator.aggregate(target),
            self._sentiment(brand_name, domain, deadline, errors),
        )
        errors.extend(unified.errors)

        brand = BrandSignals(
            brand_name=brand_name,
            brand_position=await self._brand_position(brand_name, domain, unified, deadline, errors),
            sentiment=sentiment,
        )

        url_scans = [
            UrlScan(
                url=u,
                page=page,
                performance=performance,
                scores=calculate_total_score(page, performance, unified, brand),
            )
            for (u, page), performance in zip(entries, performances)
        ]
        if len(url_scans) == 1:
            average = url_scans[0].scores
        else:
            average = calculate_average_scores([s.scores for s in url_scans])

        logger.info(f"Scored {domain}: {average.total}/100 over {len(url_scans)} URL(s)")
        return DomainScan(
            domain=domain,
            url_scans=url_scans,
            average=average,
            unified=unified,
            brand=brand,
            errors=errors,
        )

    async def _performance(self, url: str, errors: List[str]) -> Optional[PerformanceFacts]:
        try:
            return await self.clients.pagespeed.analyze(url)
        except Exception as e:
            logger.warning(f"PageSpeed unavailable for {url}: {e}")
            errors.append(f"pagespeed: {e}")
            return None

    async def _sentiment(
        self,
        brand_name: str,
        domain: str,
        deadline: float,
        errors: List[str],
    ) -> Optional[SentimentFacts]:
        gemini = self.clients.gemini
        if gemini is None or not brand_name:
            return None
        return await self._before_deadline(
            gemini.analyze_sentiment(brand_name, domain), "brand sentiment", deadline, errors
        )

    async def _brand_position(
        self,
        brand_name: str,
        domain: str,
        unified: UnifiedMetrics,
        deadline: float,
        errors: List[str],
    ) -> Optional[int]:
        # Keyword discovery already ranked the brand when it supplied this scan's keywords
        if unified.keywords.brand_position is not None:
            return unified.keywords.brand_position

        search = self.clients.custom_search
        if search is None or not brand_name:
            return None
        return await self._before_deadline(
            search.get_brand_position(brand_name, domain), "brand position", deadline, errors
        )

    async def _before_deadline(self, call, label: str, deadline: float, errors: List[str]):
        """Await non-critical enrichment; None if it fails or outlives the deadline."""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            call.close()
            errors.append(f"{label}: soft deadline passed, omitted")
            return None
        try:
            return await asyncio.wait_for(call, timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning(f"{label} omitted after soft deadline")
            errors.append(f"{label}: soft deadline passed, omitted")
        except Exception as e:
            logger.warning(f"{label} unavailable: {e}")
            errors.append(f"{label}: {e}")
        return None
