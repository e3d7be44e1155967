"""
Tests for the Scan Service

Tests cover:
- URL validation
- Single-URL, multi-URL and competitor scans with fake clients
- Failure handling (unreachable pages, PageSpeed errors, soft deadline)
- Brand position reuse from keyword discovery
- Default cascade wiring from settings
"""

import asyncio
from dataclasses import replace
from typing import Dict, List, Optional

import pytest

from conftest import StubBacklinkAdapter, StubKeywordAdapter, ok_backlinks
from src.collector.adapters import map_discovery_result
from src.collector.aggregator import CascadingAggregator
from src.collector.keyword_discovery import summarize_keywords
from src.integrations.base import KeywordAdapter, Ok
from src.integrations.config import ProviderClients
from src.integrations.pagespeed import PageSpeedError
from src.integrations.scraper import ScrapeError
from src.models import (
    DiscoveredKeyword,
    IntentBreakdown,
    KeywordMetrics,
    KeywordType,
    PageFacts,
    PerformanceFacts,
    SearchIntent,
    SentimentFacts,
)
from src.services import ScanInputError, ScanService, validate_urls
from src.utils.config import Settings


# ============================================================================
# Fakes
# ============================================================================

class FakeScraper:
    def __init__(self, pages: Dict[str, PageFacts]):
        self.pages = pages
        self.calls: List[str] = []

    async def scrape(self, url: str) -> PageFacts:
        self.calls.append(url)
        if url not in self.pages:
            raise ScrapeError(f"{url} returned HTTP 404", url=url, status_code=404)
        return replace(self.pages[url], url=url)


class FakePageSpeed:
    def __init__(self, facts: Optional[PerformanceFacts] = None):
        self.facts = facts

    async def analyze(self, url: str) -> PerformanceFacts:
        if self.facts is None:
            raise PageSpeedError("API request failed: 500", status_code=500)
        return self.facts


class FakeSearch:
    def __init__(self, position: Optional[int] = None):
        self.position = position
        self.calls: List[str] = []

    async def get_brand_position(self, brand_name: str, domain: str) -> Optional[int]:
        self.calls.append(brand_name)
        return self.position


class FakeGemini:
    def __init__(self, sentiment: Optional[SentimentFacts] = None, delay: float = 0.0):
        self.sentiment = sentiment
        self.delay = delay

    async def analyze_sentiment(self, brand_name: str, domain: Optional[str] = None) -> SentimentFacts:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.sentiment


class FakeClients:
    """Duck-typed stand-in for ProviderClients."""

    def __init__(self, settings: Settings, scraper, pagespeed, custom_search=None, gemini=None):
        self.settings = settings
        self.cache = None
        self.scraper = scraper
        self.pagespeed = pagespeed
        self.custom_search = custom_search
        self.gemini = gemini

    def status(self) -> Dict[str, bool]:
        return {"google_custom_search": self.custom_search is not None, "gemini": self.gemini is not None}

    async def close(self):
        pass


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **{"CACHE_ENABLED": False, **overrides})


def strong_keywords() -> Ok:
    return Ok(KeywordMetrics(
        total=20, top10=12, top100=20, avg_position=2.5,
        intent_breakdown=IntentBreakdown(
            commercial=17, informational=3,
            dominant=SearchIntent.COMMERCIAL, dominant_percent=85.0,
        ),
    ))


def discovered_keywords(brand_position: int) -> Ok:
    """Keyword resolution as keyword discovery reports it, brand included."""
    return Ok(map_discovery_result(summarize_keywords([
        DiscoveredKeyword(
            keyword="shop",
            type=KeywordType.BRANDED,
            intent=SearchIntent.NAVIGATIONAL,
            confidence=1.0,
            position=brand_position,
            in_top10=True,
            in_top100=True,
        ),
        DiscoveredKeyword(
            keyword="shop online",
            type=KeywordType.NON_BRANDED,
            intent=SearchIntent.COMMERCIAL,
            confidence=0.6,
            position=8,
            in_top10=True,
            in_top100=True,
        ),
    ], "shop")))


class SequencedKeywordAdapter(KeywordAdapter):
    """Hands out one (result, delay) pair per call, in call order."""

    name = "google_custom_search"

    def __init__(self, results):
        self.pending = list(results)

    def is_configured(self) -> bool:
        return True

    async def get_keyword_metrics(self, target):
        result, delay = self.pending.pop(0)
        await asyncio.sleep(delay)
        return result


def make_aggregator(keywords=None, backlinks=None) -> CascadingAggregator:
    return CascadingAggregator(
        keyword_adapters=[keywords or StubKeywordAdapter("google_custom_search", strong_keywords())],
        backlink_adapters=[backlinks or StubBacklinkAdapter("moz", ok_backlinks(referring_domains=120, domain_authority=65))],
    )


@pytest.fixture
def pages(rich_page, bare_page) -> Dict[str, PageFacts]:
    return {
        "https://shop.co.th": rich_page,
        "https://shop.co.th/blog": bare_page,
        "https://rival.co.th": bare_page,
    }


@pytest.fixture
def clients(pages, good_performance) -> FakeClients:
    return FakeClients(
        make_settings(),
        scraper=FakeScraper(pages),
        pagespeed=FakePageSpeed(good_performance),
        custom_search=FakeSearch(position=1),
        gemini=FakeGemini(SentimentFacts(sentiment="positive", community_positive=3)),
    )


# ============================================================================
# Validation
# ============================================================================

class TestValidateUrls:
    """Input normalization."""

    def test_scheme_added_and_duplicates_dropped(self):
        assert validate_urls(["shop.co.th", "https://shop.co.th", "  "], 30) == ["https://shop.co.th"]

    def test_invalid_hosts_dropped(self):
        assert validate_urls(["localhost", "http://rival.com/page"], 30) == ["http://rival.com/page"]

    def test_limit(self):
        urls = [f"https://site{i}.com" for i in range(10)]

        assert len(validate_urls(urls, 4)) == 4

    def test_nothing_usable(self):
        with pytest.raises(ScanInputError):
            validate_urls(["", "nohost"], 30)


# ============================================================================
# Scans
# ============================================================================

@pytest.mark.asyncio
class TestScanService:
    """End-to-end scans over fake clients."""

    async def test_single_url(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(url="shop.co.th")

        assert result["total"] == 100
        assert result["domain"] == "shop.co.th"
        assert result["url"] == "https://shop.co.th"
        assert result["scoreLabel"]["label"] == "Excellent"
        assert result["recommendations"] == []
        assert result["sources"]["keywords"] == "primary"
        assert result["sources"]["backlinksProvider"] == "moz"
        assert result["errors"] == []
        assert result["urlCount"] == 1
        assert result["comparison"] is None
        assert result["competitors"] == []
        assert result["urlResults"][0]["pagespeed"]["performanceScore"] == 95

    async def test_missing_url(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        with pytest.raises(ScanInputError):
            await service.scan()

    async def test_unreachable_target(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        with pytest.raises(ScrapeError):
            await service.scan(url="https://down.co.th")

    async def test_pagespeed_failure_is_recorded(self, clients):
        clients.pagespeed = FakePageSpeed(None)
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(url="https://shop.co.th")

        assert result["brandRanking"] == 12
        assert result["breakdown"]["brandRanking"]["lcp"]["value"] == "N/A"
        assert any(e.startswith("pagespeed:") for e in result["errors"])
        assert result["urlResults"][0]["pagespeed"] is None

    async def test_provider_errors_surface(self, clients):
        broken = StubKeywordAdapter("google_custom_search", configured=False)
        service = ScanService(clients, aggregator=make_aggregator(keywords=broken))

        result = await service.scan(url="https://shop.co.th")

        assert result["sources"]["keywords"] == "estimate"
        assert "google_custom_search: not_configured: credentials not set" in result["errors"]

    async def test_several_urls_of_one_domain(self, clients):
        keywords = StubKeywordAdapter("google_custom_search", strong_keywords())
        service = ScanService(clients, aggregator=make_aggregator(keywords=keywords))

        result = await service.scan(urls=["https://shop.co.th", "https://shop.co.th/blog", "https://shop.co.th/gone"])

        assert result["urlCount"] == 2
        assert [u["url"] for u in result["urlResults"]] == ["https://shop.co.th", "https://shop.co.th/blog"]
        assert result["contentStructure"] == 15
        # One aggregation per domain
        assert keywords.calls == 1

    async def test_competitors(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(url="https://shop.co.th", competitors=["rival.co.th", "https://gone.co.th"])

        assert result["comparison"]["rank"] == 1
        assert result["comparison"]["totalEntries"] == 2
        assert len(result["competitors"]) == 1
        assert result["competitors"][0]["domain"] == "rival.co.th"
        assert result["competitors"][0]["score"] < result["total"]

    async def test_invalid_competitors_ignored(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(url="https://shop.co.th", competitors=["nohost"])

        assert result["comparison"] is None

    async def test_competitors_capped(self, clients, bare_page):
        for i in range(6):
            clients.scraper.pages[f"https://rival{i}.co.th"] = bare_page
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(
            url="https://shop.co.th",
            competitors=[f"rival{i}.co.th" for i in range(6)],
        )

        assert len(result["competitors"]) == 4

    async def test_sentiment_outliving_deadline_is_omitted(self, clients):
        clients.settings = make_settings(SCAN_SOFT_DEADLINE=0.05)
        clients.gemini = FakeGemini(SentimentFacts(community_positive=3), delay=5)
        service = ScanService(clients, aggregator=make_aggregator())

        result = await service.scan(url="https://shop.co.th")

        assert "brand sentiment: soft deadline passed, omitted" in result["errors"]
        assert result["breakdown"]["brandRanking"]["brandSentiment"]["score"] == 0

    async def test_brand_position_reused_from_discovery(self, clients):
        keywords = StubKeywordAdapter("google_custom_search", discovered_keywords(brand_position=2))
        service = ScanService(clients, aggregator=make_aggregator(keywords=keywords))

        result = await service.scan(url="https://shop.co.th")

        assert clients.custom_search.calls == []
        assert result["breakdown"]["brandRanking"]["brandSearch"]["value"] == "#2"

    async def test_concurrent_scans_keep_their_own_brand_position(self, clients):
        # The first scan's discovery finishes last
        keywords = SequencedKeywordAdapter([
            (discovered_keywords(brand_position=2), 0.05),
            (discovered_keywords(brand_position=5), 0.0),
        ])
        service = ScanService(clients, aggregator=make_aggregator(keywords=keywords))

        first, second = await asyncio.gather(
            service.scan(url="https://shop.co.th"),
            service.scan(url="https://shop.co.th"),
        )

        values = sorted(r["breakdown"]["brandRanking"]["brandSearch"]["value"] for r in (first, second))
        assert values == ["#2", "#5"]
        assert clients.custom_search.calls == []

    async def test_brand_position_looked_up_without_discovery(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        await service.scan(url="https://shop.co.th")

        assert clients.custom_search.calls == ["shop"]

    async def test_api_status(self, clients):
        service = ScanService(clients, aggregator=make_aggregator())

        status = service.get_api_status()

        assert status["providers"] == {"google_custom_search": True, "gemini": True}
        assert status["adapters"] == {"google_custom_search": True, "moz": True}
        assert status["cache"] is None


@pytest.mark.asyncio
class TestDefaultCascade:
    """Cascade built from settings."""

    async def test_unconfigured_providers(self):
        clients = ProviderClients(make_settings(
            DATAFORSEO_LOGIN=None,
            DATAFORSEO_PASSWORD=None,
            MOZ_API_TOKEN=None,
            GOOGLE_CUSTOM_SEARCH_API_KEY=None,
            GOOGLE_CUSTOM_SEARCH_ENGINE_ID=None,
            GEMINI_API_KEY=None,
            COMMONCRAWL_ENABLED=True,
        ))
        service = ScanService(clients)

        try:
            status = service.get_api_status()
        finally:
            await clients.close()

        assert status["adapters"] == {
            "google_custom_search": False,
            "dataforseo": False,
            "commoncrawl": True,
            "moz": False,
            "dataforseo_backlinks": False,
        }
        assert status["providers"]["pagespeed"] is True
        assert service.discovery.timeout == 120.0

    async def test_cache_shared_with_aggregator(self):
        clients = ProviderClients(make_settings(CACHE_ENABLED=True, COMMONCRAWL_ENABLED=False))
        service = ScanService(clients)

        try:
            assert service.aggregator.cache is clients.cache
            assert service.get_api_status()["cache"]["enabled"] is True
            assert clients.commoncrawl is None
        finally:
            await clients.close()
