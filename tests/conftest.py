"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import asyncio
from typing import List

import pytest

from src.integrations.base import (
    AuthorityAdapter,
    BacklinkAdapter,
    Err,
    KeywordAdapter,
    Ok,
    ProviderError,
    ProviderErrorCode,
    not_configured,
)
from src.models import (
    BacklinkMetrics,
    KeywordMetrics,
    PageFacts,
    PerformanceFacts,
    ScanTarget,
)


# ============================================================================
# Fake time
# ============================================================================

class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Fake adapters
# ============================================================================

class StubKeywordAdapter(KeywordAdapter):
    """Keyword adapter returning a canned result."""

    def __init__(self, name: str, result=None, configured: bool = True, delay: float = 0.0):
        self.name = name
        self.result = result
        self.configured = configured
        self.delay = delay
        self.calls = 0

    def is_configured(self) -> bool:
        return self.configured

    async def get_keyword_metrics(self, target: ScanTarget):
        self.calls += 1
        if not self.configured:
            return not_configured(self.name)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result


class StubBacklinkAdapter(BacklinkAdapter, AuthorityAdapter):
    """Backlink/authority adapter returning canned results."""

    def __init__(self, name: str, result=None, authority=None, configured: bool = True, delay: float = 0.0):
        self.name = name
        self.result = result
        self.authority = authority
        self.configured = configured
        self.delay = delay
        self.calls = 0
        self.authority_calls = 0

    def is_configured(self) -> bool:
        return self.configured

    async def get_backlink_metrics(self, target: ScanTarget):
        self.calls += 1
        return self.result

    async def get_authority(self, target: ScanTarget):
        self.authority_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.authority


def ok_keywords(total: int = 42, avg_position: float = 7.3) -> Ok:
    return Ok(KeywordMetrics(total=total, top10=10, top100=total, avg_position=avg_position))


def ok_backlinks(referring_domains: int = 12, domain_authority: int = 38, domain_rating: int = 0) -> Ok:
    return Ok(BacklinkMetrics(
        total=referring_domains * 10,
        referring_domains=referring_domains,
        domain_rating=domain_rating,
        domain_authority=domain_authority,
    ))


def err(name: str, code: ProviderErrorCode = ProviderErrorCode.AUTH_FAILED) -> Err:
    return Err(ProviderError(name, code, "stub failure"))


# ============================================================================
# Page fixtures
# ============================================================================

@pytest.fixture
def target() -> ScanTarget:
    return ScanTarget.from_url("https://shop.co.th")


@pytest.fixture
def bare_page() -> PageFacts:
    """Page with nothing on it."""
    return PageFacts(url="http://bare.example.org")


@pytest.fixture
def rich_page() -> PageFacts:
    """Well-structured page that earns every content point."""
    return PageFacts(
        url="https://shop.co.th",
        title="Shop - Car Insurance",
        meta_description="Compare car insurance prices",
        h1=("Car insurance",),
        h2=("Prices", "Coverage", "Claims", "Reviews", "FAQ"),
        h3=("Class 1", "Class 2"),
        has_schema=True,
        schema_types=("Organization", "FAQPage", "Person", "LocalBusiness"),
        table_count=2,
        list_count=4,
        image_count=10,
        images_with_alt=9,
        video_count=2,
        internal_links=40,
        external_links=12,
        word_count=1500,
        has_ssl=True,
        has_robots_txt=True,
        has_llms_txt=True,
        sitemap_valid=True,
    )


@pytest.fixture
def good_performance() -> PerformanceFacts:
    return PerformanceFacts(
        lcp_seconds=1.8,
        interactivity_ms=80,
        cls=0.05,
        performance_score=95,
        accessibility_score=90,
        seo_score=100,
        best_practices_score=92,
    )


@pytest.fixture
def poor_performance() -> PerformanceFacts:
    return PerformanceFacts(
        lcp_seconds=5.2,
        interactivity_ms=650,
        cls=0.4,
        performance_score=30,
    )


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
