"""
Provider Adapters

Wrap the concrete clients behind the adapter contract used by the
aggregator. Each adapter:
- reports is_configured() from its credentials alone (no network)
- maps the provider payload into the shared family metrics
- returns Ok(metrics) or Err(ProviderError), never raising
"""

import logging
from typing import Optional

from src.integrations.base import (
    AuthorityAdapter,
    BacklinkAdapter,
    Err,
    KeywordAdapter,
    Ok,
    ProviderResult,
    empty_result,
    error_from_exception,
    not_configured,
)
from src.integrations.commoncrawl import BACKLINK_LIMITATION
from src.integrations.moz import MozClient, MozMetrics
from src.models import (
    BacklinkMetrics,
    KeywordDiscoveryResult,
    KeywordMetrics,
    ScanTarget,
)

from .client import DataForSEOClient, map_backlink_summary, map_domain_rank_overview
from .keyword_discovery import KeywordDiscoveryEngine

logger = logging.getLogger(__name__)


# ============================================================================
# MAPPING FUNCTIONS
# ============================================================================

def map_discovery_result(result: KeywordDiscoveryResult) -> KeywordMetrics:
    """
    Keyword family view of a discovery run.

    Only keywords that actually rank within the top 100 count towards the
    total. Custom Search has no traffic figures. The brand position travels
    with the metrics so the scan can reuse it without a second lookup.
    """
    return KeywordMetrics(
        total=result.keywords_in_top100,
        top10=result.keywords_in_top10,
        top100=result.keywords_in_top100,
        avg_position=result.average_position or 0.0,
        estimated_traffic=0,
        intent_breakdown=result.intent_breakdown,
        brand_position=result.brand_position,
    )


def map_moz_metrics(metrics: MozMetrics) -> BacklinkMetrics:
    """Moz has no domain rating of its own; DA stands in for it."""
    return BacklinkMetrics(
        total=metrics.inbound_links,
        referring_domains=metrics.linking_domains,
        domain_rating=metrics.domain_authority,
        domain_authority=metrics.domain_authority,
    )


# ============================================================================
# KEYWORD ADAPTERS
# ============================================================================

class KeywordDiscoveryAdapter(KeywordAdapter):
    """Keywords from discovery + Google Custom Search rank checks."""

    name = "google_custom_search"

    def __init__(self, engine: KeywordDiscoveryEngine, configured: bool, timeout: Optional[float] = None):
        self.engine = engine
        self._configured = configured
        self.timeout = timeout

    def is_configured(self) -> bool:
        return self._configured and self.engine.rank_checker is not None

    async def get_keyword_metrics(self, target: ScanTarget) -> ProviderResult[KeywordMetrics]:
        if not self.is_configured():
            return not_configured(self.name)
        try:
            result = await self.engine.discover(target.url, target.domain, target.page_facts)
        except Exception as e:
            return Err(error_from_exception(self.name, e))

        if result.keywords_in_top100 == 0:
            return empty_result(self.name, f"none of {result.total_keywords_found} keywords rank in top 100")
        return Ok(map_discovery_result(result))


class DataForSEOKeywordAdapter(KeywordAdapter):
    """Keywords from DataForSEO Labs domain_rank_overview."""

    name = "dataforseo"

    def __init__(
        self,
        client: Optional[DataForSEOClient],
        location_code: int = 2840,
        language_code: str = "en",
    ):
        self.client = client
        self.location_code = location_code
        self.language_code = language_code

    def is_configured(self) -> bool:
        return self.client is not None

    async def get_keyword_metrics(self, target: ScanTarget) -> ProviderResult[KeywordMetrics]:
        if self.client is None:
            return not_configured(self.name)
        try:
            organic = await self.client.get_domain_overview(
                target.domain,
                location_code=self.location_code,
                language_code=self.language_code,
            )
            if organic is None:
                return empty_result(self.name, "no organic metrics for domain")
            return Ok(map_domain_rank_overview(organic))
        except Exception as e:
            return Err(error_from_exception(self.name, e))


# ============================================================================
# BACKLINK / AUTHORITY ADAPTERS
# ============================================================================

class CommonCrawlBacklinkAdapter(BacklinkAdapter):
    """
    Common Crawl slot in the backlink cascade.

    The public index is keyed by captured URL, so it cannot answer "who links
    to this domain". The adapter is always configured (no credentials) and
    always reports an empty result, letting the cascade move on.
    """

    name = "commoncrawl"

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def is_configured(self) -> bool:
        return self.enabled

    async def get_backlink_metrics(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        if not self.enabled:
            return not_configured(self.name)
        return empty_result(self.name, BACKLINK_LIMITATION)


class MozBacklinkAdapter(BacklinkAdapter, AuthorityAdapter):
    """Moz URL metrics: referring domains plus domain authority."""

    name = "moz"

    def __init__(self, client: Optional[MozClient]):
        self.client = client

    def is_configured(self) -> bool:
        return self.client is not None and MozClient.token_looks_valid(self.client.api_token)

    async def _fetch(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        if not self.is_configured():
            return not_configured(self.name)
        try:
            metrics = await self.client.get_url_metrics(target.domain)
        except Exception as e:
            return Err(error_from_exception(self.name, e))
        if metrics is None:
            return empty_result(self.name, "no url metrics for target")
        return Ok(map_moz_metrics(metrics))

    async def get_backlink_metrics(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        return await self._fetch(target)

    async def get_authority(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        result = await self._fetch(target)
        if result.ok and result.value.domain_authority <= 0:
            return empty_result(self.name, "domain authority is 0")
        return result


class DataForSEOBacklinkAdapter(BacklinkAdapter):
    """Backlink summary (rank on the 0-100 scale) from DataForSEO."""

    name = "dataforseo_backlinks"

    def __init__(self, client: Optional[DataForSEOClient]):
        self.client = client

    def is_configured(self) -> bool:
        return self.client is not None

    async def get_backlink_metrics(self, target: ScanTarget) -> ProviderResult[BacklinkMetrics]:
        if self.client is None:
            return not_configured(self.name)
        try:
            summary = await self.client.get_backlink_summary(target.domain)
            if summary is None:
                return empty_result(self.name, "no backlink summary for domain")
            return Ok(map_backlink_summary(summary))
        except Exception as e:
            return Err(error_from_exception(self.name, e))
