"""
Cascading Aggregator

Resolves each metric family from whichever configured provider returns
usable data first:

    keywords:  Google Custom Search (keyword discovery) -> DataForSEO -> estimate
    backlinks: Common Crawl -> Moz -> DataForSEO backlinks -> estimate

Rules:
- Families resolve concurrently; adapters inside a family run strictly in order
- Unconfigured adapters are skipped and recorded as not_configured
- Only Ok results with a non-empty payload are accepted
- Every adapter call is bounded by provider_timeout (or the adapter's own timeout)
- When no adapter delivers, a deterministic estimate is used (tagged ESTIMATE)
- Accepted backlinks without domain authority are enriched from authority
  providers within the scan's soft deadline
- Nothing is raised: every failure ends up in UnifiedMetrics.errors
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from src.integrations.base import (
    AuthorityAdapter,
    BacklinkAdapter,
    Err,
    KeywordAdapter,
    ProviderAdapter,
    ProviderError,
    ProviderErrorCode,
    error_from_exception,
)
from src.models import (
    BacklinkMetrics,
    KeywordMetrics,
    MetricFamily,
    MetricSources,
    ScanTarget,
    SourceTag,
    UnifiedMetrics,
)
from src.persistence.cache import ResponseCache
from src.utils.domain import is_well_known_domain

logger = logging.getLogger(__name__)


ENRICHMENT_PROVIDER = "authority_enrichment"


# ============================================================================
# ESTIMATES
# ============================================================================

def estimate_keywords(domain: str) -> KeywordMetrics:
    """Fallback keyword footprint from the host alone."""
    if is_well_known_domain(domain):
        return KeywordMetrics(total=50, top10=5, top100=30, avg_position=35.0, estimated_traffic=500)
    return KeywordMetrics(total=10, top10=1, top100=5, avg_position=35.0, estimated_traffic=50)


def estimate_backlinks(domain: str) -> BacklinkMetrics:
    """Fallback link profile from the host alone."""
    if is_well_known_domain(domain):
        return BacklinkMetrics(total=100, referring_domains=20, domain_rating=25, domain_authority=25)
    return BacklinkMetrics(total=10, referring_domains=5, domain_rating=10, domain_authority=10)


# ============================================================================
# RESOLUTION
# ============================================================================

@dataclass
class FamilyResolution:
    """Outcome of one family's cascade."""
    family: MetricFamily
    metrics: Any
    tag: SourceTag
    provider: str
    authority_provider: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def estimated(self) -> bool:
        return self.tag == SourceTag.ESTIMATE


class CascadingAggregator:
    """
    Fixed-priority provider cascade per metric family.

    Usage:
        aggregator = CascadingAggregator(
            keyword_adapters=[discovery_adapter, dataforseo_keywords],
            backlink_adapters=[commoncrawl, moz, dataforseo_backlinks],
            authority_adapters=[moz],
        )
        unified = await aggregator.aggregate(ScanTarget.from_url("shop.co.th"))
    """

    def __init__(
        self,
        keyword_adapters: Sequence[KeywordAdapter] = (),
        backlink_adapters: Sequence[BacklinkAdapter] = (),
        authority_adapters: Sequence[AuthorityAdapter] = (),
        provider_timeout: float = 30.0,
        soft_deadline: float = 90.0,
        cache: Optional[ResponseCache] = None,
    ):
        """
        Args:
            keyword_adapters: Keyword family, highest priority first
            backlink_adapters: Backlink family, highest priority first
            authority_adapters: Providers used to fill a missing domain authority
            provider_timeout: Seconds allowed per adapter call
            soft_deadline: Seconds from the start of aggregate() after which
                authority enrichment is abandoned
            cache: Optional cache of accepted (non-estimate) resolutions
        """
        self.keyword_adapters = list(keyword_adapters)
        self.backlink_adapters = list(backlink_adapters)
        self.authority_adapters = list(authority_adapters)
        self.provider_timeout = provider_timeout
        self.soft_deadline = soft_deadline
        self.cache = cache

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def aggregate(self, target: ScanTarget) -> UnifiedMetrics:
        """
        Resolve keyword and backlink metrics for ``target``.

        Never raises; provider failures are listed in ``errors``.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.soft_deadline

        keywords, backlinks = await asyncio.gather(
            self._resolve_cached(MetricFamily.KEYWORDS, target, deadline),
            self._resolve_cached(MetricFamily.BACKLINKS, target, deadline),
        )

        unified = UnifiedMetrics(
            keywords=keywords.metrics,
            backlinks=backlinks.metrics,
            source=MetricSources(
                keywords=keywords.tag,
                backlinks=backlinks.tag,
                keywords_provider=keywords.provider,
                backlinks_provider=backlinks.provider,
                authority_provider=backlinks.authority_provider,
            ),
            errors=tuple(keywords.errors + backlinks.errors),
        )

        logger.info(
            f"Aggregated {target.domain}: keywords from {keywords.provider} ({keywords.tag.value}), "
            f"backlinks from {backlinks.provider} ({backlinks.tag.value}), "
            f"{len(unified.errors)} provider errors"
        )
        for error in unified.errors:
            logger.debug(f"Provider error: {error}")

        return unified

    def get_api_status(self) -> Dict[str, bool]:
        """Configuration state of every adapter, by name."""
        status: Dict[str, bool] = {}
        for adapter in self.keyword_adapters + self.backlink_adapters + self.authority_adapters:
            status[adapter.name] = adapter.is_configured()
        return status

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------

    async def _resolve_cached(self, family: MetricFamily, target: ScanTarget, deadline: float) -> FamilyResolution:
        if self.cache is not None:
            cached = self.cache.get(family.value, target.domain)
            if cached is not None:
                logger.debug(f"Cache hit for {family.value} of {target.domain}")
                return replace(cached, errors=[])

        resolution = await self._resolve(family, target, deadline)

        if self.cache is not None and not resolution.estimated:
            self.cache.set(family.value, target.domain, replace(resolution, errors=[]))
        return resolution

    async def _resolve(self, family: MetricFamily, target: ScanTarget, deadline: float) -> FamilyResolution:
        if family == MetricFamily.KEYWORDS:
            adapters: List[ProviderAdapter] = self.keyword_adapters
        else:
            adapters = self.backlink_adapters

        errors: List[str] = []

        for index, adapter in enumerate(adapters):
            if not adapter.is_configured():
                errors.append(str(ProviderError(adapter.name, ProviderErrorCode.NOT_CONFIGURED, "credentials not set")))
                continue

            result = await self._call(adapter, family, target, adapter.timeout or self.provider_timeout)
            if not result.ok:
                logger.warning(f"{family.value}: {result.error}")
                errors.append(str(result.error))
                continue

            if result.value.is_empty:
                errors.append(str(ProviderError(adapter.name, ProviderErrorCode.EMPTY_RESULT, "payload has no usable values")))
                continue

            resolution = FamilyResolution(
                family=family,
                metrics=result.value,
                tag=SourceTag.for_position(index),
                provider=adapter.name,
                errors=errors,
            )
            logger.info(f"{family.value} for {target.domain} accepted from {adapter.name} ({resolution.tag.value})")

            if family == MetricFamily.BACKLINKS:
                return await self._enrich(resolution, target, deadline)
            return resolution

        logger.info(f"{family.value} for {target.domain}: all providers failed, using estimate")
        metrics = estimate_keywords(target.domain) if family == MetricFamily.KEYWORDS else estimate_backlinks(target.domain)
        return FamilyResolution(
            family=family,
            metrics=metrics,
            tag=SourceTag.ESTIMATE,
            provider="estimate",
            errors=errors,
        )

    async def _call(
        self,
        adapter: ProviderAdapter,
        family: Optional[MetricFamily],
        target: ScanTarget,
        timeout: float,
    ):
        """Call the adapter method for ``family`` (None = authority lookup)."""
        if family == MetricFamily.KEYWORDS:
            call = adapter.get_keyword_metrics(target)
        elif family == MetricFamily.BACKLINKS:
            call = adapter.get_backlink_metrics(target)
        else:
            call = adapter.get_authority(target)

        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError:
            return Err(ProviderError(adapter.name, ProviderErrorCode.NETWORK_TIMEOUT, f"no response within {timeout:g}s"))
        except Exception as e:
            logger.error(f"Adapter {adapter.name} raised unexpectedly: {e}")
            return Err(error_from_exception(adapter.name, e))

    # ------------------------------------------------------------------
    # Authority enrichment
    # ------------------------------------------------------------------

    async def _enrich(self, resolution: FamilyResolution, target: ScanTarget, deadline: float) -> FamilyResolution:
        accepted: BacklinkMetrics = resolution.metrics
        if accepted.domain_authority > 0:
            return resolution

        candidates = [
            a for a in self.authority_adapters
            if a.name != resolution.provider and a.is_configured()
        ]
        if not candidates:
            return resolution

        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            resolution.errors.append(str(ProviderError(
                ENRICHMENT_PROVIDER, ProviderErrorCode.NETWORK_TIMEOUT, "soft deadline passed, enrichment omitted"
            )))
            return resolution

        try:
            return await asyncio.wait_for(self._fill_authority(resolution, candidates, target), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning(f"Authority enrichment for {target.domain} omitted after soft deadline")
            resolution.errors.append(str(ProviderError(
                ENRICHMENT_PROVIDER, ProviderErrorCode.NETWORK_TIMEOUT, "soft deadline passed, enrichment omitted"
            )))
            return resolution

    async def _fill_authority(
        self,
        resolution: FamilyResolution,
        adapters: List[AuthorityAdapter],
        target: ScanTarget,
    ) -> FamilyResolution:
        accepted: BacklinkMetrics = resolution.metrics

        for adapter in adapters:
            result = await self._call(adapter, None, target, self.provider_timeout)
            if not result.ok:
                resolution.errors.append(str(result.error))
                continue
            authority = result.value.domain_authority
            if authority <= 0:
                continue

            # Only the missing pieces are filled; accepted non-zero values stay
            resolution.metrics = replace(
                accepted,
                domain_authority=authority,
                domain_rating=accepted.domain_rating or result.value.domain_rating,
            )
            resolution.authority_provider = adapter.name
            logger.info(f"Domain authority for {target.domain} filled from {adapter.name}: {authority}")
            break

        return resolution
